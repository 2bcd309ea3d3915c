"""
seqks.core
==========

Ledger infrastructure: typed names, the ibis-backed event ledger and the
component base classes that read from and write to it.
"""
