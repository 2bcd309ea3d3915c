"""
Statistical methods and theories for sequential testing.

1. **Common** (seqks.stats.common):
   Scheme-agnostic numerics: directed rounding, monotone inversion.

2. **Methods** (seqks.stats.methods):
   The sequential one-sided KS confidence sequence and its inverses.

3. **Schemes** (seqks.stats.schemes):
   Problem-specific implementations that apply the methods to streams of
   observations recorded in a ledger.

Example:
--------
>>> import math
>>> from seqks.stats.methods.one_sided_ks import find_min_count
>>> find_min_count(math.log(0.05))
6
"""
