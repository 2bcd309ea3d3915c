"""
seqks.stats.common
==================

Common numerical methods and utilities.

Generic, reusable building blocks that are independent of any statistic:
directed rounding of floating point results and monotone inversion over
the doubles.
"""
