"""
Statistical theories for sequential testing.

These methods define the statistical behavior but are independent of
specific problem domains or data types.

Available methods:
- `one_sided_ks`: anytime-valid thresholds for the sequential one-sided
  Kolmogorov–Smirnov statistic
"""
