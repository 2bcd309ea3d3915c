"""
Problem-specific implementations for experimental scenarios.

Available schemes:
- `ks_streams`: sequential KS comparison of two observation streams, or of
  one stream against a reference distribution
"""
