"""
Discern - Property-Based Testing Suite

Hypothesis tests for the invariants of normalization, scoring and
calibration.
"""
