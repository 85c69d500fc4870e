"""
Multi-branch / multi-indicator trend comparison.

Modules
-------
selection : Two-step selection dialog state machine (branches → indicators).
trend     : Confirmed selection → per-indicator, per-branch trend series.
"""
