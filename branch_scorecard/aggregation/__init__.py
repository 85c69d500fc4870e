"""
Aggregator: provider records → one scored ``BranchRow`` per branch.

The aggregator is the single place deciding which periods feed which rule
and how missing data is zero-filled.

Modules
-------
common      : AggregationStats, per-period record fetch, zero pairs.
credit_risk : Quarterly credit-risk rows over 2/2/3-quarter lookback windows.
efficiency  : Efficiency and Gallop-efficiency rows with peer normalization.
gallop      : Consume, cross-border and Zhuojun rank-interpolated rows.
report      : build_report() entry point, dispatch and population summaries.
"""
