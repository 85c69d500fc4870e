"""
Rule library: pure functions converting raw metrics into bounded scores.

Modules
-------
base          : InvalidMetric + safe_score() fallback + shared clamp/rounding.
credit_risk   : bad-debt, recovery, write-off and compliance rules.
efficiency    : weighted customer count, growth, system score, deposit deduction.
normalization : pluggable peer normalizers mapping growth onto a [0.3, 1.3] rate.
gallop        : YoY growth, contribution shares and rank-interpolated budgets.

No rule touches the provider, the config loader or the logging setup; every
parameter arrives as an argument (usually a config section model).
"""
