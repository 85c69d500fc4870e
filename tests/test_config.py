"""
Tests for config.py — AppConfig defaults, section validation, load_config().

What we test
------------
1. AppConfig() carries the committed business defaults.
2. Section validators: windows, system weights, normalizer, factors, caps.
3. load_config() reads a TOML file, merges local.toml, applies env overrides.
4. Missing config file raises FileNotFoundError.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from branch_scorecard.config import (
    AppConfig,
    ComparisonConfig,
    CreditRiskConfig,
    EfficiencyConfig,
    GallopConfig,
    LoggingConfig,
    _deep_merge,
    load_config,
)


# ── Defaults ──────────────────────────────────────────────────────────────────


class TestDefaults:
    def test_credit_risk(self):
        cfg = AppConfig().credit_risk
        assert cfg.bad_debt_cap == 11.70
        assert cfg.recovery_cap == 7.80
        assert (cfg.bad_debt_window, cfg.recovery_window, cfg.writeoff_window) == (2, 2, 3)

    def test_efficiency_weights_sum_to_one(self):
        assert sum(AppConfig().efficiency.segment_weights.values()) == pytest.approx(1.0)

    def test_gallop_budgets(self):
        cfg = AppConfig().gallop
        assert (cfg.consume_budget, cfg.cross_border_budget, cfg.zhuojun_budget) == (30, 15, 10)

    def test_comparison_caps(self):
        cfg = AppConfig().comparison
        assert (cfg.max_branches, cfg.max_indicators) == (6, 4)
        assert len(cfg.palette) == 6


# ── Validation ────────────────────────────────────────────────────────────────


class TestValidation:
    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            CreditRiskConfig(writeoff_window=0)

    def test_system_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="must equal 1.0"):
            EfficiencyConfig(growth_rate_weight=0.6, growth_increment_weight=0.3)

    def test_unknown_normalizer(self):
        with pytest.raises(ValidationError):
            EfficiencyConfig(normalizer="quantile")
        with pytest.raises(ValidationError):
            GallopConfig(normalizer="quantile")

    def test_bottom_factor_above_top(self):
        with pytest.raises(ValidationError):
            GallopConfig(top_factor=0.5, bottom_factor=1.3)

    def test_caps_positive(self):
        with pytest.raises(ValidationError):
            ComparisonConfig(max_branches=0)

    def test_empty_palette(self):
        with pytest.raises(ValidationError):
            ComparisonConfig(palette=[])

    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_frozen(self):
        with pytest.raises(ValidationError):
            AppConfig().debug = True  # type: ignore[misc]


# ── Loader ────────────────────────────────────────────────────────────────────


_TOML = """
[project]
debug = false

[data]
dataset_path = "somewhere/data.json"

[credit_risk]
writeoff_window = 4

[efficiency]
normalizer = "linear"

[comparison]
max_branches = 3
"""


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for var in ("BRANCH_SCORECARD_DATASET", "BRANCH_SCORECARD_LOG_LEVEL", "BRANCH_SCORECARD_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    d = tmp_path / "config"
    d.mkdir()
    (d / "default.toml").write_text(_TOML, encoding="utf-8")
    return d


class TestLoadConfig:
    def test_reads_toml(self, config_dir: Path):
        cfg = load_config(config_dir / "default.toml")
        assert cfg.data.dataset_path == "somewhere/data.json"
        assert cfg.credit_risk.writeoff_window == 4
        assert cfg.credit_risk.bad_debt_window == 2
        assert cfg.efficiency.normalizer == "linear"
        assert cfg.comparison.max_branches == 3

    def test_local_override(self, config_dir: Path):
        (config_dir / "local.toml").write_text("[comparison]\nmax_branches = 5\n", encoding="utf-8")
        cfg = load_config(config_dir / "default.toml")
        assert cfg.comparison.max_branches == 5
        assert cfg.comparison.max_indicators == 4

    def test_env_overrides(self, config_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("BRANCH_SCORECARD_DATASET", "/tmp/other.json")
        monkeypatch.setenv("BRANCH_SCORECARD_LOG_LEVEL", "debug")
        monkeypatch.setenv("BRANCH_SCORECARD_DEBUG", "true")
        cfg = load_config(config_dir / "default.toml")
        assert cfg.data.dataset_path == "/tmp/other.json"
        assert cfg.logging.level == "DEBUG"
        assert cfg.debug is True

    def test_invalid_value_raises(self, config_dir: Path):
        (config_dir / "default.toml").write_text("[comparison]\nmax_branches = 0\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(config_dir / "default.toml")

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_committed_default_loads(self, monkeypatch: pytest.MonkeyPatch):
        for var in ("BRANCH_SCORECARD_DATASET", "BRANCH_SCORECARD_LOG_LEVEL", "BRANCH_SCORECARD_DEBUG"):
            monkeypatch.delenv(var, raising=False)
        cfg = load_config()
        assert cfg.gallop.segment_weights["highend_active"] == 35.0


class TestDeepMerge:
    def test_nested(self):
        merged = _deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1}
