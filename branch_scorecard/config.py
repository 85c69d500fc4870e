"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``BRANCH_SCORECARD_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Rule functions, aggregators, the selection workflow and CLI commands all
receive an ``AppConfig`` (or one of its sections), never raw dicts or
individual env var lookups scattered through the codebase.  Every point
budget and weight split lives here, not in the rule code.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Where the file-backed metric provider reads its dataset from."""

    model_config = ConfigDict(frozen=True)

    dataset_path: str = "data/sample_dataset.json"


class CreditRiskConfig(BaseModel):
    """Caps, multipliers and lookback windows for the credit-risk rule set."""

    model_config = ConfigDict(frozen=True)

    bad_debt_cap: float = 11.70
    bad_debt_excess_multiplier: float = 2.0
    recovery_cap: float = 7.80
    recovery_full_rate: float = 1.30
    writeoff_cap: float = 2.00
    writeoff_multiplier: float = 2.0
    bad_debt_window: int = 2
    recovery_window: int = 2
    writeoff_window: int = 3

    @field_validator("bad_debt_window", "recovery_window", "writeoff_window")
    @classmethod
    def validate_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Lookback windows must be >= 1 quarter, got {v}.")
        return v

    @field_validator("recovery_full_rate")
    @classmethod
    def validate_full_rate(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"recovery_full_rate must be positive, got {v}.")
        return v


_DEFAULT_EFFICIENCY_WEIGHTS: dict[str, float] = {
    "annual_10k":     0.30,
    "new_active":     0.25,
    "highend_active": 0.25,
    "cross_border":   0.20,
}

_DEFAULT_GALLOP_WEIGHTS: dict[str, float] = {
    "annual_10k":     3.5,
    "new_active":     18.0,
    "highend_active": 35.0,
    "cross_border":   8.0,
}

_VALID_NORMALIZERS = {"zscore", "linear"}


class EfficiencyConfig(BaseModel):
    """Operating-efficiency rule set: segment weights and deposit deduction."""

    model_config = ConfigDict(frozen=True)

    segment_weights: dict[str, float] = dict(_DEFAULT_EFFICIENCY_WEIGHTS)
    deposit_cap: float = 10.0
    deposit_multiplier: float = 10.0
    growth_rate_weight: float = 0.70
    growth_increment_weight: float = 0.30
    normalizer: str = "zscore"

    @field_validator("normalizer")
    @classmethod
    def validate_normalizer(cls, v: str) -> str:
        if v not in _VALID_NORMALIZERS:
            raise ValueError(
                f"normalizer must be one of {sorted(_VALID_NORMALIZERS)}, got '{v}'."
            )
        return v

    @model_validator(mode="after")
    def validate_system_weights(self) -> "EfficiencyConfig":
        total = self.growth_rate_weight + self.growth_increment_weight
        if abs(total - 1.0) > 1e-9:
            raise ValueError(
                f"growth_rate_weight + growth_increment_weight must equal 1.0, got {total}."
            )
        return self


class GallopConfig(BaseModel):
    """Gallop cross-sell rule sets: point budgets and rank interpolation factors."""

    model_config = ConfigDict(frozen=True)

    consume_budget: float = 30.0
    cross_border_budget: float = 15.0
    zhuojun_budget: float = 10.0
    top_factor: float = 1.30
    bottom_factor: float = 0.50
    segment_weights: dict[str, float] = dict(_DEFAULT_GALLOP_WEIGHTS)
    growth_rate_weight: float = 0.70
    growth_increment_weight: float = 0.30
    normalizer: str = "zscore"

    @field_validator("normalizer")
    @classmethod
    def validate_normalizer(cls, v: str) -> str:
        if v not in _VALID_NORMALIZERS:
            raise ValueError(
                f"normalizer must be one of {sorted(_VALID_NORMALIZERS)}, got '{v}'."
            )
        return v

    @model_validator(mode="after")
    def validate_factors(self) -> "GallopConfig":
        if self.bottom_factor > self.top_factor:
            raise ValueError(
                f"bottom_factor ({self.bottom_factor}) must be <= top_factor ({self.top_factor})."
            )
        return self


class ComparisonConfig(BaseModel):
    """Cardinality caps and chart palette for the trend comparison workflow."""

    model_config = ConfigDict(frozen=True)

    max_branches: int = 6
    max_indicators: int = 4
    palette: list[str] = [
        "hsl(220, 70%, 50%)",
        "hsl(0, 85%, 50%)",
        "hsl(140, 55%, 40%)",
        "hsl(35, 90%, 50%)",
        "hsl(280, 60%, 55%)",
        "hsl(180, 55%, 40%)",
    ]

    @field_validator("max_branches", "max_indicators")
    @classmethod
    def validate_caps(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Selection caps must be >= 1, got {v}.")
        return v

    @field_validator("palette")
    @classmethod
    def validate_palette(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("palette must contain at least one colour.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Constructed by ``load_config()`` which merges TOML + .env.  Tests build
    it directly (``AppConfig()``) to get the committed business defaults.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    credit_risk: CreditRiskConfig = CreditRiskConfig()
    efficiency: EfficiencyConfig = EfficiencyConfig()
    gallop: GallopConfig = GallopConfig()
    comparison: ComparisonConfig = ComparisonConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply BRANCH_SCORECARD_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply BRANCH_SCORECARD_* env vars to the raw config dict.

    Supported overrides:
      BRANCH_SCORECARD_DATASET    → raw["data"]["dataset_path"]
      BRANCH_SCORECARD_LOG_LEVEL  → raw["logging"]["level"]
      BRANCH_SCORECARD_DEBUG      → raw["debug"]
    """
    if dataset := os.environ.get("BRANCH_SCORECARD_DATASET"):
        raw.setdefault("data", {})["dataset_path"] = dataset

    if log_level := os.environ.get("BRANCH_SCORECARD_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("BRANCH_SCORECARD_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        credit_risk=CreditRiskConfig(**raw.get("credit_risk", {})),
        efficiency=EfficiencyConfig(**raw.get("efficiency", {})),
        gallop=GallopConfig(**raw.get("gallop", {})),
        comparison=ComparisonConfig(**raw.get("comparison", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
