"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``FORECAST_SCORECARD_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The CLI, the scoring pipeline and the session state all receive an
``AppConfig`` instance, never raw dicts or scattered env var lookups.
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
    """Where predictions and reference outcomes come from.

    ``sheets`` lists the workbook sheets to read, in order. An empty list
    scans every sheet whose name starts with a 4-digit year. Any sheet name
    starting with ``override_year_token`` maps to ``override_year``.
    """

    model_config = ConfigDict(frozen=True)

    source: str = "data/predictions.xlsx"
    sheets: list[str] = ["2023", "2024", "2025", "2026 Financial", "2026 goals"]
    override_year_token: str = "2026"
    override_year: int = 2026
    reference_file: Optional[str] = None
    request_timeout_s: float = 30.0


class ScoringConfig(BaseModel):
    """Accuracy engine parameters."""

    model_config = ConfigDict(frozen=True)

    scored_years: list[int] = [2023, 2024, 2025]   # years eligible for yearly MAPE


class InsightsConfig(BaseModel):
    """Thresholds for the heuristic insight passes."""

    model_config = ConfigDict(frozen=True)

    min_diversity_samples: int = 3          # closes needed before a market is assessed
    disagreement_cv_pct: float = 15.0       # CV above this → "High Disagreement"
    min_range_samples: int = 3              # range samples needed for precise/cautious
    cautious_range_pct: float = 25.0        # avg range width above this → "Most Cautious"
    recession_consensus_pct: float = 70.0   # above this → critical consensus
    optimistic_pct: float = 30.0            # below this → optimistic outlook

    @model_validator(mode="after")
    def validate_recession_band(self) -> "InsightsConfig":
        if self.optimistic_pct > self.recession_consensus_pct:
            raise ValueError(
                f"optimistic_pct ({self.optimistic_pct}) must be <= "
                f"recession_consensus_pct ({self.recession_consensus_pct})."
            )
        return self


class FiltersConfig(BaseModel):
    """Default filter selection for a new session."""

    model_config = ConfigDict(frozen=True)

    default_years: list[int] = [2023, 2024, 2025, 2026]


class ReportingConfig(BaseModel):
    """Report output settings."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs"


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
    """Complete application configuration: the single source of truth."""

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    scoring: ScoringConfig = ScoringConfig()
    insights: InsightsConfig = InsightsConfig()
    filters: FiltersConfig = FiltersConfig()
    reporting: ReportingConfig = ReportingConfig()
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
            ``<project_root>/config/default.toml``; if that default file is
            missing the built-in model defaults are used.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is None:
        config_path = root / "config" / "default.toml"
        explicit = False
    else:
        config_path = Path(config_path)
        explicit = True

    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

        local_config_path = config_path.parent / "local.toml"
        if local_config_path.exists():
            with open(local_config_path, "rb") as f:
                local_raw: dict[str, Any] = tomllib.load(f)
            raw = _deep_merge(raw, local_raw)
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    # 3. Apply FORECAST_SCORECARD_* environment variable overrides
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
    """Apply FORECAST_SCORECARD_* env vars to the raw config dict.

    Supported overrides:
      FORECAST_SCORECARD_SOURCE      → raw["data"]["source"]
      FORECAST_SCORECARD_LOG_LEVEL   → raw["logging"]["level"]
      FORECAST_SCORECARD_OUTPUT_DIR  → raw["reporting"]["output_dir"]
      FORECAST_SCORECARD_DEBUG       → raw["debug"]
    """
    if source := os.environ.get("FORECAST_SCORECARD_SOURCE"):
        raw.setdefault("data", {})["source"] = source

    if log_level := os.environ.get("FORECAST_SCORECARD_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if output_dir := os.environ.get("FORECAST_SCORECARD_OUTPUT_DIR"):
        raw.setdefault("reporting", {})["output_dir"] = output_dir

    if debug := os.environ.get("FORECAST_SCORECARD_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        insights=InsightsConfig(**raw.get("insights", {})),
        filters=FiltersConfig(**raw.get("filters", {})),
        reporting=ReportingConfig(**raw.get("reporting", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
