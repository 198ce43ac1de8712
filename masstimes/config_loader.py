"""masstimes.config_loader

Config loader for the masstimes command line.

- Reads YAML (PyYAML); JSON files load too since JSON is valid YAML.
- Exposes a typed dataclass `Config`, a `load_config()` helper that accepts an
  optional path override, and `apply_env_overrides()` for MASSTIMES_* variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .models import DEFAULT_INSTANCE_LIMIT, DEFAULT_WINDOW_DAYS, FilterCriteria, ResolutionWindow

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "masstimes" / "config.yaml"

WINDOW_DAYS_RANGE = (1, 366)
LIMIT_RANGE = (1, 10000)


@dataclass(frozen=True)
class Config:
    """Typed configuration for masstimes.

    Fields:
        window_days: length of the default resolution window in days (1..366)
        limit: per-definition instance cap (1..10000)
        categories: service category identifiers to require
        languages: BCP 47 language tags to require
        include_uncategorized: keep definitions without a category
        include_language_unset: keep definitions without languages
        log_level: logging level name
    """

    window_days: int = DEFAULT_WINDOW_DAYS
    limit: int = DEFAULT_INSTANCE_LIMIT
    categories: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    include_uncategorized: bool = False
    include_language_unset: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced to int and clamped to their allowed
        range; scalar category/language values become one-item lists. Each
        coercion is logged as a warning.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, bounds: tuple[int, int]) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            low, high = bounds
            if value < low:
                logger.warning("%s %d below minimum; coercing to %d", key, value, low)
                return low
            if value > high:
                logger.warning("%s %d above maximum; coercing to %d", key, value, high)
                return high
            return value

        def _coerce_list(key: str) -> list[str]:
            raw = data.get(key) or []
            if isinstance(raw, str):
                return [raw]
            if not isinstance(raw, (list, tuple)):
                logger.warning("Config `%s` is not a list; coercing to single-item list", key)
                return [str(raw)]
            return [str(item) for item in raw]

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            window_days=_coerce_int("window_days", DEFAULT_WINDOW_DAYS, WINDOW_DAYS_RANGE),
            limit=_coerce_int("limit", DEFAULT_INSTANCE_LIMIT, LIMIT_RANGE),
            categories=_coerce_list("categories"),
            languages=_coerce_list("languages"),
            include_uncategorized=bool(data.get("include_uncategorized", False)),
            include_language_unset=bool(data.get("include_language_unset", False)),
            log_level=log_level,
        )

    def to_criteria(self) -> FilterCriteria:
        """Filter criteria described by this config."""
        return FilterCriteria(
            categories=self.categories,
            languages=self.languages,
            include_uncategorized=self.include_uncategorized,
            include_language_unset=self.include_language_unset,
        )

    def to_window(self, start: datetime) -> ResolutionWindow:
        """Resolution window of ``window_days`` days beginning at ``start``."""
        return ResolutionWindow.spanning(start, days=self.window_days, limit=self.limit)


def apply_env_overrides(cfg: Config) -> Config:
    """Return ``cfg`` with MASSTIMES_* environment variables applied.

    Recognizes:
    - MASSTIMES_WINDOW_DAYS -> window_days
    - MASSTIMES_LIMIT -> limit
    - MASSTIMES_LANGUAGES -> languages (comma-separated)
    - MASSTIMES_LOG_LEVEL -> log_level
    """
    overrides: dict[str, Any] = {}

    for env_key, cfg_key in (("MASSTIMES_WINDOW_DAYS", "window_days"), ("MASSTIMES_LIMIT", "limit")):
        raw = os.environ.get(env_key)
        if raw:
            try:
                overrides[cfg_key] = int(raw)
            except ValueError:
                logger.warning("Invalid %s=%r; ignoring", env_key, raw)

    languages = os.environ.get("MASSTIMES_LANGUAGES")
    if languages:
        overrides["languages"] = [tag.strip() for tag in languages.split(",") if tag.strip()]

    log_level = os.environ.get("MASSTIMES_LOG_LEVEL")
    if log_level:
        overrides["log_level"] = log_level

    if not overrides:
        return cfg

    logger.debug("Applying environment overrides: %s", ", ".join(sorted(overrides)))
    return _revalidate(cfg, overrides)


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from a YAML/JSON file and return a Config instance.

    Args:
        path: Optional path to the config file. Defaults to
              ~/.config/masstimes/config.yaml.

    Returns:
        Config dataclass instance with values from file (or defaults).

    Raises:
        ConfigError: If the file cannot be parsed or its top level is not a mapping
    """
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        logger.info("Config file %s not found; using defaults", p)
        return Config()

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to parse config file {p}: {exc}") from exc

    # safe_load returns None for empty files
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, raw)
        raise ConfigError("Config file must contain a mapping at top level")

    cfg = Config.from_dict(raw)
    logger.info("Loaded configuration from %s", p)
    logger.debug("Configuration values: %s", cfg)
    return cfg


def with_overrides(cfg: Config, **changes: Any) -> Config:
    """Copy of ``cfg`` with non-None ``changes`` applied (used for CLI flags).

    Values are coerced and clamped exactly like file values.
    """
    overrides = {k: v for k, v in changes.items() if v is not None}
    if not overrides:
        return cfg
    return _revalidate(cfg, overrides)


def _revalidate(cfg: Config, overrides: dict[str, Any]) -> Config:
    # Re-run from_dict so overriding values are clamped like file values
    return Config.from_dict({**asdict(cfg), **overrides})
