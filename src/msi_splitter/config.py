"""Splitter configuration with strict validation.

Usage:
    from msi_splitter.config import SplitterConfig

    config = SplitterConfig.from_env()
    config = SplitterConfig.from_yaml(Path("splitter.yaml"))
    # invalid values raise ConfigValidationError
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from msi_splitter.exceptions import ConfigValidationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_STAGING_FOLDER = "TEMP_EXTRACT"
DEFAULT_MANIFEST_NAME = "extraction-summary.json"

# Free tier: 10 requests per minute.
DEFAULT_RATE_LIMIT_S = 7.0

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _get_api_key() -> str:
    """API key from GEMINI_API_KEY, falling back to API_KEY."""
    return os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class SchedulerConfig:
    """Job queue settings.

    Attributes:
        max_concurrent: jobs processed at the same time
        rate_limit_interval_s: minimum gap between classifier call starts, across all jobs
        retry_attempts: attempts per job, including the first
        retry_delay_s: fixed delay between attempts
    """

    max_concurrent: int = 1
    rate_limit_interval_s: float = DEFAULT_RATE_LIMIT_S
    retry_attempts: int = 3
    retry_delay_s: float = 2.0

    def __post_init__(self) -> None:
        if not isinstance(self.max_concurrent, int) or self.max_concurrent <= 0:
            raise ConfigValidationError(f"max_concurrent must be positive int, got {self.max_concurrent}")
        if self.rate_limit_interval_s < 0:
            raise ConfigValidationError(f"rate_limit_interval_s must be >= 0, got {self.rate_limit_interval_s}")
        if not isinstance(self.retry_attempts, int) or self.retry_attempts <= 0:
            raise ConfigValidationError(f"retry_attempts must be positive int, got {self.retry_attempts}")
        if self.retry_delay_s < 0:
            raise ConfigValidationError(f"retry_delay_s must be >= 0, got {self.retry_delay_s}")


@dataclass
class SplitterConfig:
    """Splitter settings.

    All fields are validated in __post_init__.

    Attributes:
        api_key: Gemini API key. Only required by the Gemini classifier.
        model: Gemini model name.
        render_scale: rasterization scale for classifier images (2.5 suits scans).
        jpeg_quality: JPEG quality of classifier images (1-100).
        max_pages: pages sent to the classifier, None for all.
        lookahead_pages: smoother forward search window.
        lookback_pages: smoother backward search window.
        staging_folder: top-level folder that holds run manifests.
        manifest_name: manifest file name inside the staging folder.
        taxonomy_file: optional YAML overriding folder names.
        scheduler: job queue settings.
        log_level: loguru level used by the CLI.
    """

    api_key: str = field(default_factory=_get_api_key)
    model: str = DEFAULT_MODEL
    render_scale: float = 2.5
    jpeg_quality: int = 90
    max_pages: Optional[int] = None
    lookahead_pages: int = 20
    lookback_pages: int = 10
    staging_folder: str = DEFAULT_STAGING_FOLDER
    manifest_name: str = DEFAULT_MANIFEST_NAME
    taxonomy_file: Optional[str] = None
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if isinstance(self.scheduler, dict):
            self.scheduler = SchedulerConfig(**self.scheduler)
        self._validate()

    def _validate(self) -> None:
        """Strict field validation.

        Raises:
            ConfigValidationError: on the first invalid field
        """
        if not isinstance(self.model, str) or not self.model:
            raise ConfigValidationError(f"model must be non-empty str, got {self.model!r}")

        if self.render_scale <= 0:
            raise ConfigValidationError(f"render_scale must be positive, got {self.render_scale}")

        if not isinstance(self.jpeg_quality, int) or not 1 <= self.jpeg_quality <= 100:
            raise ConfigValidationError(f"jpeg_quality must be int in 1-100, got {self.jpeg_quality}")

        if self.max_pages is not None and (not isinstance(self.max_pages, int) or self.max_pages <= 0):
            raise ConfigValidationError(f"max_pages must be positive int or None, got {self.max_pages}")

        for name in ("lookahead_pages", "lookback_pages"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise ConfigValidationError(f"{name} must be non-negative int, got {value}")

        for name in ("staging_folder", "manifest_name"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value or "/" in value:
                raise ConfigValidationError(f"{name} must be a non-empty single path segment, got {value!r}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigValidationError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Settings as a dict, API key masked."""
        return {
            "api_key": "***" if self.api_key else "",
            "model": self.model,
            "render_scale": self.render_scale,
            "jpeg_quality": self.jpeg_quality,
            "max_pages": self.max_pages,
            "lookahead_pages": self.lookahead_pages,
            "lookback_pages": self.lookback_pages,
            "staging_folder": self.staging_folder,
            "manifest_name": self.manifest_name,
            "taxonomy_file": self.taxonomy_file,
            "scheduler": {
                "max_concurrent": self.scheduler.max_concurrent,
                "rate_limit_interval_s": self.scheduler.rate_limit_interval_s,
                "retry_attempts": self.scheduler.retry_attempts,
                "retry_delay_s": self.scheduler.retry_delay_s,
            },
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SplitterConfig":
        """Build from a dict, ignoring unknown keys.

        Raises:
            ConfigValidationError: on invalid values
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: Path) -> "SplitterConfig":
        """Load a YAML mapping; the API key still falls back to the environment."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{path} must contain a mapping, got {type(data).__name__}")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "SplitterConfig":
        """Defaults overridden by MSI_* environment variables."""
        max_pages = _env_int("MSI_MAX_PAGES", 0)
        return cls(
            model=os.getenv("MSI_SPLITTER_MODEL", DEFAULT_MODEL),
            max_pages=max_pages or None,
            taxonomy_file=os.getenv("MSI_TAXONOMY_FILE") or None,
            scheduler=SchedulerConfig(
                rate_limit_interval_s=_env_float("MSI_RATE_LIMIT_S", DEFAULT_RATE_LIMIT_S),
                retry_attempts=_env_int("MSI_RETRY_ATTEMPTS", 3),
                retry_delay_s=_env_float("MSI_RETRY_DELAY_S", 2.0),
            ),
            log_level=os.getenv("MSI_LOG_LEVEL", "INFO"),
        )


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_STAGING_FOLDER",
    "DEFAULT_MANIFEST_NAME",
    "DEFAULT_RATE_LIMIT_S",
    "SchedulerConfig",
    "SplitterConfig",
]
