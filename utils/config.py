"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    return float(value) if value else None


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "standard"))

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))

    # Matching
    default_min_score: int = field(
        default_factory=lambda: int(os.getenv("MATCH_DEFAULT_MIN_SCORE", "60"))
    )
    default_limit: int = field(default_factory=lambda: int(os.getenv("MATCH_DEFAULT_LIMIT", "20")))
    max_limit: int = field(default_factory=lambda: int(os.getenv("MATCH_MAX_LIMIT", "50")))
    workers: int = field(
        default_factory=lambda: int(os.getenv("MATCH_WORKERS", str(os.cpu_count() or 1)))
    )
    parallel_threshold: int = field(
        default_factory=lambda: int(os.getenv("MATCH_PARALLEL_THRESHOLD", "500"))
    )
    deadline_seconds: Optional[float] = field(
        default_factory=lambda: _optional_float("MATCH_DEADLINE_SECONDS")
    )

    # New-listing digest
    digest_min_score: int = field(default_factory=lambda: int(os.getenv("DIGEST_MIN_SCORE", "85")))
    digest_window_hours: int = field(
        default_factory=lambda: int(os.getenv("DIGEST_WINDOW_HOURS", "24"))
    )

    def __post_init__(self):
        """Validate configuration after loading."""
        if not 0 <= self.default_min_score <= 100:
            raise ValueError("MATCH_DEFAULT_MIN_SCORE must be between 0 and 100")
        if not 0 <= self.digest_min_score <= 100:
            raise ValueError("DIGEST_MIN_SCORE must be between 0 and 100")
        if self.max_limit < 1 or self.default_limit < 1:
            raise ValueError("MATCH_MAX_LIMIT and MATCH_DEFAULT_LIMIT must be positive")
        if self.workers < 1:
            raise ValueError("MATCH_WORKERS must be at least 1")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError("MATCH_DEADLINE_SECONDS must be positive")

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def preferences_path(self) -> str:
        return str(Path(self.data_dir) / "preferences.json")

    @property
    def properties_path(self) -> str:
        return str(Path(self.data_dir) / "properties.json")

    def match_policy(self):
        """Build the matching engine policy from this configuration."""
        from core.matching.engine import MatchPolicy

        return MatchPolicy(
            default_min_score=self.default_min_score,
            default_limit=self.default_limit,
            max_limit=self.max_limit,
            workers=self.workers,
            parallel_threshold=self.parallel_threshold,
            deadline_seconds=self.deadline_seconds,
            digest_min_score=self.digest_min_score,
            digest_window=timedelta(hours=self.digest_window_hours),
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "data_dir": self.data_dir,
            "default_min_score": self.default_min_score,
            "default_limit": self.default_limit,
            "max_limit": self.max_limit,
            "workers": self.workers,
            "parallel_threshold": self.parallel_threshold,
            "deadline_seconds": self.deadline_seconds,
            "digest_min_score": self.digest_min_score,
            "digest_window_hours": self.digest_window_hours,
        }
