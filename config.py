"""Configuration management for the Signalboard feedback pipeline.

This module provides centralized configuration for all components.
All settings are loaded from environment variables with sensible defaults.

Environment Variables:
    Models (provider:model):
        CLASSIFIER_MODEL: Model used to classify single feedback items
        SUMMARY_MODEL: Model used to aggregate feedback into digests

        Supported formats:
            cloudflare:@cf/meta/llama-3-8b-instruct   Cloudflare Workers AI
            openai:{model}@http://127.0.0.1:8080/v1   Local OpenAI-compatible server
            google-gla:gemini-3-flash-preview          Any PydanticAI model string

    Credentials:
        CLOUDFLARE_ACCOUNT_ID: Workers AI account (cloudflare: models)
        CLOUDFLARE_API_TOKEN: Workers AI API token (cloudflare: models)
        GEMINI_API_KEY: Google AI key (google-gla: models)

    Generation:
        CLASSIFY_MAX_TOKENS: Output cap for a classification call
        DIGEST_MAX_TOKENS: Output cap for a digest call
        GENERATION_TIMEOUT_SECONDS: Upper bound on a single model call

    Storage & Output:
        DB_PATH: SQLite database file path
        REPORTS_DIR: Directory for digest markdown files
        LOG_DIR: Directory for log files

    Behavior:
        MAX_WORKERS: Maximum concurrent classification calls during import

    Optional Features:
        ENABLE_LOGFIRE: Enable Logfire/OpenTelemetry tracing

    Logging:
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TypeVar

DEFAULT_MODEL = "cloudflare:@cf/meta/llama-3-8b-instruct"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_T = TypeVar("_T", int, float)

_TRUE = frozenset(("1", "true", "yes", "on"))
_FALSE = frozenset(("0", "false", "no", "off"))


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_number(key: str, default: _T, cast: Callable[[str], _T]) -> _T:
    """Read a numeric variable; unset or empty means default.

    Raises:
        ValueError: If the variable is set to something cast() rejects
    """
    raw = os.environ.get(key, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid {cast.__name__} value for {key}: '{raw}'") from None


def _env_int(key: str, default: int) -> int:
    return _env_number(key, default, int)


def _env_float(key: str, default: float) -> float:
    return _env_number(key, default, float)


def _env_bool(key: str, default: bool = False) -> bool:
    """Read a flag: 1/true/yes/on or 0/false/no/off; anything else is default."""
    raw = os.environ.get(key, "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return default


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    Use Config.load() to create an instance with values from the environment.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === AI Models ===
    classifier_model: str = DEFAULT_MODEL  # CLASSIFIER_MODEL
    summary_model: str = DEFAULT_MODEL  # SUMMARY_MODEL

    # === Credentials ===
    cloudflare_account_id: str = ""  # CLOUDFLARE_ACCOUNT_ID
    cloudflare_api_token: str = ""  # CLOUDFLARE_API_TOKEN
    gemini_api_key: str = ""  # GEMINI_API_KEY

    # === Generation Limits ===
    classify_max_tokens: int = 200  # CLASSIFY_MAX_TOKENS - short structured answer
    digest_max_tokens: int = 500  # DIGEST_MAX_TOKENS - richer free text
    generation_timeout_seconds: float = 60.0  # GENERATION_TIMEOUT_SECONDS

    # === Database ===
    db_path: Path = field(default_factory=lambda: Path("signalboard.db"))  # DB_PATH

    # === Behavior ===
    max_workers: int = 8  # MAX_WORKERS - Concurrent classification calls

    # === Output Directories ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR
    reports_dir: Path = field(default_factory=lambda: Path("reports"))  # REPORTS_DIR

    # === Logging Configuration ===
    log_level: str = "INFO"  # LOG_LEVEL
    log_backup_count: int = 30  # LOG_BACKUP_COUNT
    log_max_bytes: int = 0  # LOG_MAX_BYTES - 0 = time-based rotation
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json'

    # === Optional: Observability ===
    # Requires: pip install logfire
    enable_logfire: bool = False  # ENABLE_LOGFIRE
    logfire_token: str = ""  # LOGFIRE_TOKEN

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            classifier_model=_env("CLASSIFIER_MODEL", DEFAULT_MODEL),
            summary_model=_env("SUMMARY_MODEL", DEFAULT_MODEL),
            cloudflare_account_id=_env("CLOUDFLARE_ACCOUNT_ID"),
            cloudflare_api_token=_env("CLOUDFLARE_API_TOKEN"),
            gemini_api_key=_env("GEMINI_API_KEY"),
            classify_max_tokens=_env_int("CLASSIFY_MAX_TOKENS", 200),
            digest_max_tokens=_env_int("DIGEST_MAX_TOKENS", 500),
            generation_timeout_seconds=_env_float("GENERATION_TIMEOUT_SECONDS", 60.0),
            db_path=Path(_env("DB_PATH", "signalboard.db")),
            max_workers=_env_int("MAX_WORKERS", 8),
            log_dir=Path(_env("LOG_DIR", "log")),
            reports_dir=Path(_env("REPORTS_DIR", "reports")),
            enable_logfire=_env_bool("ENABLE_LOGFIRE", False),
            logfire_token=_env("LOGFIRE_TOKEN"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 30),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
        )

    def validate(self) -> str | None:
        """Validate configuration for required fields and valid values.

        Checks:
            - Credentials exist for the providers named by the model strings
            - Token caps, timeout and worker counts are positive
            - Logging settings are recognised

        Returns:
            Error message string if invalid, None if valid.
        """
        for model in (self.classifier_model, self.summary_model):
            if not model:
                return "CLASSIFIER_MODEL and SUMMARY_MODEL must not be empty"
            if model.startswith("cloudflare:"):
                if not self.cloudflare_account_id or not self.cloudflare_api_token:
                    return (
                        "CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required "
                        f"for model '{model}'"
                    )
            elif model.startswith("google-gla:") and not self.gemini_api_key:
                return f"GEMINI_API_KEY environment variable is required for model '{model}'"
        positive = {
            "CLASSIFY_MAX_TOKENS": self.classify_max_tokens,
            "DIGEST_MAX_TOKENS": self.digest_max_tokens,
            "GENERATION_TIMEOUT_SECONDS": self.generation_timeout_seconds,
            "MAX_WORKERS": self.max_workers,
        }
        for name, value in positive.items():
            if value <= 0:
                return f"{name} must be positive (got {value})"
        if self.log_level not in LOG_LEVELS:
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be one of {', '.join(LOG_LEVELS)}"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0 or self.log_max_bytes < 0:
            return "LOG_BACKUP_COUNT and LOG_MAX_BYTES must be non-negative"
        return None
