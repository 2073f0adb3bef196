"""
Configuration management for the session service.

Settings are loaded with pydantic-settings from environment variables
prefixed with ``SESSION_`` and from ``.env`` / ``.env.<environment>``
files. Invalid or missing values fail fast with a ConfigurationError that
lists every offending field.
"""

import os
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """Environment named by SESSION_ENVIRONMENT or ENVIRONMENT, else DEVELOPMENT."""
    raw = os.environ.get("SESSION_ENVIRONMENT") or os.environ.get("ENVIRONMENT", "")
    try:
        return Environment(raw.strip().lower())
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    # Later files override earlier ones; missing files are skipped.
    return (".env", f".env.{environment.value}")


class Settings(BaseSettings):
    """
    Session settings loaded from ``SESSION_*`` environment variables.

    ``max_age`` is used both as the cookie Max-Age and as the store TTL.
    ``keys`` enables cookie signing when non-empty; the first key signs,
    every key verifies, so keys can be rotated by prepending a new one.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        validation_alias=AliasChoices("SESSION_ENVIRONMENT", "ENVIRONMENT"),
        description="Deployment environment (development, staging, production)"
    )

    # Cookie
    cookie_key: str = Field(
        default="sess",
        description="Name of the cookie carrying the session identifier"
    )
    max_age: int = Field(
        default=86400,
        ge=1,
        description="Session lifetime in seconds (cookie Max-Age and store TTL)"
    )
    cookie_path: str = Field(default="/")
    cookie_domain: Optional[str] = Field(default=None)
    cookie_secure: bool = Field(default=False)
    cookie_httponly: bool = Field(default=True)
    cookie_samesite: str = Field(
        default="lax",
        description="SameSite attribute: lax, strict or none"
    )
    keys: List[str] = Field(
        default_factory=list,
        description="Cookie signing keys, newest first"
    )

    # Store
    store_type: str = Field(
        default="memory",
        description="Session store type: 'memory' or 'redis'"
    )
    memory_size: int = Field(
        default=10000,
        ge=1,
        description="Maximum number of sessions held by the memory store"
    )
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the redis store"
    )

    # Identifiers
    id_strategy: str = Field(
        default="random",
        description="Identifier strategy: 'random' or 'ordered'"
    )
    id_prefix: str = Field(default="")

    # Commit
    commit_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Commit attempts made by SessionMiddleware before giving up"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("cookie_key")
    @classmethod
    def validate_cookie_key(cls, v: str) -> str:
        """Validate that cookie_key is a non-empty token."""
        v = v.strip()
        if not v:
            raise ValueError("cookie_key cannot be empty")
        if any(c in v for c in " ;,="):
            raise ValueError("cookie_key must not contain spaces, ';', ',' or '='")
        return v

    @field_validator("cookie_samesite")
    @classmethod
    def validate_cookie_samesite(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"lax", "strict", "none"}:
            raise ValueError("cookie_samesite must be one of: lax, strict, none")
        return v

    @field_validator("keys")
    @classmethod
    def validate_keys(cls, v: List[str]) -> List[str]:
        """Reject blank signing keys."""
        keys = [key.strip() for key in v]
        if any(not key for key in keys):
            raise ValueError("keys must not contain empty values")
        return keys

    @field_validator("store_type")
    @classmethod
    def validate_store_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"memory", "redis"}:
            raise ValueError("store_type must be 'memory' or 'redis'")
        return v

    @field_validator("id_strategy")
    @classmethod
    def validate_id_strategy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"random", "ordered"}:
            raise ValueError("id_strategy must be 'random' or 'ordered'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @model_validator(mode="after")
    def validate_environment_requirements(self) -> "Settings":
        """Check the settings that only matter outside development."""
        if self.environment == Environment.DEVELOPMENT:
            return self
        if self.store_type == "redis" and not self.redis_url:
            raise ValueError(
                "redis_url is required when store_type is 'redis' "
                "in non-development environments"
            )
        if self.environment == Environment.PRODUCTION and not self.keys:
            raise ValueError("keys are required in production so session cookies are signed")
        return self


class ConfigurationError(Exception):
    """
    Exception raised when configuration is missing or unusable.

    Also raised when a session or store is constructed without a backend,
    since there is no sane runtime behaviour to fall back to.
    """

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Render the message followed by one line per offending field."""
        lines = [self.message]
        if self.missing_fields:
            lines.append("Missing required fields: " + ", ".join(self.missing_fields))
        if self.invalid_fields:
            lines.append("Invalid field values:")
            lines.extend(f"  - {name}: {error}" for name, error in self.invalid_fields.items())
        return "\n".join(lines)

    @classmethod
    def from_validation_error(cls, message: str, error: ValidationError) -> "ConfigurationError":
        missing, invalid = [], {}
        for item in error.errors():
            name = ".".join(str(loc) for loc in item.get("loc", ())) or "settings"
            if item.get("type") == "missing":
                missing.append(name)
            else:
                invalid[name] = item.get("msg", "invalid value")
        return cls(message, missing_fields=missing, invalid_fields=invalid)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Load Settings using the .env files of an environment.

    Args:
        environment: Selects which ``.env.<environment>`` file is read.
            Detected from the ENVIRONMENT variable when not provided.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    environment = environment or _detect_environment()
    try:
        return Settings(_env_file=_get_env_files(environment))
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            f"Failed to load session configuration for environment '{environment.value}'", e
        ) from e


_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the settings singleton, loading it on first use.

    Raises:
        ConfigurationError: If settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() reloads."""
    global _settings_cache
    _settings_cache = None
