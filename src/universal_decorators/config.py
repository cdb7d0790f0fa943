"""
Configuration management for the decorators.

Resolves default cache sizes and levels from explicit arguments,
environment variables and built-in defaults.
"""

import logging
import os

from .constants import (
    CACHE_MODES,
    DEFAULT_CACHE_MODE,
    DEFAULT_CACHE_SIZE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROTECTION_LEVEL,
    LOG_LEVELS,
    PROTECTION_LEVELS,
)

logger = logging.getLogger(__name__)


class DecoratorConfig:
    """Configuration manager for the decorators.

    Precedence rules:

    1. Explicit decorator parameter (highest precedence)
    2. Environment variable
    3. Default value (lowest precedence)

    Invalid environment values are ignored with a warning.
    """

    # Environment variable names
    ENV_CACHE_MODE = "UNIVERSAL_DECORATORS_CACHE_MODE"
    ENV_CACHE_SIZE = "UNIVERSAL_DECORATORS_CACHE_SIZE"
    ENV_PROTECTION_LEVEL = "UNIVERSAL_DECORATORS_PROTECTION_LEVEL"
    ENV_LOG_LEVEL = "UNIVERSAL_DECORATORS_LOG_LEVEL"

    @classmethod
    def resolve_cache_mode(cls, explicit_value: str | None = None) -> str:
        """Resolve cache mode following precedence rules.

        Args:
            explicit_value: Explicit mode from decorator parameter

        Returns:
            Resolved cache mode
        """
        if explicit_value is not None:
            return explicit_value

        return cls._choice_from_env(cls.ENV_CACHE_MODE, CACHE_MODES, DEFAULT_CACHE_MODE)

    @classmethod
    def resolve_cache_size(cls, explicit_value: int | None = None) -> int:
        """Resolve the balanced cache size following precedence rules.

        Args:
            explicit_value: Explicit size from decorator parameter

        Returns:
            Resolved cache size
        """
        if explicit_value is not None:
            return explicit_value

        env_value = os.getenv(cls.ENV_CACHE_SIZE)
        if env_value:
            try:
                size = int(env_value)
            except ValueError:
                size = -1
            if size >= 0:
                return size
            logger.warning(f"Ignoring invalid {cls.ENV_CACHE_SIZE}={env_value!r}")

        return DEFAULT_CACHE_SIZE

    @classmethod
    def resolve_protection_level(cls, explicit_value: str | None = None) -> str:
        """Resolve protection level following precedence rules."""
        if explicit_value is not None:
            return explicit_value

        return cls._choice_from_env(cls.ENV_PROTECTION_LEVEL, tuple(PROTECTION_LEVELS), DEFAULT_PROTECTION_LEVEL)

    @classmethod
    def resolve_log_level(cls, explicit_value: str | None = None) -> str:
        """Resolve execution log level following precedence rules."""
        if explicit_value is not None:
            return explicit_value

        return cls._choice_from_env(cls.ENV_LOG_LEVEL, LOG_LEVELS, DEFAULT_LOG_LEVEL)

    @classmethod
    def validate_choice(cls, name: str, value: str, choices: tuple[str, ...] | list[str]) -> None:
        """Validate an enumerated parameter.

        Args:
            name: Parameter name (used in the error message)
            value: Value to validate
            choices: Accepted values

        Raises:
            ValueError: If value is not one of choices
        """
        if value not in choices:
            raise ValueError(f"{name} must be one of {', '.join(choices)}, got {value!r}")

    @classmethod
    def validate_non_negative(cls, name: str, value: float) -> None:
        """Validate a size, delay or interval parameter.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")

    @classmethod
    def validate_positive(cls, name: str, value: float) -> None:
        """Validate a count or limit parameter.

        Raises:
            ValueError: If value is not positive
        """
        if value <= 0:
            raise ValueError(f"{name} must be > 0, got {value}")

    @classmethod
    def _choice_from_env(cls, env_name: str, choices: tuple[str, ...], default: str) -> str:
        """Read an enumerated value from the environment."""
        env_value = os.getenv(env_name)
        if not env_value:
            return default

        normalized = env_value.strip().lower()
        if normalized in choices:
            return normalized

        logger.warning(f"Ignoring invalid {env_name}={env_value!r}")
        return default
