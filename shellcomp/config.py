"""Engine settings with typed access and schema defaults.

Settings come from `SHELLCOMP_*` environment variables. They only tune the
engine (timeouts, descriptions); the host program's own configuration is not
shellcomp's business.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .constants import DEFAULT_COMMAND_TIMEOUT

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

__all__ = [
    "BOOL_FALSE_STRINGS",
    "BOOL_TRUE_STRINGS",
    "SETTINGS_SCHEMA",
    "ConfigField",
    "Configuration",
    "coerce_to_bool",
    "load_configuration",
]

ConfigValueType = float | bool | str | int

BOOL_TRUE_STRINGS = frozenset({"true", "yes", "on", "1", "enabled"})
BOOL_FALSE_STRINGS = frozenset({"false", "no", "off", "0", "disabled"})


def coerce_to_bool(value: ConfigValueType | None, default: bool = False) -> bool:
    """Coerce a value to boolean, handling loose typing.

    Args:
        value: The value to coerce
        default: Default value if value is None

    Returns:
        The boolean value

    Behavior:
        - None → default
        - Empty string → False
        - Explicit falsy strings ("false", "no", "off", "0", "disabled") → False
        - Any other non-empty string → True
        - Non-string values → bool(value)
    """
    if value is None:
        return default
    if isinstance(value, str):
        if not value.strip():
            return False
        return value.lower().strip() not in BOOL_FALSE_STRINGS
    return bool(value)


@dataclass(frozen=True)
class ConfigField:
    """A known setting.

    Attributes:
        name: The configuration key
        env: Environment variable providing the value
        default: Value used when the variable is not set
        description: Human-readable description
    """

    name: str
    env: str
    default: ConfigValueType
    description: str = ""


SETTINGS_SCHEMA: tuple[ConfigField, ...] = (
    ConfigField(
        "command_timeout",
        "SHELLCOMP_COMMAND_TIMEOUT",
        DEFAULT_COMMAND_TIMEOUT,
        "Seconds allowed to a shell command producing completion values",
    ),
    ConfigField("include_descriptions", "SHELLCOMP_DESCRIPTIONS", True, "Embed descriptions in generated scripts"),
    ConfigField("debug", "SHELLCOMP_DEBUG", False, "Verbose logging"),
)


class Configuration(dict):
    """Configuration wrapper providing typed access and schema defaults."""

    def __init__(
        self,
        *args: Any,  # noqa: ANN401
        logger: logging.Logger,
        schema: tuple[ConfigField, ...] = SETTINGS_SCHEMA,
        **kwargs: Any,  # noqa: ANN401
    ):
        """Initialize the configuration object.

        Args:
            *args: Arguments for dict
            logger: Logger instance to use for warnings
            schema: ConfigField definitions providing defaults
            **kwargs: Keyword arguments for dict
        """
        super().__init__(*args, **kwargs)
        self.log = logger
        self._schema_defaults = {field.name: field.default for field in schema}

    def get(self, name: str, default: ConfigValueType | None = None) -> ConfigValueType | None:  # type: ignore[override]
        """Get a value with schema-aware defaults.

        Args:
            name: The configuration key
            default: Fallback if key is missing and not in schema defaults

        Returns:
            The value, schema default, or provided default
        """
        if name in self:
            return dict.get(self, name)  # type: ignore[no-any-return]
        if name in self._schema_defaults:
            return self._schema_defaults[name]
        return default

    def get_bool(self, name: str, default: bool = False) -> bool:
        """Get a boolean value, handling loose typing (see `coerce_to_bool`)."""
        return coerce_to_bool(self.get(name), default)

    def get_float(self, name: str, default: float = 0.0) -> float:
        """Get a float value.

        Args:
            name: The key name
            default: Default value if key is missing or invalid

        Returns:
            The float value
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except (ValueError, TypeError):
            self.log.warning("Invalid float value for %s: %s", name, value)
            return default


def load_configuration(logger: logging.Logger, environ: Mapping[str, str] | None = None) -> Configuration:
    """Build the settings from environment variables.

    Args:
        logger: Logger used by the configuration for warnings
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The configuration, holding only explicitly set values
    """
    if environ is None:
        environ = os.environ
    values = {field.name: environ[field.env] for field in SETTINGS_SCHEMA if environ.get(field.env) is not None}
    return Configuration(values, logger=logger)
