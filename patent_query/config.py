"""Configuration management for patent-query."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from patent_query.exceptions import (
    ConfigParseError,
    ConfigValidationError,
)

OUTPUT_FORMATS = ("text", "json")

DEFAULT_MAX_ENTITIES_PER_KIND = 30
DEFAULT_TOKEN_LENGTH = 5


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "patent-query" / "config.toml"


@dataclass
class Config:
    """Application configuration.

    Attributes:
        max_entities_per_kind: Cap on word, classification and expression
            entities (each kind counted separately).
        token_length: Length of generated anonymous word tokens.
        colored_output: Whether to use colored terminal output.
        expand_variants: Whether imported words get case/width variants.
        output_format: Default output of ``render`` (``text`` or ``json``).
        config_path: Path where config was loaded from (None if defaults).
    """

    max_entities_per_kind: int = DEFAULT_MAX_ENTITIES_PER_KIND
    token_length: int = DEFAULT_TOKEN_LENGTH
    colored_output: bool = True
    expand_variants: bool = True
    output_format: str = "text"
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.

        Raises:
            ConfigValidationError: If a critical validation fails.
        """
        warnings: list[str] = []

        if self.max_entities_per_kind < 1:
            raise ConfigValidationError(
                "store.max_entities_per_kind", self.max_entities_per_kind, "must be at least 1"
            )
        if self.token_length < 1:
            raise ConfigValidationError(
                "store.token_length", self.token_length, "must be at least 1"
            )
        if self.token_length < 3:
            warnings.append(
                f"store.token_length={self.token_length} is short; "
                f"generated tokens may clash with real words"
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigValidationError(
                "output.format",
                self.output_format,
                f"must be one of: {', '.join(OUTPUT_FORMATS)}",
            )

        return warnings


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(
            f"No config file found at {config_path}. Using defaults. "
            f"Create config with: patent-query init-config"
        )
        return config, warnings + config.validate()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    config_warnings = config.validate()

    return config, warnings + config_warnings


def _int_value(section: dict[str, Any], name: str, key: str) -> int:
    value = section[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(key, value, "must be an integer")
    return value


def _bool_value(section: dict[str, Any], name: str, key: str) -> bool:
    value = section[name]
    if not isinstance(value, bool):
        raise ConfigValidationError(key, value, "must be a boolean")
    return value


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [store] section
    store = data.get("store", {})
    if "max_entities_per_kind" in store:
        config.max_entities_per_kind = _int_value(
            store, "max_entities_per_kind", "store.max_entities_per_kind"
        )
    if "token_length" in store:
        config.token_length = _int_value(store, "token_length", "store.token_length")

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        config.colored_output = _bool_value(display, "colored_output", "display.colored_output")

    # Parse [import] section
    import_section = data.get("import", {})
    if "expand_variants" in import_section:
        config.expand_variants = _bool_value(
            import_section, "expand_variants", "import.expand_variants"
        )

    # Parse [output] section
    output = data.get("output", {})
    if "format" in output:
        value = output["format"]
        if not isinstance(value, str):
            raise ConfigValidationError("output.format", value, "must be a string")
        config.output_format = value

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {
        "store": {
            "max_entities_per_kind": config.max_entities_per_kind,
            "token_length": config.token_length,
        },
        "display": {
            "colored_output": config.colored_output,
        },
        "import": {
            "expand_variants": config.expand_variants,
        },
        "output": {
            "format": config.output_format,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
