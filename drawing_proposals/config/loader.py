"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors.system_failures import ConfigurationError
from .defaults import EngineConfig, get_default_config
from .validation import ConfigValidator


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: EngineConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=config_dir,
            defaults=get_default_config(),
        )

    def load_symbol_config(self, symbol: str) -> dict[str, Any]:
        """Load symbol-specific configuration overrides."""
        symbols_file = self.config_dir / "symbols.yaml"

        if not symbols_file.exists():
            return {}

        with open(symbols_file) as f:
            symbols_config = yaml.safe_load(f) or {}

        return symbols_config.get("symbols", {}).get(symbol, {})  # type: ignore[no-any-return]

    def merge_config(
        self,
        symbol: str,
        request_overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-request overrides (highest priority)
        2. Symbol-specific overrides
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        symbol_config = self.load_symbol_config(symbol)
        config = self._deep_merge(config, symbol_config)

        if request_overrides:
            config = self._deep_merge(config, request_overrides)

        return config

    def load(
        self,
        symbol: str,
        request_overrides: Optional[dict[str, Any]] = None
    ) -> EngineConfig:
        """Merge and validate configuration for a symbol, returning typed params."""
        merged = self.merge_config(symbol, request_overrides)

        issues = ConfigValidator.validate_config(merged)
        if issues:
            raise ConfigurationError(
                f"Invalid configuration for {symbol}: "
                + "; ".join(f"{i.field}: {i.message}" for i in issues),
                config_section="symbols",
                context={"symbol": symbol, "issues": [i.field for i in issues]},
            )

        return config_from_dict(merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def config_from_dict(data: dict[str, Any]) -> EngineConfig:
    """Rebuild an EngineConfig from a (possibly partial) nested dictionary.

    Sections and keys missing from ``data`` keep their defaults; unknown keys
    are rejected so that typos in YAML files surface immediately.
    """
    defaults = get_default_config()
    sections = {}

    for section in fields(EngineConfig):
        default_params = getattr(defaults, section.name)
        overrides = data.get(section.name, {}) or {}
        known = {f.name for f in fields(default_params)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in '{section.name}': {sorted(unknown)}",
                config_section=section.name,
            )

        values = {}
        for name in known:
            value = overrides.get(name, getattr(default_params, name))
            # YAML has no tuples
            if isinstance(value, list):
                value = tuple(value)
            values[name] = value
        sections[section.name] = type(default_params)(**values)

    return EngineConfig(**sections)
