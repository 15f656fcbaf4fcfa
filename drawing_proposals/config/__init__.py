"""Engine configuration: defaults, YAML overrides and validation."""

from .defaults import EngineConfig, get_default_config
from .loader import ConfigLoader, config_from_dict

__all__ = ["EngineConfig", "get_default_config", "ConfigLoader", "config_from_dict"]
