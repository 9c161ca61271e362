"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .defaults import (
    DefaultConfig,
    HistoryParams,
    LoggingParams,
    NotificationParams,
    SchedulerParams,
    StorageParams,
    TimerParams,
    get_default_config,
)

CONFIG_FILE_NAME = "tomato.yaml"

_SECTION_TYPES = {
    "timer": TimerParams,
    "storage": StorageParams,
    "history": HistoryParams,
    "scheduler": SchedulerParams,
    "notifications": NotificationParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Union[str, Path]] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from tomato.yaml, or an empty dict when absent."""
        config_file = self.config_dir / CONFIG_FILE_NAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_file} must contain a mapping at the top level")

        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. tomato.yaml in the config directory
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """Merge all tiers and build the typed configuration."""
        return self.build_config(self.merge_config(overrides))

    @staticmethod
    def build_config(config: dict[str, Any]) -> DefaultConfig:
        """Build typed configuration from a merged dict, ignoring unknown keys."""
        sections = {}
        for section, section_type in _SECTION_TYPES.items():
            known = {f.name for f in fields(section_type)}
            values = config.get(section) or {}
            sections[section] = section_type(**{k: v for k, v in values.items() if k in known})
        return DefaultConfig(**sections)

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
