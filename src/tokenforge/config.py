"""Build settings for TokenForge."""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .theme_engine.schema import ContrastStandard
from .theme_engine.typegen import DEFAULT_MODULE_NAME

logger = logging.getLogger(__name__)


CONFIG_FILE_NAME = "tokenforge.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class BuildSettings:
    """Project-level settings for a theme build."""

    # Inputs
    plugins_dir: str = "plugins"
    plugins: List[str] = field(default_factory=lambda: ["primitives", "core"])

    # Outputs
    output_dir: str = "dist/theme"
    types_output: Optional[str] = "dist/theme/theme-colors.d.ts"
    module_name: str = DEFAULT_MODULE_NAME
    include_jsdoc: bool = True

    # Validation
    contrast_standard: str = "AA"
    fail_on_contrast: bool = False

    log_level: str = "INFO"

    def __post_init__(self):
        """Normalize and check enumerated settings."""
        self.contrast_standard = str(self.contrast_standard).upper()
        if self.contrast_standard not in (s.value for s in ContrastStandard):
            raise ValueError(f"contrast_standard must be AA or AAA, got '{self.contrast_standard}'")

        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'")

        self.plugins = list(self.plugins or [])

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_yaml(self) -> str:
        """Serialize settings to YAML."""
        return yaml.dump(self.to_dict(), default_flow_style=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuildSettings":
        """Create settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "BuildSettings":
        """Deserialize settings from YAML."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ValueError("Settings file must contain a mapping")
        return cls.from_dict(data)


class Config:
    """Settings manager for TokenForge."""

    _instance: Optional[BuildSettings] = None
    _path: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> BuildSettings:
        """Load settings from file, falling back to defaults when it is absent.

        Raises:
            ValueError: If the file exists but is invalid
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILE_NAME
        config_path = Path(config_path)

        if cls._instance is not None and cls._path == config_path:
            return cls._instance

        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    settings = BuildSettings.from_yaml(f.read())
            except (yaml.YAMLError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid settings in {config_path}: {e}") from e
            logger.debug(f"Loaded settings from {config_path}")
        else:
            settings = BuildSettings()
            logger.debug(f"No settings file at {config_path}, using defaults")

        cls._instance = settings
        cls._path = config_path
        return settings

    @classmethod
    def save(cls, settings: BuildSettings, config_path: Optional[Path] = None) -> Path:
        """Save settings to file."""
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILE_NAME
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            f.write(settings.to_yaml())
        logger.info(f"Settings saved to {config_path}")
        return config_path

    @classmethod
    def get(cls) -> BuildSettings:
        """Get the current settings instance."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reload(cls) -> BuildSettings:
        """Reload settings from the last loaded file."""
        path = cls._path
        cls._instance = None
        return cls.load(path)


def get_config() -> BuildSettings:
    """Get the current settings."""
    return Config.get()


def load_config(config_path: Optional[Path] = None) -> BuildSettings:
    """Load settings from file."""
    return Config.load(config_path)


def save_config(settings: BuildSettings, config_path: Optional[Path] = None) -> Path:
    """Save settings to file."""
    return Config.save(settings, config_path)
