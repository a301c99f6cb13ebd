"""TokenForge - plugin-composed design token themes with OKLCH color scales."""

__version__ = "0.1.0"
__author__ = "TokenForge Team"

from .theme_engine import ThemeBuilder, ThemeConfig, build_theme
from .plugins import ThemePlugin, create_plugin

__all__ = ["ThemeBuilder", "ThemeConfig", "ThemePlugin", "build_theme", "create_plugin", "__version__"]
