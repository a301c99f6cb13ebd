"""Plugin registry for built-in presets, manifest plugins and Python plugins.

Declarative plugins are YAML manifests describing colors, theme variants,
design tokens and assets. The registry turns each manifest into a
``ThemePlugin`` whose ``register`` hook replays the manifest against the
builder, so manifest plugins and Python plugins go through the same pipeline.
"""

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from ..errors import ManifestError
from ..plugins import ThemePlugin, validate_plugin
from .schema import (
    AssetDefinition,
    ColorDefinition,
    DarkModeAdjustments,
    PluginDependency,
)
from .utils import hex_to_oklch

logger = logging.getLogger(__name__)


MAX_MANIFEST_BYTES = 256 * 1024
MANIFEST_SUFFIXES = ('.yaml', '.yml')
DIRECTORY_MANIFEST_NAME = 'plugin.yaml'

BUILTIN_PRESETS_DIR = Path(__file__).parent.parent / "theme_presets"


class ManifestVariant(BaseModel):
    """One theme variant in a manifest"""
    model_config = ConfigDict(extra='forbid')

    extends: Optional[str] = None
    tokens: Dict[str, Any] = Field(default_factory=dict)


class PluginManifest(BaseModel):
    """Schema of a declarative plugin file"""
    model_config = ConfigDict(extra='forbid')

    id: str
    version: str
    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    license: Optional[str] = None
    homepage: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    dependencies: List[Union[str, PluginDependency]] = Field(default_factory=list)
    peer_plugins: List[str] = Field(default_factory=list)

    colors: Dict[str, ColorDefinition] = Field(default_factory=dict)
    variants: Dict[str, ManifestVariant] = Field(default_factory=dict)
    design_tokens: Optional[Dict[str, Any]] = None
    dark_mode: Optional[DarkModeAdjustments] = None
    assets: List[AssetDefinition] = Field(default_factory=list)

    @field_validator('colors', mode='before')
    @classmethod
    def expand_hex_sources(cls, v):
        """Allow ``source: '#3b82f6'`` as shorthand for an OKLCH anchor."""
        if not isinstance(v, dict):
            return v
        colors = {}
        for name, definition in v.items():
            if isinstance(definition, str):
                definition = {'source': definition}
            if isinstance(definition, dict) and isinstance(definition.get('source'), str):
                definition = dict(definition)
                definition['source'] = hex_to_oklch(definition['source'])
            colors[name] = definition
        return colors

    @field_validator('variants', mode='before')
    @classmethod
    def wrap_bare_tokens(cls, v):
        """A variant given as a flat token mapping is shorthand for ``tokens:``."""
        if not isinstance(v, dict):
            return v
        variants = {}
        for name, variant in v.items():
            if isinstance(variant, dict) and not set(variant) <= {'extends', 'tokens'}:
                variant = {'tokens': variant}
            variants[name] = variant
        return variants


def _manifest_register(manifest: PluginManifest):
    """Build the register hook that replays a manifest against a builder."""

    def register(builder) -> None:
        if manifest.design_tokens:
            builder.merge_design_tokens(manifest.design_tokens)
        if manifest.dark_mode is not None:
            builder.set_dark_mode(manifest.dark_mode)

        for name, definition in manifest.colors.items():
            builder.add_color(name, definition)

        for name, variant in manifest.variants.items():
            if variant.extends:
                builder.extend_theme_variant(variant.extends, name, variant.tokens)
            else:
                builder.add_theme_variant(name, variant.tokens)

    return register


def plugin_from_manifest(manifest: PluginManifest, asset_root: Optional[Path] = None) -> ThemePlugin:
    """Create a ThemePlugin from a parsed manifest.

    Raises:
        ManifestError: If the resulting plugin is malformed
    """
    assets = list(manifest.assets)
    plugin = ThemePlugin(
        id=manifest.id,
        version=manifest.version,
        register=_manifest_register(manifest),
        name=manifest.name,
        description=manifest.description,
        author=manifest.author,
        license=manifest.license,
        homepage=manifest.homepage,
        tags=list(manifest.tags),
        dependencies=list(manifest.dependencies),
        peer_plugins=list(manifest.peer_plugins),
        get_assets=(lambda: list(assets)) if assets else None,
        asset_root=asset_root,
    )

    errors = validate_plugin(plugin)
    if errors:
        raise ManifestError(manifest.id, "; ".join(e.message for e in errors))
    return plugin


def load_plugin_manifest(path: Union[str, Path]) -> ThemePlugin:
    """Load a YAML plugin manifest.

    Directory-style plugins (``<dir>/plugin.yaml``) keep their assets in
    ``<dir>/assets``; single-file manifests use the default asset root.

    Args:
        path: Manifest file path

    Returns:
        ThemePlugin built from the manifest

    Raises:
        ManifestError: If the file is missing, too large, not a mapping,
            or fails schema validation
    """
    path = Path(path)
    if not path.is_file():
        raise ManifestError(str(path), "file not found")

    size = path.stat().st_size
    if size > MAX_MANIFEST_BYTES:
        raise ManifestError(str(path), f"file is {size} bytes (limit {MAX_MANIFEST_BYTES})")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ManifestError(str(path), f"invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(str(path), "top level must be a mapping")

    try:
        manifest = PluginManifest.model_validate(data)
    except PydanticValidationError as e:
        raise ManifestError(str(path), str(e)) from e

    asset_root = path.parent / 'assets' if path.name == DIRECTORY_MANIFEST_NAME else None
    logger.debug(f"Loaded plugin manifest '{manifest.id}' from {path}")
    return plugin_from_manifest(manifest, asset_root=asset_root)


def load_python_plugin(reference: str) -> Any:
    """Import a plugin object given as ``module:attribute``.

    A callable attribute that is not itself a plugin is called with no
    arguments and its return value used as the plugin.

    Raises:
        ManifestError: If the reference is malformed or does not resolve
            to a valid plugin
    """
    module_name, sep, attribute = reference.partition(':')
    if not sep or not module_name or not attribute:
        raise ManifestError(reference, "expected 'module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ManifestError(reference, f"cannot import module '{module_name}': {e}") from e

    target: Any = module
    for part in attribute.split('.'):
        if not hasattr(target, part):
            raise ManifestError(reference, f"'{module_name}' has no attribute '{attribute}'")
        target = getattr(target, part)

    if callable(target) and not hasattr(target, 'register'):
        target = target()

    errors = validate_plugin(target)
    if errors:
        raise ManifestError(reference, "; ".join(e.message for e in errors))
    return target


class PluginRegistry:
    """Discovers and caches available plugins."""

    def __init__(self, plugins_dir: Optional[Union[str, Path]] = None, include_builtin: bool = True):
        """Initialize the registry.

        Args:
            plugins_dir: Directory scanned for manifest plugins
            include_builtin: Also offer the bundled presets
        """
        self.plugins_dir = Path(plugins_dir) if plugins_dir else None
        self.include_builtin = include_builtin
        self._sources: Dict[str, Path] = {}
        self._builtin: Dict[str, Path] = {}
        self._cache: Dict[str, Any] = {}
        self.scan()

    def scan(self) -> None:
        """Rescan preset and plugin directories for manifests."""
        self._sources.clear()
        self._builtin.clear()
        self._cache.clear()

        if self.include_builtin:
            for path in self._manifest_files(BUILTIN_PRESETS_DIR):
                self._builtin[path.stem] = path

        if self.plugins_dir is None:
            return
        if not self.plugins_dir.is_dir():
            logger.warning(f"Plugins directory not found: {self.plugins_dir}")
            return

        for path in self._manifest_files(self.plugins_dir):
            name = path.parent.name if path.name == DIRECTORY_MANIFEST_NAME else path.stem
            self._sources[name] = path
            logger.debug(f"Found plugin manifest: {path}")

    @staticmethod
    def _manifest_files(directory: Path) -> List[Path]:
        if not directory.is_dir():
            return []
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix in MANIFEST_SUFFIXES]
        files += [p / DIRECTORY_MANIFEST_NAME for p in directory.iterdir()
                  if p.is_dir() and (p / DIRECTORY_MANIFEST_NAME).is_file()]
        return sorted(files)

    def builtin_names(self) -> List[str]:
        return sorted(self._builtin)

    def available(self) -> List[str]:
        """Names that ``load()`` accepts, user plugins first."""
        return sorted(self._sources) + [n for n in sorted(self._builtin) if n not in self._sources]

    def load(self, name: str) -> Any:
        """Load a plugin by manifest name or ``module:attribute`` reference.

        Plugins in the plugins directory shadow built-in presets of the
        same name.

        Raises:
            ManifestError: If the plugin cannot be found or loaded
        """
        if name in self._cache:
            return self._cache[name]

        if name in self._sources:
            plugin = load_plugin_manifest(self._sources[name])
        elif name in self._builtin:
            plugin = load_plugin_manifest(self._builtin[name])
        elif ':' in name:
            plugin = load_python_plugin(name)
        else:
            raise ManifestError(name, "plugin not found")

        self._cache[name] = plugin
        return plugin

    def load_many(self, names: List[str]) -> List[Any]:
        return [self.load(name) for name in names]

    def load_all(self) -> List[Any]:
        """Load every discovered manifest plugin.

        A built-in preset is skipped when a user plugin with the same id
        is present.
        """
        plugins = [self.load(name) for name in self.available()]
        seen: Dict[str, Any] = {}
        for plugin in plugins:
            seen.setdefault(plugin.id, plugin)
        return list(seen.values())

    def list_plugins(self) -> List[Dict[str, Any]]:
        """Metadata for every discovered plugin.

        Returns:
            List of plugin info dictionaries; entries that fail to load
            carry ``error`` instead of metadata
        """
        info = []
        for name in self.available():
            source = self._sources.get(name) or self._builtin[name]
            kind = 'user' if name in self._sources else 'builtin'
            try:
                plugin = self.load(name)
            except ManifestError as e:
                logger.error(f"Error loading plugin {name}: {e}")
                info.append({'name': name, 'type': kind, 'source': str(source), 'error': str(e)})
                continue
            entry = plugin.to_dict()
            entry.update({'name': name, 'type': kind, 'source': str(source)})
            info.append(entry)
        return info
