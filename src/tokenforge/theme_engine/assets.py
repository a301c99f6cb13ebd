"""Plugin asset collection, copying and @font-face generation.

Every asset path is untrusted plugin input. Collection rejects traversal,
null bytes, blocked or disallowed extensions and missing files with a
specific ``AssetSecurityError`` subclass; any rejection fails the build.
"""

import logging
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Sequence, Union
from urllib.parse import quote

from pydantic import TypeAdapter

from ..errors import (
    AssetNotFoundError,
    BlockedExtensionError,
    DisallowedExtensionError,
    NullByteError,
    PathTraversalError,
)
from ..plugins import get_hook
from .schema import AssetDefinition, AssetType, FontAssetDefinition

logger = logging.getLogger(__name__)


ALLOWED_EXTENSIONS: Dict[AssetType, frozenset] = {
    AssetType.FONT: frozenset({'.woff', '.woff2', '.ttf', '.otf', '.eot'}),
    AssetType.IMAGE: frozenset({'.png', '.jpg', '.jpeg', '.gif', '.webp', '.avif', '.svg'}),
    AssetType.ICON: frozenset({'.svg', '.ico'}),
    AssetType.OTHER: frozenset({'.txt', '.md', '.json', '.xml', '.license'}),
}

BLOCKED_EXTENSIONS = frozenset({
    '.exe', '.dll', '.so', '.dylib', '.sh', '.bash', '.bat', '.cmd', '.ps1',
    '.js', '.mjs', '.cjs', '.ts', '.php', '.py', '.rb', '.pl', '.jar', '.html', '.htm',
})

FONT_FORMATS = {
    'woff2': 'woff2',
    'woff': 'woff',
    'ttf': 'truetype',
    'otf': 'opentype',
    'eot': 'embedded-opentype',
}

MAX_ASSET_SIZE_BYTES = 5 * 1024 * 1024

_DRIVE_PATTERN = re.compile(r'^[A-Za-z]:')
_FONT_FAMILY_UNSAFE = re.compile(r'[\'"\\;{}()\n\r]')

_asset_adapter = TypeAdapter(AssetDefinition)


@dataclass(frozen=True)
class ResolvedAsset:
    """An asset that passed every security check"""
    definition: Any
    plugin_id: str
    source_path: Path
    target_path: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'definition': self.definition.model_dump(exclude_none=True),
            'plugin_id': self.plugin_id,
            'source_path': str(self.source_path),
            'target_path': self.target_path,
        }


@dataclass
class AssetCopyResult:
    """Outcome of copying resolved assets"""
    copied: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def resolve_asset_root(plugin: Any, plugins_dir: Union[str, Path]) -> Path:
    """Private asset directory of a plugin.

    Uses the plugin's own ``asset_root`` when set, otherwise
    ``<plugins_dir>/<plugin id>/assets``.
    """
    root = getattr(plugin, 'asset_root', None)
    if root:
        return Path(root)
    return Path(plugins_dir) / plugin.id / 'assets'


def validate_asset_path(plugin_id: str, path: str, asset_type: AssetType, asset_root: Path) -> Path:
    """Security-check one asset path and resolve it under the plugin root.

    Args:
        plugin_id: Owning plugin
        path: Asset path relative to the plugin asset root
        asset_type: Declared asset type
        asset_root: Plugin's private asset directory

    Returns:
        Resolved absolute source path

    Raises:
        NullByteError: Path contains a null byte
        PathTraversalError: Path is absolute, has '..' segments or escapes the root
        BlockedExtensionError: Path uses an executable/scripting extension
        DisallowedExtensionError: Extension not allowed for the asset type
        AssetNotFoundError: Source file does not exist
    """
    if '\0' in path:
        raise NullByteError(plugin_id, path.replace('\0', '\\0'), "path contains a null byte")

    if not path.strip():
        raise PathTraversalError(plugin_id, path, "path is empty")

    if path.startswith(('/', '\\')) or _DRIVE_PATTERN.match(path):
        raise PathTraversalError(plugin_id, path, "absolute paths are not allowed")

    normalized = path.replace('\\', '/')
    if '..' in normalized.split('/'):
        raise PathTraversalError(plugin_id, path, "path traversal ('..') is not allowed")

    pure = PurePosixPath(normalized)
    suffixes = [s.lower() for s in pure.suffixes]
    blocked = [s for s in suffixes if s in BLOCKED_EXTENSIONS]
    if blocked:
        raise BlockedExtensionError(plugin_id, path, f"extension '{blocked[0]}' is blocked")

    extension = pure.suffix.lower()
    allowed = ALLOWED_EXTENSIONS[AssetType(asset_type)]
    if extension not in allowed:
        raise DisallowedExtensionError(
            plugin_id,
            path,
            f"extension '{extension or '<none>'}' is not allowed for {AssetType(asset_type).value} "
            f"assets (allowed: {', '.join(sorted(allowed))})",
        )

    root = Path(asset_root).resolve()
    source = (root / normalized).resolve()
    if source != root and root not in source.parents:
        raise PathTraversalError(plugin_id, path, "resolved path escapes the plugin asset root")

    if not source.is_file():
        raise AssetNotFoundError(plugin_id, path, f"file not found at {source}")

    logger.debug(f"Asset validated: '{path}' -> '{source}'")
    return source


def _load_definitions(plugin: Any) -> List[Any]:
    hook = get_hook(plugin, 'get_assets')
    if hook is None:
        return []
    definitions = hook() or []
    result = []
    for item in definitions:
        if isinstance(item, dict):
            item = _asset_adapter.validate_python(item)
        result.append(item)
    return result


def collect_plugin_assets(plugins: Sequence[Any], plugins_dir: Union[str, Path]) -> List[ResolvedAsset]:
    """Collect and security-check every asset declared by the plugins.

    Args:
        plugins: Plugins in build order
        plugins_dir: Directory holding per-plugin asset roots

    Returns:
        Resolved assets with namespaced target paths

    Raises:
        AssetSecurityError: On the first rejected asset
    """
    assets: List[ResolvedAsset] = []
    for plugin in plugins:
        definitions = _load_definitions(plugin)
        if not definitions:
            continue

        root = resolve_asset_root(plugin, plugins_dir)
        for definition in definitions:
            source = validate_asset_path(plugin.id, definition.path, definition.type, root)
            relative = definition.path.replace('\\', '/')
            assets.append(ResolvedAsset(
                definition=definition,
                plugin_id=plugin.id,
                source_path=source,
                target_path=f"{plugin.id}/assets/{relative}",
            ))
        logger.debug(f"Collected {len(definitions)} asset(s) from plugin '{plugin.id}'")

    return assets


def copy_plugin_assets(assets: Iterable[ResolvedAsset], output_dir: Union[str, Path]) -> AssetCopyResult:
    """Copy resolved assets under ``output_dir``.

    Each file lands at ``<output_dir>/<plugin id>/assets/<path>``. Assets
    larger than 5 MiB produce a warning. Copy failures propagate.

    Raises:
        PathTraversalError: If a target would leave its namespaced directory
        OSError: On filesystem errors
    """
    output_root = Path(output_dir).resolve()
    result = AssetCopyResult()

    for asset in assets:
        namespace = (output_root / asset.plugin_id / 'assets').resolve()
        target = (output_root / asset.target_path).resolve()
        if namespace not in target.parents:
            raise PathTraversalError(asset.plugin_id, asset.target_path, "target escapes the plugin namespace")

        target.parent.mkdir(parents=True, exist_ok=True)

        size = asset.source_path.stat().st_size
        if size > MAX_ASSET_SIZE_BYTES:
            result.warnings.append(
                f'Asset "{asset.target_path}" is {format_bytes(size)} - consider optimizing'
            )

        shutil.copyfile(asset.source_path, target)
        result.copied.append(asset.target_path)
        logger.debug(f"Copied asset {asset.source_path} -> {target}")

    return result


def sanitize_font_family(family: str) -> str:
    """Strip characters that could break out of a CSS string or rule.

    Removes quotes, backslashes, semicolons, braces, parentheses and
    newlines, then trims surrounding whitespace.
    """
    return _FONT_FAMILY_UNSAFE.sub('', family).strip()


def get_font_format(path: str) -> str:
    """CSS ``format()`` hint for a font file path."""
    extension = PurePosixPath(path.replace('\\', '/')).suffix.lower().lstrip('.')
    return FONT_FORMATS.get(extension, extension)


def _is_font(asset: ResolvedAsset) -> bool:
    return isinstance(asset.definition, FontAssetDefinition)


def generate_font_face_css(assets: Iterable[ResolvedAsset], base_url: str = './') -> str:
    """Generate one @font-face block per font asset.

    Args:
        assets: Resolved assets (non-font assets are ignored)
        base_url: Prefix for the copied asset paths

    Returns:
        CSS text, or an empty string when there are no fonts
    """
    fonts = [asset for asset in assets if _is_font(asset)]
    if not fonts:
        return ''

    declarations = []
    for asset in fonts:
        font = asset.definition
        url = base_url + quote(asset.target_path, safe='/')
        lines = [
            '@font-face {',
            f"  font-family: '{sanitize_font_family(font.family)}';",
            f"  src: url('{url}') format('{get_font_format(font.path)}');",
        ]
        if font.weight is not None:
            lines.append(f"  font-weight: {font.weight};")
        if font.style:
            lines.append(f"  font-style: {font.style};")
        lines.append(f"  font-display: {font.display or 'swap'};")
        if font.unicode_range:
            lines.append(f"  unicode-range: {font.unicode_range};")
        lines.append('}')
        declarations.append('\n'.join(lines))

    return '\n'.join(['/* Auto-generated @font-face declarations */', '', '\n\n'.join(declarations), ''])


def filter_assets_by_plugin(assets: Iterable[ResolvedAsset], plugin_id: str) -> List[ResolvedAsset]:
    return [asset for asset in assets if asset.plugin_id == plugin_id]


def get_plugin_ids_from_assets(assets: Iterable[ResolvedAsset]) -> List[str]:
    """Plugin ids in first-seen order."""
    seen: Dict[str, None] = {}
    for asset in assets:
        seen.setdefault(asset.plugin_id, None)
    return list(seen)


def generate_font_face_css_for_plugin(assets: Iterable[ResolvedAsset], plugin_id: str, base_url: str = './') -> str:
    return generate_font_face_css(filter_assets_by_plugin(assets, plugin_id), base_url)


def plugin_has_fonts(assets: Iterable[ResolvedAsset], plugin_id: str) -> bool:
    return any(_is_font(a) for a in filter_assets_by_plugin(assets, plugin_id))


def get_font_families(assets: Iterable[ResolvedAsset]) -> List[str]:
    """Distinct sanitized font families in first-seen order."""
    families: Dict[str, None] = {}
    for asset in assets:
        if _is_font(asset):
            families.setdefault(sanitize_font_family(asset.definition.family), None)
    return list(families)


def get_assets_total_size(assets: Iterable[ResolvedAsset]) -> int:
    """Total size in bytes of the asset source files that can be read."""
    total = 0
    for asset in assets:
        try:
            total += asset.source_path.stat().st_size
        except OSError as e:
            logger.warning(f"Cannot stat asset {asset.source_path}: {e}")
    return total


def format_bytes(size: int) -> str:
    """Human-readable byte count (B, KB, MB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / 1024 / 1024:.1f} MB"
