"""Theme plugin contract.

A theme plugin is any object exposing ``id``, ``version`` and a ``register``
callable. Optional capabilities (``before_build``, ``after_build``,
``validate``, ``get_assets``) are nullable hooks looked up by attribute, so
plain objects, modules and ``ThemePlugin`` instances all work.

Features:
- ThemePlugin dataclass with metadata and optional hooks
- Plugin shape validation
- Dependency and version range checks
"""

import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .theme_engine.schema import (
    PluginDependency,
    ValidationError,
    ValidationErrorType,
)

logger = logging.getLogger(__name__)


PLUGIN_ID_PATTERN = re.compile(r'^[a-z0-9-]+$')
SEMVER_PATTERN = re.compile(r'^(\d+)\.(\d+)\.(\d+)')

HOOK_NAMES = ('before_build', 'after_build', 'validate', 'get_assets')

DependencyLike = Union[PluginDependency, Dict[str, Any], str]


def normalize_dependency(dep: DependencyLike) -> PluginDependency:
    """Coerce a dependency given as id string, dict or model."""
    if isinstance(dep, PluginDependency):
        return dep
    if isinstance(dep, str):
        return PluginDependency(id=dep)
    return PluginDependency.model_validate(dep)


@dataclass
class ThemePlugin:
    """A self-contained unit that registers colors and theme variants"""
    id: str
    version: str
    register: Callable[[Any], Any]

    # Metadata
    name: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    license: Optional[str] = None
    homepage: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    # Graph
    dependencies: List[PluginDependency] = field(default_factory=list)
    peer_plugins: List[str] = field(default_factory=list)

    # Optional hooks
    before_build: Optional[Callable[[Any], Any]] = None
    after_build: Optional[Callable[[Any], Any]] = None
    validate: Optional[Callable[[Any], Any]] = None
    get_assets: Optional[Callable[[], Any]] = None

    # Private asset directory; defaults to <plugins_dir>/<id>/assets
    asset_root: Optional[Path] = None

    def __post_init__(self):
        self.dependencies = [normalize_dependency(d) for d in self.dependencies]
        if self.asset_root is not None:
            self.asset_root = Path(self.asset_root)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary"""
        return {
            'id': self.id,
            'version': self.version,
            'name': self.name,
            'description': self.description,
            'author': self.author,
            'license': self.license,
            'homepage': self.homepage,
            'tags': list(self.tags),
            'dependencies': [d.model_dump(exclude_none=True) for d in self.dependencies],
            'peer_plugins': list(self.peer_plugins),
            'hooks': [name for name in HOOK_NAMES if getattr(self, name) is not None],
        }


def create_plugin(**kwargs) -> ThemePlugin:
    """Create a ThemePlugin and check its shape.

    Raises:
        ValueError: If the plugin is malformed
    """
    plugin = ThemePlugin(**kwargs)
    errors = validate_plugin(plugin)
    if errors:
        raise ValueError("; ".join(e.message for e in errors))
    return plugin


def get_dependencies(plugin: Any) -> List[PluginDependency]:
    """Normalized dependency list of any plugin-like object."""
    return [normalize_dependency(d) for d in (getattr(plugin, 'dependencies', None) or [])]


def get_hook(plugin: Any, name: str) -> Optional[Callable]:
    """Return an optional hook if the plugin provides a callable one."""
    hook = getattr(plugin, name, None)
    return hook if callable(hook) else None


def validate_plugin(plugin: Any) -> List[ValidationError]:
    """Check that an object satisfies the plugin contract.

    Args:
        plugin: Candidate plugin object

    Returns:
        List of validation errors (empty if the plugin is well-formed)
    """
    errors: List[ValidationError] = []

    if plugin is None:
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message="Plugin must be an object",
        ))
        return errors

    plugin_id = getattr(plugin, 'id', None)
    if not plugin_id or not isinstance(plugin_id, str):
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message='Plugin must have a string "id" field',
        ))
        plugin_id = None
    elif not PLUGIN_ID_PATTERN.match(plugin_id):
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message=f'Plugin ID "{plugin_id}" must be lowercase alphanumeric with dashes (e.g., "my-theme")',
            plugin_id=plugin_id,
        ))

    version = getattr(plugin, 'version', None)
    if not version or not isinstance(version, str):
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message='Plugin must have a string "version" field',
            plugin_id=plugin_id,
        ))
    elif not SEMVER_PATTERN.match(version):
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message=f'Plugin version "{version}" must be in semver format (e.g., "1.0.0", "2.1.3-beta")',
            plugin_id=plugin_id,
        ))

    if not callable(getattr(plugin, 'register', None)):
        errors.append(ValidationError(
            type=ValidationErrorType.INVALID_REF,
            message='Plugin must have a callable "register"',
            plugin_id=plugin_id,
        ))

    for attr in ('name', 'description', 'author'):
        value = getattr(plugin, attr, None)
        if value is not None and not isinstance(value, str):
            errors.append(ValidationError(
                type=ValidationErrorType.INVALID_REF,
                message=f'Plugin "{attr}" must be a string if provided',
                plugin_id=plugin_id,
            ))

    for hook_name in HOOK_NAMES:
        hook = getattr(plugin, hook_name, None)
        if hook is not None and not callable(hook):
            errors.append(ValidationError(
                type=ValidationErrorType.INVALID_REF,
                message=f'Plugin hook "{hook_name}" must be callable if provided',
                plugin_id=plugin_id,
            ))

    dependencies = getattr(plugin, 'dependencies', None)
    if dependencies is not None:
        if not isinstance(dependencies, (list, tuple)):
            errors.append(ValidationError(
                type=ValidationErrorType.INVALID_REF,
                message='Plugin "dependencies" must be a list if provided',
                plugin_id=plugin_id,
            ))
        else:
            for index, dep in enumerate(dependencies):
                try:
                    normalized = normalize_dependency(dep)
                except Exception as e:
                    errors.append(ValidationError(
                        type=ValidationErrorType.DEPENDENCY_MISSING,
                        message=f"Dependency at index {index} is malformed: {e}",
                        plugin_id=plugin_id,
                    ))
                    continue
                if not normalized.id:
                    errors.append(ValidationError(
                        type=ValidationErrorType.DEPENDENCY_MISSING,
                        message=f'Dependency at index {index} must have a string "id"',
                        plugin_id=plugin_id,
                    ))

    return errors


def parse_version(version: str) -> Optional[Tuple[int, int, int]]:
    """Parse the leading ``major.minor.patch`` of a version string."""
    match = SEMVER_PATTERN.match(version.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def is_version_compatible(available: str, required: str) -> bool:
    """Check an available version against a requirement.

    Supports exact versions, caret (``^1.2.0``), tilde (``~1.2.0``) and
    comparison operators (``>=``, ``>``, ``<=``, ``<``, ``=``).

    Args:
        available: Version of the installed plugin
        required: Version requirement

    Returns:
        True if the available version satisfies the requirement
    """
    required = required.strip()
    if available.strip() == required:
        return True

    match = re.match(r'^(\^|~|>=|<=|>|<|=)?\s*(.+)$', required)
    if not match:
        return False
    operator, target = match.group(1) or '', match.group(2)

    have = parse_version(available)
    want = parse_version(target)
    if have is None or want is None:
        return False

    if operator == '^':
        if want[0] != 0:
            return have[0] == want[0] and have >= want
        if want[1] != 0:
            return have[0] == 0 and have[1] == want[1] and have >= want
        return have == want
    if operator == '~':
        return have[:2] == want[:2] and have >= want
    if operator == '>=':
        return have >= want
    if operator == '>':
        return have > want
    if operator == '<=':
        return have <= want
    if operator == '<':
        return have < want
    return have == want


def check_plugin_dependencies(plugin: Any, available: Dict[str, str]) -> List[ValidationError]:
    """Check a plugin's dependencies against available plugin versions.

    Args:
        plugin: Plugin whose dependencies to check
        available: Mapping of plugin id to version

    Returns:
        ``dependency_missing`` errors for absent or incompatible dependencies
    """
    errors: List[ValidationError] = []
    plugin_id = getattr(plugin, 'id', None)

    for dep in get_dependencies(plugin):
        if dep.optional:
            continue

        if dep.id not in available:
            errors.append(ValidationError(
                type=ValidationErrorType.DEPENDENCY_MISSING,
                message=f'Plugin "{plugin_id}" requires dependency "{dep.id}" which is not available',
                plugin_id=plugin_id,
                details={'missing_dependency': dep.id, 'required_version': dep.version},
            ))
            continue

        if dep.version and not is_version_compatible(available[dep.id], dep.version):
            errors.append(ValidationError(
                type=ValidationErrorType.DEPENDENCY_MISSING,
                message=(
                    f'Plugin "{plugin_id}" requires dependency "{dep.id}" version {dep.version}, '
                    f'but version {available[dep.id]} is available'
                ),
                plugin_id=plugin_id,
                details={
                    'dependency': dep.id,
                    'required_version': dep.version,
                    'available_version': available[dep.id],
                },
            ))

    return errors
