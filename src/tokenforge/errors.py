"""Exception hierarchy for the theme build pipeline.

Fatal conditions (dependency cycles, color collisions, asset security
violations, type generation preconditions) are raised as subclasses of
``ThemeBuildError``. Business-rule validation problems are never raised
one by one; they are accumulated into a ``ValidationResult`` and only
wrapped in ``ThemeValidationFailed`` when a caller asks the build to fail.
"""

from typing import List, Optional, Any


class ThemeBuildError(Exception):
    """Base exception for theme build failures."""
    pass


class DependencyResolutionError(ThemeBuildError):
    """Plugin graph could not be ordered.

    ``errors`` holds every resolution problem found.
    """

    def __init__(self, errors: List[Any]):
        self.errors = list(errors)
        summary = "; ".join(getattr(e, "message", str(e)) for e in self.errors)
        super().__init__(f"Plugin dependency resolution failed: {summary}")


class ColorCollisionError(ThemeBuildError):
    """Two colors claimed the same name or the same flattened reference key.

    ``key`` is set when the clash is on a reference key such as ``red950``
    (color ``red9`` step 50 against color ``red`` step 950).
    """

    def __init__(
        self,
        name: str,
        existing_plugin: Optional[str],
        new_plugin: Optional[str],
        key: Optional[str] = None,
        existing_name: Optional[str] = None,
    ):
        self.name = name
        self.existing_plugin = existing_plugin
        self.new_plugin = new_plugin
        self.key = key
        self.existing_name = existing_name
        if key is None:
            message = (
                f"Color '{name}' registered by plugin '{new_plugin or '<builder>'}' "
                f"is already registered by plugin '{existing_plugin or '<builder>'}'"
            )
        else:
            message = (
                f"Color '{name}' registered by plugin '{new_plugin or '<builder>'}' "
                f"would rebind reference '{key}' owned by color '{existing_name}' "
                f"of plugin '{existing_plugin or '<builder>'}'"
            )
        super().__init__(message)


class DuplicateVariantError(ThemeBuildError):
    """A theme variant name was registered twice."""

    def __init__(self, name: str, existing_plugin: Optional[str] = None):
        self.name = name
        self.existing_plugin = existing_plugin
        owner = f" by plugin '{existing_plugin}'" if existing_plugin else ""
        super().__init__(f"Theme variant '{name}' is already registered{owner}")


class UnknownVariantError(ThemeBuildError):
    """A variant extension named a base variant that does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Base theme variant '{name}' does not exist")


class MissingTokenError(ThemeBuildError):
    """A theme variant is missing required semantic tokens."""

    def __init__(self, variant: str, missing: List[str]):
        self.variant = variant
        self.missing = list(missing)
        super().__init__(
            f"Theme variant '{variant}' is missing required tokens: {', '.join(self.missing)}"
        )


class PluginExecutionError(ThemeBuildError):
    """A plugin hook raised while the build was running it."""

    def __init__(self, plugin_id: str, phase: str, cause: BaseException):
        self.plugin_id = plugin_id
        self.phase = phase
        self.cause = cause
        super().__init__(f"Plugin '{plugin_id}' failed during {phase}: {cause}")


class ThemeValidationFailed(ThemeBuildError):
    """Structural validation found errors during build()."""

    def __init__(self, result: Any):
        self.result = result
        count = len(result.errors)
        super().__init__(f"Theme validation failed with {count} error(s)")


class AssetSecurityError(ThemeBuildError):
    """Base class for rejected plugin assets."""

    def __init__(self, plugin_id: str, path: str, reason: str):
        self.plugin_id = plugin_id
        self.path = path
        self.reason = reason
        super().__init__(f"Asset '{path}' from plugin '{plugin_id}' rejected: {reason}")


class PathTraversalError(AssetSecurityError):
    """Asset path is absolute or escapes the plugin asset root."""
    pass


class NullByteError(AssetSecurityError):
    """Asset path contains an embedded null byte."""
    pass


class BlockedExtensionError(AssetSecurityError):
    """Asset uses an executable or scripting extension."""
    pass


class DisallowedExtensionError(AssetSecurityError):
    """Asset extension is not allowed for its declared type."""
    pass


class AssetNotFoundError(AssetSecurityError):
    """Asset source file does not exist."""
    pass


class TypeGenerationError(ThemeBuildError):
    """The color registry cannot be turned into type declarations."""
    pass


class ManifestError(ThemeBuildError):
    """A declarative plugin manifest could not be loaded."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Invalid plugin manifest '{source}': {message}")
