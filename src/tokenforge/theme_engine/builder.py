"""ThemeBuilder - composes a theme from plugins.

The builder is the only object plugins talk to while registering. It
accumulates colors and theme variants in plugin order and is consumed once
by ``build()``, which snapshots the accumulated state into an immutable
``ThemeConfig``.

Example:
    builder = ThemeBuilder([primitives, core])
    config = await builder.build()
"""

import asyncio
import inspect
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..errors import (
    ColorCollisionError,
    DuplicateVariantError,
    MissingTokenError,
    PluginExecutionError,
    ThemeBuildError,
    ThemeValidationFailed,
    UnknownVariantError,
)
from ..plugins import get_hook, validate_plugin
from .defaults import create_default_design_tokens, merge_design_tokens
from .refs import ColorRefs
from .resolver import resolve_plugin_order
from .schema import (
    COLOR_NAME_PATTERN,
    VARIANT_NAME_PATTERN,
    ColorDefinition,
    DarkModeAdjustments,
    DesignTokens,
    SemanticTokens,
    ThemeConfig,
    ThemeVariantMetadata,
    ValidationResult,
    ContrastStandard,
)
from .validator import ThemeValidator, find_missing_tokens

logger = logging.getLogger(__name__)


class ThemeBuilder:
    """Accumulates colors and theme variants registered by plugins."""

    def __init__(
        self,
        plugins: Optional[Sequence[Any]] = None,
        design_tokens: Optional[DesignTokens] = None,
        allow_identical_redefinition: bool = False,
        contrast_standard: Union[str, ContrastStandard] = ContrastStandard.AA,
    ):
        """Initialize the builder.

        Args:
            plugins: Plugins to register, in any order
            design_tokens: Starting design tokens (defaults if omitted)
            allow_identical_redefinition: Accept a second add_color with
                identical content instead of raising a collision error
            contrast_standard: Standard used by validate()
        """
        self._plugins: List[Any] = []
        self._colors: Dict[str, ColorDefinition] = {}
        self._color_owners: Dict[str, Optional[str]] = {}
        self._refs = ColorRefs()
        self._variants: Dict[str, SemanticTokens] = {}
        self._variant_metadata: Dict[str, ThemeVariantMetadata] = {}
        self._design_tokens = design_tokens or create_default_design_tokens()
        self._dark_mode: Optional[DarkModeAdjustments] = None
        self._current_plugin: Optional[str] = None
        self._registered = False
        self._built = False
        self.allow_identical_redefinition = allow_identical_redefinition
        self.contrast_standard = contrast_standard

        for plugin in plugins or []:
            self.use(plugin)

    # Plugins

    def use(self, plugin: Any) -> 'ThemeBuilder':
        """Add a plugin to the build.

        Raises:
            ValueError: If the plugin is malformed
            ThemeBuildError: If plugins were already registered
        """
        if self._registered:
            raise ThemeBuildError("Cannot add plugins after registration has run")

        errors = validate_plugin(plugin)
        if errors:
            raise ValueError("; ".join(e.message for e in errors))

        self._plugins.append(plugin)
        return self

    def get_plugins(self) -> List[Any]:
        return list(self._plugins)

    async def register_plugins(self) -> None:
        """Run every plugin's ``register`` hook in dependency order.

        Each registration is awaited to completion before the next plugin
        starts, since later plugins may read colors of earlier ones.

        Raises:
            DependencyResolutionError: On cycles, duplicates or missing
                dependencies (before any plugin runs)
            PluginExecutionError: If a register hook fails
        """
        if self._registered:
            raise ThemeBuildError("Plugins have already been registered")

        self._plugins = resolve_plugin_order(self._plugins)
        self._registered = True

        for plugin in self._plugins:
            logger.debug(f"Registering plugin '{plugin.id}' ({plugin.version})")
            self._current_plugin = plugin.id
            try:
                await self._call(plugin.register, self)
            except ThemeBuildError:
                raise
            except Exception as e:
                raise PluginExecutionError(plugin.id, 'register', e) from e
            finally:
                self._current_plugin = None

    @staticmethod
    async def _call(func, *args):
        result = func(*args)
        if inspect.isawaitable(result):
            result = await result
        return result

    # Colors

    @property
    def colors(self) -> ColorRefs:
        """Registered color references keyed by ``<name><step>``."""
        return self._refs

    def add_color(self, name: str, definition: Union[ColorDefinition, Mapping[str, Any]]) -> 'ThemeBuilder':
        """Register a color scale.

        Args:
            name: Color name (letters, digits and hyphens, starting with a letter)
            definition: Anchor color and scale steps

        Returns:
            self for chaining

        Raises:
            ValueError: If the name or definition is invalid
            ColorCollisionError: If the name, or one of its flattened reference
                keys, is already registered
        """
        if not isinstance(name, str) or not COLOR_NAME_PATTERN.match(name):
            raise ValueError(
                f'Color name "{name}" is invalid. Must start with a letter and contain '
                'only letters, digits and hyphens.'
            )
        if not isinstance(definition, ColorDefinition):
            definition = ColorDefinition.model_validate(definition)

        if name in self._colors:
            if self.allow_identical_redefinition and self._colors[name] == definition:
                logger.debug(f"Ignoring identical redefinition of color '{name}'")
                return self
            raise ColorCollisionError(name, self._color_owners.get(name), self._current_plugin)

        for step in definition.scale:
            key = f"{name}{step}"
            if key in self._refs:
                owner = self._refs[key].color_name
                raise ColorCollisionError(
                    name,
                    self._color_owners.get(owner),
                    self._current_plugin,
                    key=key,
                    existing_name=owner,
                )

        self._colors[name] = definition
        self._color_owners[name] = self._current_plugin
        for step in definition.scale:
            self._refs._register(name, step)

        logger.debug(f"Added color '{name}' with {len(definition.scale)} steps")
        return self

    def get_color(self, name: str) -> Optional[ColorDefinition]:
        return self._colors.get(name)

    def has_color(self, name: str) -> bool:
        return name in self._colors

    def get_color_names(self) -> List[str]:
        return list(self._colors)

    # Theme variants

    def add_theme_variant(
        self,
        name: str,
        tokens: Union[SemanticTokens, Mapping[str, Any]],
    ) -> 'ThemeBuilder':
        """Register a complete semantic token set.

        Raises:
            ValueError: If the name is invalid or a token value is malformed
            DuplicateVariantError: If the name is already registered
            MissingTokenError: If any required token is absent
        """
        self._check_variant_name(name)

        if not isinstance(tokens, SemanticTokens):
            missing = find_missing_tokens(tokens)
            if missing:
                raise MissingTokenError(name, missing)
            tokens = SemanticTokens.model_validate(dict(tokens))

        self._variants[name] = tokens
        self._variant_metadata[name] = ThemeVariantMetadata(plugin_id=self._current_plugin)
        logger.debug(f"Added theme variant '{name}'")
        return self

    def extend_theme_variant(
        self,
        base_name: str,
        new_name: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> 'ThemeBuilder':
        """Register a copy of an existing variant with some tokens replaced.

        The base variant is left untouched.

        Raises:
            UnknownVariantError: If ``base_name`` is not registered
            DuplicateVariantError: If ``new_name`` is already registered
            ValueError: If an override names an unknown token
        """
        base = self._variants.get(base_name)
        if base is None:
            raise UnknownVariantError(base_name)
        self._check_variant_name(new_name)

        values = base.as_dict()
        for key, value in (overrides or {}).items():
            field_name = SemanticTokens.field_name(key)
            if field_name is None:
                raise ValueError(f"Unknown semantic token '{key}' in overrides for '{new_name}'")
            values[field_name] = value

        self._variants[new_name] = SemanticTokens.model_validate(values)
        self._variant_metadata[new_name] = ThemeVariantMetadata(
            plugin_id=self._current_plugin,
            base_variant=base_name,
        )
        logger.debug(f"Extended theme variant '{base_name}' as '{new_name}'")
        return self

    def _check_variant_name(self, name: str) -> None:
        if not isinstance(name, str) or not VARIANT_NAME_PATTERN.match(name):
            raise ValueError(
                f'Theme variant name "{name}" is invalid. Must start with a letter and contain '
                'only letters, digits and hyphens.'
            )
        if name in self._variants:
            raise DuplicateVariantError(name, self._variant_metadata[name].plugin_id)

    def get_theme_variant(self, name: str) -> Optional[SemanticTokens]:
        return self._variants.get(name)

    def get_theme_variant_names(self) -> List[str]:
        return list(self._variants)

    # Design tokens

    @property
    def design_tokens(self) -> DesignTokens:
        return self._design_tokens

    def merge_design_tokens(self, overrides: Union[DesignTokens, Mapping[str, Any]]) -> 'ThemeBuilder':
        """Deep-merge design token overrides into the current tokens."""
        self._design_tokens = merge_design_tokens(self._design_tokens, overrides)
        return self

    def set_dark_mode(self, adjustments: Union[DarkModeAdjustments, Mapping[str, Any], None]) -> 'ThemeBuilder':
        """Set the dark mode scale adjustments."""
        if adjustments is not None and not isinstance(adjustments, DarkModeAdjustments):
            adjustments = DarkModeAdjustments.model_validate(adjustments)
        self._dark_mode = adjustments
        return self

    # Build

    def _snapshot(self) -> ThemeConfig:
        return ThemeConfig.create(
            colors=self._colors,
            themes=self._variants,
            design_tokens=self._design_tokens,
            dark_mode=self._dark_mode,
            theme_metadata=self._variant_metadata,
            color_owners=self._color_owners,
        )

    def validate(self) -> ValidationResult:
        """Validate the current state without building."""
        validator = ThemeValidator(self._plugins, self.contrast_standard)
        return validator.validate(self._snapshot())

    async def build(self, validate: bool = True) -> ThemeConfig:
        """Register plugins, validate and produce the final configuration.

        Args:
            validate: Fail the build on structural validation errors

        Returns:
            Immutable ThemeConfig

        Raises:
            DependencyResolutionError: If the plugin graph cannot be ordered
            PluginExecutionError: If any plugin hook fails
            ThemeValidationFailed: If validation finds errors
        """
        if self._built:
            raise ThemeBuildError("This builder has already produced a theme; create a new one")
        self._built = True

        if not self._registered:
            await self.register_plugins()

        partial = self._snapshot()
        await self._run_hooks('before_build', partial)

        if validate:
            result = self.validate()
            for warning in result.warnings:
                logger.warning(warning.message)
            if not result.valid:
                for error in result.errors:
                    logger.error(error.message)
                raise ThemeValidationFailed(result)

        config = self._snapshot()
        await self._run_hooks('after_build', config)

        logger.info(
            f"Built theme with {len(config.colors)} color(s) and {len(config.themes)} variant(s)"
        )
        return config

    async def _run_hooks(self, phase: str, config: ThemeConfig) -> None:
        for plugin in self._plugins:
            hook = get_hook(plugin, phase)
            if hook is None:
                continue
            try:
                await self._call(hook, config)
            except ThemeBuildError:
                raise
            except Exception as e:
                raise PluginExecutionError(plugin.id, phase, e) from e


def build_theme(
    plugins: Sequence[Any],
    validate: bool = True,
    **builder_options,
) -> ThemeConfig:
    """Synchronously build a theme from a plugin list."""
    builder = ThemeBuilder(plugins, **builder_options)
    return asyncio.run(builder.build(validate=validate))
