"""TokenForge Theme Engine Package.

This package composes design-token themes from plugins: OKLCH color scale
generation, typed color references, dependency-ordered plugin registration,
WCAG contrast validation, plugin asset handling and TypeScript declaration
output.
"""

from .schema import (
    # Core models
    OKLCHColor,
    ColorDefinition,
    ColorMetadata,
    GeneratedColorStep,
    ColorRef,
    SemanticTokens,
    DesignTokens,
    DarkModeAdjustments,
    ThemeConfig,
    ThemeVariantMetadata,
    PluginDependency,

    # Assets
    FontAssetDefinition,
    GenericAssetDefinition,
    AssetDefinition,

    # Validation models
    ValidationError,
    ValidationWarning,
    ValidationResult,
    ContrastViolation,

    # Enums
    SpecialColor,
    AssetType,
    ContrastStandard,
    ValidationErrorType,
    ValidationWarningType,

    COLOR_STEPS,
    REQUIRED_TOKEN_FIELDS,
)
from .utils import (
    hex_to_rgb,
    rgb_to_hex,
    oklch_to_hex,
    hex_to_oklch,
    oklch_to_rgb,
    interpolate_oklch,
    format_oklch_for_css,
    calculate_contrast_ratio,
    meets_wcag,
    meets_wcag_contrast,
    deep_merge_dict,
)
from .scale import generate_color_scale, generate_all_color_scales
from .refs import ColorRefs, create_color_ref, parse_color_ref, resolve_color_ref
from .resolver import resolve_plugin_order
from .defaults import create_default_design_tokens, merge_design_tokens
from .validator import (
    ThemeValidator,
    validate_theme_contrast,
    validate_theme_tokens,
    validate_theme_accessibility,
)
from .builder import ThemeBuilder, build_theme
from .assets import (
    ResolvedAsset,
    collect_plugin_assets,
    copy_plugin_assets,
    generate_font_face_css,
)
from .typegen import (
    TypeGenerationConfig,
    generate_color_types,
    generate_complete_types,
    write_type_declarations,
)
from .registry import PluginRegistry, load_plugin_manifest

__all__ = [
    # Main classes
    "ThemeBuilder",
    "ThemeValidator",
    "PluginRegistry",
    "ColorRefs",

    # Schema models
    "OKLCHColor",
    "ColorDefinition",
    "ColorMetadata",
    "GeneratedColorStep",
    "ColorRef",
    "SemanticTokens",
    "DesignTokens",
    "DarkModeAdjustments",
    "ThemeConfig",
    "ThemeVariantMetadata",
    "PluginDependency",
    "FontAssetDefinition",
    "GenericAssetDefinition",
    "AssetDefinition",
    "ResolvedAsset",
    "TypeGenerationConfig",
    "ValidationError",
    "ValidationWarning",
    "ValidationResult",
    "ContrastViolation",

    # Enums
    "SpecialColor",
    "AssetType",
    "ContrastStandard",
    "ValidationErrorType",
    "ValidationWarningType",
    "COLOR_STEPS",
    "REQUIRED_TOKEN_FIELDS",

    # Operations
    "build_theme",
    "generate_color_scale",
    "generate_all_color_scales",
    "create_color_ref",
    "parse_color_ref",
    "resolve_color_ref",
    "resolve_plugin_order",
    "create_default_design_tokens",
    "merge_design_tokens",
    "validate_theme_contrast",
    "validate_theme_tokens",
    "validate_theme_accessibility",
    "collect_plugin_assets",
    "copy_plugin_assets",
    "generate_font_face_css",
    "generate_color_types",
    "generate_complete_types",
    "write_type_declarations",
    "load_plugin_manifest",

    # Utilities
    "hex_to_rgb",
    "rgb_to_hex",
    "oklch_to_hex",
    "hex_to_oklch",
    "oklch_to_rgb",
    "interpolate_oklch",
    "format_oklch_for_css",
    "calculate_contrast_ratio",
    "meets_wcag",
    "meets_wcag_contrast",
    "deep_merge_dict",
]
