"""Theme schema definitions for the tokenforge build pipeline.

This module defines the Pydantic models that validate and structure all theme
data: OKLCH colors, color definitions and generated scales, color references,
semantic token sets, plugin asset definitions, validation records and the
design token categories carried by the final theme configuration.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Any, Optional, List, Union, Tuple, Mapping, Literal, Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Canonical scale steps, lightest to darkest
COLOR_STEPS: Tuple[int, ...] = (50, 100, 200, 300, 400, 500, 600, 700, 800, 900, 950)

MAX_CHROMA = 0.4

COLOR_NAME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9-]*$')
VARIANT_NAME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9-]*$')


class SpecialColor(str, Enum):
    """Color literals that live outside the scale system"""
    WHITE = "white"
    BLACK = "black"

    @property
    def hex(self) -> str:
        return "#ffffff" if self is SpecialColor.WHITE else "#000000"

    def __str__(self) -> str:
        return self.value


class AssetType(str, Enum):
    """Plugin asset categories"""
    FONT = "font"
    IMAGE = "image"
    ICON = "icon"
    OTHER = "other"


class ContrastStandard(str, Enum):
    """WCAG conformance levels checked by the contrast pass"""
    AA = "AA"
    AAA = "AAA"


class ValidationErrorType(str, Enum):
    """Structural validation error categories"""
    DEPENDENCY_MISSING = "dependency_missing"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    DUPLICATE_ID = "duplicate_id"
    MISSING_COLOR = "missing_color"
    INVALID_REF = "invalid_ref"
    MISSING_TOKEN = "missing_token"
    CONTRAST_VIOLATION = "contrast_violation"
    ACCESSIBILITY = "accessibility"


class ValidationWarningType(str, Enum):
    """Non-fatal validation findings"""
    LOW_CONTRAST = "low_contrast"
    SIMILAR_COLORS = "similar_colors"
    MISSING_TOKEN = "missing_token"


class _FrozenModel(BaseModel):
    """Immutable model that accepts both snake_case and camelCase input."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )


class OKLCHColor(_FrozenModel):
    """A color in the OKLCH perceptual color space.

    Out-of-range components are rejected, never clamped.
    """

    l: float = Field(..., ge=0.0, le=1.0, description="Lightness 0-1")
    c: float = Field(..., ge=0.0, le=MAX_CHROMA, description="Chroma 0-0.4")
    h: float = Field(..., ge=0.0, lt=360.0, description="Hue in degrees 0-360")

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.l, self.c, self.h)


class ColorMetadata(_FrozenModel):
    """Descriptive metadata attached to a color definition"""
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()


def validate_steps(steps: Any) -> Tuple[int, ...]:
    """Validate a list of scale steps and return them in canonical order.

    Args:
        steps: Iterable of step identifiers

    Returns:
        Tuple of unique steps sorted lightest to darkest

    Raises:
        ValueError: If the list is empty, has duplicates or non-canonical steps
    """
    if steps is None:
        return COLOR_STEPS
    values = list(steps)
    if not values:
        raise ValueError("scale must contain at least one step")

    normalized = []
    for step in values:
        if isinstance(step, bool):
            raise ValueError(f"invalid scale step: {step!r}")
        try:
            number = int(step)
        except (TypeError, ValueError):
            raise ValueError(f"invalid scale step: {step!r}")
        if number != step and str(number) != str(step):
            raise ValueError(f"invalid scale step: {step!r}")
        if number not in COLOR_STEPS:
            raise ValueError(
                f"invalid scale step: {step!r} (expected one of {', '.join(map(str, COLOR_STEPS))})"
            )
        normalized.append(number)

    if len(set(normalized)) != len(normalized):
        raise ValueError("scale contains duplicate steps")

    return tuple(sorted(normalized))


class ColorDefinition(_FrozenModel):
    """Anchor color plus the scale steps to generate from it"""

    source: OKLCHColor
    scale: Tuple[int, ...] = COLOR_STEPS
    metadata: Optional[ColorMetadata] = None

    @field_validator('scale', mode='before')
    @classmethod
    def validate_scale(cls, v):
        return validate_steps(v)


class GeneratedColorStep(_FrozenModel):
    """One derived step of a color scale"""
    oklch: OKLCHColor
    hex: str


class DarkModeAdjustments(_FrozenModel):
    """Adjustments applied when generating dark mode scales"""
    chroma_multiplier: float = Field(1.0, gt=0)
    contrast_boost: float = Field(1.0, gt=0)


class ColorRef(BaseModel):
    """Opaque handle to one step of a registered color scale.

    Color-valued semantic token fields hold these instead of plain strings.
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    color_name: str
    step: int

    @field_validator('color_name')
    @classmethod
    def validate_color_name(cls, v):
        if not COLOR_NAME_PATTERN.match(v):
            raise ValueError(
                f"Invalid color name '{v}': must start with a letter and contain "
                "only letters, digits and hyphens"
            )
        return v

    @field_validator('step', mode='before')
    @classmethod
    def validate_step(cls, v):
        return validate_steps([v])[0]

    @classmethod
    def parse(cls, text: str) -> Union['ColorRef', SpecialColor]:
        """Parse ``"name.step"``, ``"white"`` or ``"black"``."""
        text = text.strip()
        if text in (SpecialColor.WHITE.value, SpecialColor.BLACK.value):
            return SpecialColor(text)
        name, sep, step = text.rpartition('.')
        if not sep or not name or not step.isdigit():
            raise ValueError(
                f"Invalid color reference '{text}': expected 'name.step', 'white' or 'black'"
            )
        return cls(color_name=name, step=int(step))

    @property
    def key(self) -> str:
        """Flattened registry key, e.g. ``blue500``."""
        return f"{self.color_name}{self.step}"

    def __str__(self) -> str:
        return f"{self.color_name}.{self.step}"


ColorValue = Union[ColorRef, SpecialColor]


def coerce_color_value(value: Any) -> Any:
    """Turn reference strings and dicts into ColorRef / SpecialColor."""
    if isinstance(value, (ColorRef, SpecialColor)):
        return value
    if isinstance(value, str):
        return ColorRef.parse(value)
    if isinstance(value, Mapping):
        data = dict(value)
        if "colorName" in data:
            data["color_name"] = data.pop("colorName")
        return data
    return value


# Semantic token fields holding color references
COLOR_TOKEN_FIELDS: Tuple[str, ...] = (
    "background",
    "surface",
    "surface_elevated",
    "surface_subdued",
    "text",
    "text_strong",
    "text_muted",
    "text_inverse",
    "primary",
    "primary_hover",
    "primary_active",
    "success",
    "warning",
    "error",
    "info",
    "border",
    "border_strong",
    "focus",
    "backdrop",
)

# Semantic token fields holding opaque CSS-adjacent strings
STRING_TOKEN_FIELDS: Tuple[str, ...] = (
    "border_width",
    "font_family",
    "font_family_mono",
    "font_family_heading",
    "border_radius",
    "border_radius_large",
    "border_radius_full",
    "shadow_sm",
    "shadow_md",
    "shadow_lg",
    "shadow_xl",
)

REQUIRED_TOKEN_FIELDS: Tuple[str, ...] = COLOR_TOKEN_FIELDS + STRING_TOKEN_FIELDS


class SemanticTokens(_FrozenModel):
    """Complete semantic token set for one theme variant"""

    # Background tiers
    background: ColorValue
    surface: ColorValue
    surface_elevated: ColorValue
    surface_subdued: ColorValue

    # Text tiers
    text: ColorValue
    text_strong: ColorValue
    text_muted: ColorValue
    text_inverse: ColorValue

    # Brand states
    primary: ColorValue
    primary_hover: ColorValue
    primary_active: ColorValue

    # Status
    success: ColorValue
    warning: ColorValue
    error: ColorValue
    info: ColorValue

    # Borders
    border: ColorValue
    border_strong: ColorValue
    border_width: str

    focus: ColorValue
    backdrop: ColorValue

    # Typography
    font_family: str
    font_family_mono: str
    font_family_heading: str

    # Radii
    border_radius: str
    border_radius_large: str
    border_radius_full: str

    # Shadows
    shadow_sm: str
    shadow_md: str
    shadow_lg: str
    shadow_xl: str

    @field_validator(*COLOR_TOKEN_FIELDS, mode='before')
    @classmethod
    def parse_color_value(cls, v):
        return coerce_color_value(v)

    @classmethod
    def field_name(cls, key: str) -> Optional[str]:
        """Map a snake_case or camelCase key to its field name."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None

    def as_dict(self) -> Dict[str, Any]:
        """Field values keyed by field name, references kept as objects."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def to_strings(self) -> Dict[str, str]:
        """Field values with references serialized as ``name.step``."""
        return {name: str(value) for name, value in self.as_dict().items()}


class PluginDependency(_FrozenModel):
    """Dependency on another plugin"""
    id: str
    version: Optional[str] = None
    optional: bool = False


_FONT_WEIGHT_PATTERN = re.compile(r'^(normal|bold|bolder|lighter|[1-9]\d{0,3}(\s+[1-9]\d{0,3})?)$')
_UNICODE_RANGE_PATTERN = re.compile(
    r'^U\+[0-9A-Fa-f?]{1,6}(-[0-9A-Fa-f]{1,6})?(\s*,\s*U\+[0-9A-Fa-f?]{1,6}(-[0-9A-Fa-f]{1,6})?)*$'
)


class FontAssetDefinition(_FrozenModel):
    """Font file bundled by a plugin"""
    type: Literal["font"] = "font"
    path: str
    family: str
    weight: Optional[Union[int, str]] = None
    style: Optional[Literal["normal", "italic", "oblique"]] = None
    display: Literal["auto", "block", "swap", "fallback", "optional"] = "swap"
    unicode_range: Optional[str] = None
    description: Optional[str] = None

    @field_validator('family')
    @classmethod
    def validate_family(cls, v):
        if not v.strip():
            raise ValueError("font family must not be empty")
        return v

    @field_validator('weight')
    @classmethod
    def validate_weight(cls, v):
        if v is None:
            return v
        if isinstance(v, int):
            if not 1 <= v <= 1000:
                raise ValueError(f"font weight out of range: {v}")
            return v
        if not _FONT_WEIGHT_PATTERN.match(v.strip()):
            raise ValueError(f"invalid font weight: {v!r}")
        return v.strip()

    @field_validator('unicode_range')
    @classmethod
    def validate_unicode_range(cls, v):
        if v is not None and not _UNICODE_RANGE_PATTERN.match(v.strip()):
            raise ValueError(f"invalid unicode range: {v!r}")
        return v


class GenericAssetDefinition(_FrozenModel):
    """Image, icon or other static file bundled by a plugin"""
    type: Literal["image", "icon", "other"]
    path: str
    description: Optional[str] = None


AssetDefinition = Annotated[
    Union[FontAssetDefinition, GenericAssetDefinition],
    Field(discriminator="type"),
]


class ValidationError(BaseModel):
    """A structural validation failure"""
    type: ValidationErrorType
    message: str
    plugin_id: Optional[str] = None
    variant: Optional[str] = None
    field: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ValidationWarning(BaseModel):
    """A non-fatal validation finding"""
    type: ValidationWarningType
    message: str
    plugin_id: Optional[str] = None
    variant: Optional[str] = None
    field: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Accumulated outcome of a validation pass"""
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.errors

    def extend(self, other: 'ValidationResult') -> 'ValidationResult':
        """Append another result's findings to this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


class ContrastViolation(BaseModel):
    """A foreground/background pair below its required contrast ratio"""
    token: str
    foreground: str
    background: str
    ratio: float
    required: float
    variant: Optional[str] = None
    foreground_token: Optional[str] = None
    background_token: Optional[str] = None


class SpacingConfig(_FrozenModel):
    base: float = 4
    scale: Tuple[float, ...] = ()
    semantic: Dict[str, float] = Field(default_factory=dict)


class MotionConfig(_FrozenModel):
    durations: Dict[str, float] = Field(default_factory=dict)
    easings: Dict[str, str] = Field(default_factory=dict)
    transitions: Dict[str, str] = Field(default_factory=dict)


class TypographyConfig(_FrozenModel):
    font_families: Dict[str, str] = Field(default_factory=dict)
    font_sizes: Dict[str, float] = Field(default_factory=dict)
    line_heights: Dict[str, float] = Field(default_factory=dict)
    font_weights: Dict[str, int] = Field(default_factory=dict)


class FocusConfig(_FrozenModel):
    width: float = 2
    offset: float = 2
    style: Literal["solid", "dashed", "dotted", "double"] = "solid"


class MinimumContrast(_FrozenModel):
    """Contrast floors that raise the selected standard's thresholds"""
    text: float = Field(4.5, ge=1.0, le=21.0)
    text_large: float = Field(3.0, ge=1.0, le=21.0)
    ui: float = Field(3.0, ge=1.0, le=21.0)
    interactive: float = Field(3.0, ge=1.0, le=21.0)
    focus: float = Field(3.0, ge=1.0, le=21.0)


class AccessibilityConfig(_FrozenModel):
    enforce_wcag: bool = Field(False, alias="enforceWCAG")
    minimum_contrast: MinimumContrast = Field(default_factory=MinimumContrast)
    color_blind_safe: bool = True
    min_hue_difference: float = Field(60, ge=0, le=180)
    high_contrast: bool = True


class DesignTokens(_FrozenModel):
    """Non-color design token categories"""
    spacing: SpacingConfig = Field(default_factory=SpacingConfig)
    radius: Dict[str, float] = Field(default_factory=dict)
    motion: MotionConfig = Field(default_factory=MotionConfig)
    typography: TypographyConfig = Field(default_factory=TypographyConfig)
    focus: FocusConfig = Field(default_factory=FocusConfig)
    z_index: Dict[str, int] = Field(default_factory=dict)
    opacity: Dict[str, float] = Field(default_factory=dict)
    breakpoints: Dict[str, str] = Field(default_factory=dict)
    accessibility: AccessibilityConfig = Field(default_factory=AccessibilityConfig)

    @model_validator(mode='after')
    def validate_opacity(self):
        for name, value in self.opacity.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"opacity '{name}' must be between 0 and 1, got {value}")
        return self


@dataclass(frozen=True)
class ThemeVariantMetadata:
    """Provenance of a theme variant"""
    plugin_id: Optional[str] = None
    base_variant: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {'plugin_id': self.plugin_id, 'base_variant': self.base_variant}


@dataclass(frozen=True)
class ThemeConfig:
    """Immutable output of a successful build.

    Mappings are read-only views; construct through ``ThemeConfig.create``.
    """

    colors: Mapping[str, ColorDefinition]
    themes: Mapping[str, SemanticTokens]
    design_tokens: DesignTokens = field(default_factory=DesignTokens)
    dark_mode: Optional[DarkModeAdjustments] = None
    theme_metadata: Mapping[str, ThemeVariantMetadata] = field(
        default_factory=lambda: MappingProxyType({})
    )
    color_owners: Mapping[str, Optional[str]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def create(
        cls,
        colors: Dict[str, ColorDefinition],
        themes: Dict[str, SemanticTokens],
        design_tokens: Optional[DesignTokens] = None,
        dark_mode: Optional[DarkModeAdjustments] = None,
        theme_metadata: Optional[Dict[str, ThemeVariantMetadata]] = None,
        color_owners: Optional[Dict[str, Optional[str]]] = None,
    ) -> 'ThemeConfig':
        return cls(
            colors=MappingProxyType(dict(colors)),
            themes=MappingProxyType(dict(themes)),
            design_tokens=design_tokens or DesignTokens(),
            dark_mode=dark_mode,
            theme_metadata=MappingProxyType(dict(theme_metadata or {})),
            color_owners=MappingProxyType(dict(color_owners or {})),
        )

    @property
    def spacing(self) -> SpacingConfig:
        return self.design_tokens.spacing

    @property
    def radius(self) -> Dict[str, float]:
        return self.design_tokens.radius

    @property
    def motion(self) -> MotionConfig:
        return self.design_tokens.motion

    @property
    def typography(self) -> TypographyConfig:
        return self.design_tokens.typography

    @property
    def focus(self) -> FocusConfig:
        return self.design_tokens.focus

    @property
    def z_index(self) -> Dict[str, int]:
        return self.design_tokens.z_index

    @property
    def opacity(self) -> Dict[str, float]:
        return self.design_tokens.opacity

    @property
    def breakpoints(self) -> Dict[str, str]:
        return self.design_tokens.breakpoints

    @property
    def accessibility(self) -> AccessibilityConfig:
        return self.design_tokens.accessibility

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain data (references as ``name.step`` strings)."""
        return {
            'colors': {
                name: definition.model_dump(mode='json', exclude_none=True)
                for name, definition in self.colors.items()
            },
            'dark_mode': self.dark_mode.model_dump() if self.dark_mode else None,
            'themes': {name: tokens.to_strings() for name, tokens in self.themes.items()},
            'theme_metadata': {
                name: meta.to_dict() for name, meta in self.theme_metadata.items()
            },
            **self.design_tokens.model_dump(mode='json'),
        }


# Type aliases for convenience
ColorScale = Dict[int, GeneratedColorStep]
TokenDict = Dict[str, Any]
