"""Structural and contrast validation of built themes.

Validation never raises for business-rule failures: findings are
accumulated into a ``ValidationResult`` so callers see the complete set in
one pass. The validator works on a finished ``ThemeConfig`` plus the plugin
list, so it can be re-run independently of the builder.
"""

import inspect
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..plugins import check_plugin_dependencies, get_hook
from .refs import resolve_color_ref
from .scale import generate_all_color_scales
from .schema import (
    COLOR_TOKEN_FIELDS,
    REQUIRED_TOKEN_FIELDS,
    STRING_TOKEN_FIELDS,
    ColorRef,
    ColorScale,
    ContrastStandard,
    ContrastViolation,
    SemanticTokens,
    SpecialColor,
    ThemeConfig,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    ValidationWarning,
    ValidationWarningType,
    coerce_color_value,
)
from .utils import calculate_contrast_ratio, hue_difference

logger = logging.getLogger(__name__)


# Minimum ratios per standard
CONTRAST_REQUIREMENTS: Dict[ContrastStandard, Dict[str, float]] = {
    ContrastStandard.AA: {'text': 4.5, 'ui': 3.0},
    ContrastStandard.AAA: {'text': 7.0, 'ui': 3.0},
}

# (foreground, background, requirement category)
CONTRAST_PAIRS: Tuple[Tuple[str, str, str], ...] = (
    ('text', 'background', 'text'),
    ('text_muted', 'background', 'text'),
    ('text', 'surface', 'text'),
    ('border', 'background', 'ui'),
    ('border_strong', 'background', 'ui'),
    ('primary', 'background', 'ui'),
    ('success', 'background', 'ui'),
    ('error', 'background', 'ui'),
    ('warning', 'background', 'ui'),
    ('focus', 'background', 'ui'),
)

STATUS_FIELDS = ('success', 'warning', 'error', 'info')

REQUIRED_SPACING_SIZES = ('xs', 'sm', 'md', 'lg', 'xl')
REQUIRED_FONT_SIZES = ('xs', 'sm', 'base', 'lg', 'xl', '2xl')
REQUIRED_MOTION_DURATIONS = ('instant', 'fast', 'normal', 'slow')
REQUIRED_RADIUS_SIZES = ('none', 'sm', 'md', 'lg', 'xl')

TokensLike = Union[SemanticTokens, Mapping[str, Any]]


def _token_items(tokens: TokensLike) -> Dict[str, Any]:
    if isinstance(tokens, SemanticTokens):
        return tokens.as_dict()
    items = {}
    for key, value in tokens.items():
        items[SemanticTokens.field_name(key) or key] = value
    return items


def find_missing_tokens(tokens: TokensLike) -> List[str]:
    """Names of required semantic token fields absent from ``tokens``."""
    items = _token_items(tokens)
    return [name for name in REQUIRED_TOKEN_FIELDS if items.get(name) in (None, '')]


def _normalize_standard(standard: Union[str, ContrastStandard]) -> ContrastStandard:
    try:
        return ContrastStandard(standard)
    except ValueError:
        raise ValueError(f"Unknown contrast standard: {standard!r} (expected 'AA' or 'AAA')") from None


def contrast_thresholds(
    standard: Union[str, ContrastStandard],
    config: Optional[ThemeConfig] = None,
) -> Dict[str, float]:
    """Required ratios for a standard, raised by the theme's own minimums."""
    base = CONTRAST_REQUIREMENTS[_normalize_standard(standard)]
    thresholds = {'text': base['text'], 'ui': base['ui'], 'focus': base['ui']}
    if config is not None:
        minimum = config.accessibility.minimum_contrast
        thresholds['text'] = max(thresholds['text'], minimum.text)
        thresholds['ui'] = max(thresholds['ui'], minimum.ui)
        thresholds['focus'] = max(thresholds['focus'], minimum.focus)
    return thresholds


def validate_theme_contrast(
    config: ThemeConfig,
    standard: Union[str, ContrastStandard] = ContrastStandard.AA,
    primitives: Optional[Mapping[str, ColorScale]] = None,
    warnings: Optional[List[ValidationWarning]] = None,
) -> List[ContrastViolation]:
    """Check semantic foreground/background pairs against WCAG ratios.

    Pairs referencing a token that is absent from a variant, or a color
    that does not resolve, are skipped with a logged warning (also appended
    to ``warnings`` when given).

    Args:
        config: Built theme configuration
        standard: 'AA' or 'AAA'
        primitives: Pre-generated scales (generated from ``config`` if omitted)
        warnings: Optional list collecting skipped-pair warnings

    Returns:
        One ContrastViolation per failing pair
    """
    thresholds = contrast_thresholds(standard, config)
    if primitives is None:
        primitives = generate_all_color_scales(dict(config.colors))

    violations: List[ContrastViolation] = []
    for variant, tokens in config.themes.items():
        items = _token_items(tokens)
        for fg, bg, category in CONTRAST_PAIRS:
            required = thresholds['focus'] if fg == 'focus' else thresholds[category]

            if items.get(fg) is None or items.get(bg) is None:
                message = f"Skipping contrast check: missing token '{fg}' or '{bg}' in '{variant}' theme"
                logger.warning(message)
                if warnings is not None:
                    warnings.append(ValidationWarning(
                        type=ValidationWarningType.MISSING_TOKEN,
                        message=message,
                        variant=variant,
                        field=fg if items.get(fg) is None else bg,
                    ))
                continue

            try:
                fg_hex = resolve_color_ref(items[fg], primitives)
                bg_hex = resolve_color_ref(items[bg], primitives)
            except (KeyError, ValueError) as e:
                message = f"Skipping contrast check for '{fg}' on '{bg}' in '{variant}' theme: {e}"
                logger.warning(message)
                if warnings is not None:
                    warnings.append(ValidationWarning(
                        type=ValidationWarningType.MISSING_TOKEN,
                        message=message,
                        variant=variant,
                        field=fg,
                    ))
                continue

            ratio = calculate_contrast_ratio(fg_hex, bg_hex)
            if ratio < required:
                violations.append(ContrastViolation(
                    token=f"{variant}.{fg}",
                    foreground=fg_hex,
                    background=bg_hex,
                    ratio=ratio,
                    required=required,
                    variant=variant,
                    foreground_token=fg,
                    background_token=bg,
                ))

    return violations


def validate_theme_tokens(config: ThemeConfig) -> List[ValidationError]:
    """Check that the required design token entries are present.

    Intended for use inside plugin ``validate`` hooks.
    """
    errors: List[ValidationError] = []
    checks = (
        ('spacing.semantic', config.spacing.semantic, REQUIRED_SPACING_SIZES),
        ('typography.font_sizes', config.typography.font_sizes, REQUIRED_FONT_SIZES),
        ('motion.durations', config.motion.durations, REQUIRED_MOTION_DURATIONS),
        ('radius', config.radius, REQUIRED_RADIUS_SIZES),
    )

    if not config.spacing.base:
        errors.append(ValidationError(
            type=ValidationErrorType.MISSING_TOKEN,
            message="Missing or invalid spacing.base token",
            field='spacing.base',
        ))

    for path, values, required in checks:
        for key in required:
            value = values.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(ValidationError(
                    type=ValidationErrorType.MISSING_TOKEN,
                    message=f"Missing or invalid {path}.{key} token",
                    field=f"{path}.{key}",
                    details={'value': value},
                ))

    if not config.typography.font_families.get('sans'):
        errors.append(ValidationError(
            type=ValidationErrorType.MISSING_TOKEN,
            message="Missing typography.font_families.sans token",
            field='typography.font_families.sans',
        ))

    return errors


def validate_theme_accessibility(
    config: ThemeConfig,
    primitives: Optional[Mapping[str, ColorScale]] = None,
) -> List[ValidationError]:
    """Check key pairs against the theme's own minimum contrast settings.

    Unlike the contrast pass this also checks button text (``text_inverse``
    on ``primary``). Intended for use inside plugin ``validate`` hooks.
    """
    errors: List[ValidationError] = []
    minimum = config.accessibility.minimum_contrast
    if primitives is None:
        primitives = generate_all_color_scales(dict(config.colors))

    checks = (
        ('text', 'background', minimum.text, 'Text/background'),
        ('text', 'surface', minimum.text, 'Text/surface'),
        ('text_inverse', 'primary', minimum.ui, 'Primary button text'),
        ('border', 'background', minimum.ui, 'Border/background'),
        ('focus', 'background', minimum.focus, 'Focus/background'),
    )

    for variant, tokens in config.themes.items():
        items = _token_items(tokens)
        for fg, bg, required, label in checks:
            try:
                fg_hex = resolve_color_ref(items[fg], primitives)
                bg_hex = resolve_color_ref(items[bg], primitives)
            except (KeyError, ValueError):
                continue
            ratio = calculate_contrast_ratio(fg_hex, bg_hex)
            if ratio < required:
                errors.append(ValidationError(
                    type=ValidationErrorType.ACCESSIBILITY,
                    message=f"Theme '{variant}': {label} contrast {ratio:.2f}:1 is below minimum {required}:1",
                    variant=variant,
                    field=fg,
                    details={'contrast': ratio, 'minimum': required, 'colors': [fg_hex, bg_hex]},
                ))

    return errors


class ThemeValidator:
    """Validates a built theme configuration against its plugins."""

    def __init__(
        self,
        plugins: Optional[Sequence[Any]] = None,
        contrast_standard: Union[str, ContrastStandard] = ContrastStandard.AA,
    ):
        """Initialize the validator.

        Args:
            plugins: Plugins that produced the configuration
            contrast_standard: Standard used for the contrast findings
        """
        self.plugins = list(plugins or [])
        self.contrast_standard = _normalize_standard(contrast_standard)

    def validate(self, config: ThemeConfig) -> ValidationResult:
        """Run every structural check and collect the findings.

        Contrast violations are reported as ``contrast_violation`` errors
        when the theme enforces WCAG, otherwise as ``low_contrast`` warnings.
        """
        result = ValidationResult()
        self._check_dependencies(result)
        self._check_variants(config, result)
        self._run_plugin_validators(config, result)
        self._check_contrast(config, result)
        self._check_status_hues(config, result)

        logger.debug(
            f"Validation finished: {len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
        return result

    def _check_dependencies(self, result: ValidationResult) -> None:
        available = {plugin.id: plugin.version for plugin in self.plugins}
        for plugin in self.plugins:
            result.errors.extend(check_plugin_dependencies(plugin, available))

    def _check_variants(self, config: ThemeConfig, result: ValidationResult) -> None:
        for variant, tokens in config.themes.items():
            items = _token_items(tokens)

            for name in find_missing_tokens(items):
                result.errors.append(ValidationError(
                    type=ValidationErrorType.MISSING_TOKEN,
                    message=f'Theme variant "{variant}" is missing required token "{name}"',
                    variant=variant,
                    field=name,
                ))

            for name in STRING_TOKEN_FIELDS:
                value = items.get(name)
                if value is not None and not isinstance(value, str):
                    result.errors.append(ValidationError(
                        type=ValidationErrorType.INVALID_REF,
                        message=f'Theme variant "{variant}": token "{name}" must be a string',
                        variant=variant,
                        field=name,
                    ))

            for name in COLOR_TOKEN_FIELDS:
                value = items.get(name)
                if value is None:
                    continue
                try:
                    ref = coerce_color_value(value)
                    if isinstance(ref, Mapping):
                        ref = ColorRef.model_validate(ref)
                except ValueError as e:
                    result.errors.append(ValidationError(
                        type=ValidationErrorType.INVALID_REF,
                        message=f'Theme variant "{variant}": token "{name}" is not a color reference ({e})',
                        variant=variant,
                        field=name,
                    ))
                    continue

                if isinstance(ref, SpecialColor):
                    continue
                if not isinstance(ref, ColorRef):
                    result.errors.append(ValidationError(
                        type=ValidationErrorType.INVALID_REF,
                        message=f'Theme variant "{variant}": token "{name}" is not a color reference',
                        variant=variant,
                        field=name,
                    ))
                    continue

                definition = config.colors.get(ref.color_name)
                if definition is None or ref.step not in definition.scale:
                    result.errors.append(ValidationError(
                        type=ValidationErrorType.MISSING_COLOR,
                        message=(
                            f'Theme variant "{variant}": token "{name}" references '
                            f'non-existent color "{ref}"'
                        ),
                        variant=variant,
                        field=name,
                        details={'color_ref': str(ref)},
                    ))

    def _run_plugin_validators(self, config: ThemeConfig, result: ValidationResult) -> None:
        for plugin in self.plugins:
            hook = get_hook(plugin, 'validate')
            if hook is None:
                continue
            try:
                returned = hook(config)
                if inspect.isawaitable(returned):
                    if hasattr(returned, 'close'):
                        returned.close()
                    raise TypeError("validate hook must be synchronous")
                result.errors.extend(self._normalize_plugin_errors(plugin.id, returned))
            except Exception as e:
                logger.error(f"Validation hook of plugin '{plugin.id}' failed: {e}")
                result.errors.append(ValidationError(
                    type=ValidationErrorType.INVALID_REF,
                    message=f'Plugin "{plugin.id}" validation failed: {e}',
                    plugin_id=plugin.id,
                ))

    @staticmethod
    def _normalize_plugin_errors(plugin_id: str, returned: Optional[Iterable[Any]]) -> List[ValidationError]:
        errors = []
        for item in returned or []:
            if isinstance(item, ValidationError):
                error = item
            elif isinstance(item, Mapping):
                error = ValidationError.model_validate(item)
            else:
                error = ValidationError(type=ValidationErrorType.INVALID_REF, message=str(item))
            if error.plugin_id is None:
                error = error.model_copy(update={'plugin_id': plugin_id})
            errors.append(error)
        return errors

    def _check_contrast(self, config: ThemeConfig, result: ValidationResult) -> None:
        if not config.themes or not config.colors:
            return

        primitives = generate_all_color_scales(dict(config.colors))
        skipped: List[ValidationWarning] = []
        violations = validate_theme_contrast(config, self.contrast_standard, primitives, skipped)
        result.warnings.extend(skipped)

        enforce = config.accessibility.enforce_wcag
        for violation in violations:
            message = (
                f"Contrast {violation.ratio:.2f}:1 for {violation.token} on "
                f"{violation.background_token} is below {violation.required}:1"
            )
            if enforce:
                result.errors.append(ValidationError(
                    type=ValidationErrorType.CONTRAST_VIOLATION,
                    message=message,
                    variant=violation.variant,
                    field=violation.foreground_token,
                    details=violation.model_dump(),
                ))
            else:
                result.warnings.append(ValidationWarning(
                    type=ValidationWarningType.LOW_CONTRAST,
                    message=message,
                    variant=violation.variant,
                    field=violation.foreground_token,
                    details=violation.model_dump(),
                ))

    def _check_status_hues(self, config: ThemeConfig, result: ValidationResult) -> None:
        accessibility = config.accessibility
        if not accessibility.color_blind_safe:
            return

        for variant, tokens in config.themes.items():
            items = _token_items(tokens)
            hues = {}
            for name in STATUS_FIELDS:
                ref = items.get(name)
                if not isinstance(ref, ColorRef):
                    continue
                definition = config.colors.get(ref.color_name)
                # Achromatic colors have no meaningful hue
                if definition is None or definition.source.c < 0.02:
                    continue
                hues[name] = definition.source.h

            names = [n for n in STATUS_FIELDS if n in hues]
            for i, first in enumerate(names):
                for second in names[i + 1:]:
                    if items[first] == items[second]:
                        continue
                    diff = hue_difference(hues[first], hues[second])
                    if diff < accessibility.min_hue_difference:
                        result.warnings.append(ValidationWarning(
                            type=ValidationWarningType.SIMILAR_COLORS,
                            message=(
                                f"Theme '{variant}': '{first}' and '{second}' hues differ by "
                                f"{diff:.0f} degrees (minimum {accessibility.min_hue_difference:.0f})"
                            ),
                            variant=variant,
                            field=first,
                            details={'other': second, 'difference': diff},
                        ))
