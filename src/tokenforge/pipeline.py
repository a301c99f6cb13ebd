"""End-to-end theme build: plugins in, theme config and artifacts out.

The pipeline only sequences the theme engine stages; every decision
(ordering, validation, asset security, type output) lives in the engine.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import BuildSettings
from .errors import ThemeValidationFailed
from .theme_engine.assets import (
    ResolvedAsset,
    collect_plugin_assets,
    copy_plugin_assets,
    generate_font_face_css,
)
from .theme_engine.builder import ThemeBuilder
from .theme_engine.scale import generate_all_color_scales
from .theme_engine.schema import (
    ContrastViolation,
    ThemeConfig,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
    ValidationWarning,
)
from .theme_engine.typegen import (
    TypeGenerationConfig,
    generate_complete_types,
    write_type_declarations,
)
from .theme_engine.validator import validate_theme_contrast

logger = logging.getLogger(__name__)


FONT_CSS_FILE_NAME = "fonts.css"


@dataclass
class PipelineResult:
    """Everything a build produced"""
    config: ThemeConfig
    plugin_order: List[str]
    validation: ValidationResult
    contrast_violations: List[ContrastViolation] = field(default_factory=list)
    assets: List[ResolvedAsset] = field(default_factory=list)
    copied_assets: List[str] = field(default_factory=list)
    font_css: str = ""
    font_css_path: Optional[Path] = None
    types: Optional[str] = None
    types_path: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        """Counts for reporting"""
        return {
            'plugins': len(self.plugin_order),
            'colors': len(self.config.colors),
            'variants': len(self.config.themes),
            'errors': len(self.validation.errors),
            'warnings': len(self.validation.warnings) + len(self.warnings),
            'contrast_violations': len(self.contrast_violations),
            'assets': len(self.copied_assets),
        }


def _contrast_errors(violations: Sequence[ContrastViolation]) -> ValidationResult:
    return ValidationResult(errors=[
        ValidationError(
            type=ValidationErrorType.CONTRAST_VIOLATION,
            message=(
                f"{v.foreground_token} on {v.background_token} in '{v.variant}' theme: "
                f"{v.ratio:.2f}:1 (required {v.required}:1)"
            ),
            variant=v.variant,
            field=v.foreground_token,
            details={'ratio': v.ratio, 'required': v.required},
        )
        for v in violations
    ])


async def run_pipeline_async(
    plugins: Sequence[Any],
    settings: Optional[BuildSettings] = None,
    write: bool = True,
) -> PipelineResult:
    """Build a theme from plugins and emit its artifacts.

    Args:
        plugins: Plugins in any order
        settings: Build settings (defaults if omitted)
        write: Copy assets and write font CSS and type declarations

    Returns:
        PipelineResult

    Raises:
        ThemeBuildError: From any failing stage; ``ThemeValidationFailed``
            also when ``fail_on_contrast`` is set and a pair fails
        TypeGenerationError: If no colors are registered
    """
    settings = settings or BuildSettings()

    builder = ThemeBuilder(plugins, contrast_standard=settings.contrast_standard)
    config = await builder.build(validate=True)
    ordered = builder.get_plugins()
    validation = builder.validate()

    primitives = generate_all_color_scales(dict(config.colors))
    skipped: List[ValidationWarning] = []
    violations = validate_theme_contrast(config, settings.contrast_standard, primitives, skipped)
    validation.warnings.extend(w for w in skipped if w not in validation.warnings)
    if violations and settings.fail_on_contrast:
        raise ThemeValidationFailed(_contrast_errors(violations))

    result = PipelineResult(
        config=config,
        plugin_order=[p.id for p in ordered],
        validation=validation,
        contrast_violations=violations,
    )

    result.assets = collect_plugin_assets(ordered, settings.plugins_dir)
    result.font_css = generate_font_face_css(result.assets)

    result.types = generate_complete_types(
        dict(config.colors),
        list(config.themes),
        TypeGenerationConfig(
            output_path=settings.types_output,
            include_jsdoc=settings.include_jsdoc,
            module_name=settings.module_name,
        ),
    )

    if write:
        output_dir = Path(settings.output_dir)
        if result.assets:
            copied = copy_plugin_assets(result.assets, output_dir)
            result.copied_assets = copied.copied
            result.warnings.extend(copied.warnings)
        if result.font_css:
            output_dir.mkdir(parents=True, exist_ok=True)
            result.font_css_path = output_dir / FONT_CSS_FILE_NAME
            result.font_css_path.write_text(result.font_css, encoding='utf-8')
        if settings.types_output:
            result.types_path = write_type_declarations(settings.types_output, result.types)

    for warning in result.warnings:
        logger.warning(warning)
    logger.info(f"Pipeline finished: {result.summary()}")
    return result


def run_pipeline(
    plugins: Sequence[Any],
    settings: Optional[BuildSettings] = None,
    write: bool = True,
) -> PipelineResult:
    """Synchronous wrapper around ``run_pipeline_async``."""
    return asyncio.run(run_pipeline_async(plugins, settings, write))
