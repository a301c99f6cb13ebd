"""TypeScript declaration generation for the color registry.

Output depends only on the inputs: colors are sorted by name and steps by
their canonical order, so identical registries always produce identical text.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..errors import TypeGenerationError
from .schema import COLOR_STEPS, ColorDefinition

logger = logging.getLogger(__name__)


TYPE_COLOR_NAME_PATTERN = re.compile(r'^[a-z][a-z0-9-]*$')
_IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')

DEFAULT_MODULE_NAME = '@tokenforge/themes'


@dataclass
class TypeGenerationConfig:
    """Options for declaration output"""
    output_path: Optional[str] = None
    include_jsdoc: bool = True
    module_name: str = DEFAULT_MODULE_NAME
    augment_module: Optional[str] = None


def to_pascal_case(name: str) -> str:
    """``deep-ocean-blue`` -> ``DeepOceanBlue``."""
    return ''.join(part[:1].upper() + part[1:] for part in name.split('-') if part)


def _property_name(name: str) -> str:
    return name if _IDENTIFIER_PATTERN.match(name) else f"'{name}'"


def _scale_of(definition: Union[ColorDefinition, Mapping[str, Any]]) -> List[int]:
    if isinstance(definition, ColorDefinition):
        return list(definition.scale)
    return list(definition.get('scale') or [])


def _description_of(definition: Union[ColorDefinition, Mapping[str, Any]]) -> Optional[str]:
    if isinstance(definition, ColorDefinition):
        return definition.metadata.description if definition.metadata else None
    metadata = definition.get('metadata') or {}
    return metadata.get('description')


def validate_color_registry(colors: Mapping[str, Any]) -> None:
    """Check the registry can be expressed as type declarations.

    Raises:
        TypeGenerationError: No colors, an invalid name or an empty scale
    """
    if not colors:
        raise TypeGenerationError("Cannot generate types: no colors registered")

    for name, definition in colors.items():
        if not TYPE_COLOR_NAME_PATTERN.match(name):
            raise TypeGenerationError(
                f'Invalid color name "{name}": must start with lowercase letter and contain '
                'only lowercase letters, digits and hyphens'
            )
        if not _scale_of(definition):
            raise TypeGenerationError(f'Color "{name}" has no scale steps')


def generate_color_scale_type(
    name: str,
    steps: Iterable[int],
    include_jsdoc: bool = False,
    description: Optional[str] = None,
) -> str:
    """Interface listing one ``ColorRef`` member per registered step."""
    lines = []
    if include_jsdoc:
        lines.append('/**')
        lines.append(f' * Color scale for {name}')
        if description:
            lines.append(f' * {description}')
        lines.append(' */')

    lines.append(f'export interface {to_pascal_case(name)}ColorScale {{')
    for step in sorted(steps):
        lines.append(f'  {_property_name(f"{name}{step}")}: ColorRef;')
    lines.append('}')
    return '\n'.join(lines)


def generate_color_registry_type(names: Sequence[str]) -> str:
    """Intersection of every color scale type."""
    if not names:
        return 'export type ColorRegistry = Record<never, never>;'
    return 'export type ColorRegistry = ' + ' & '.join(
        f'{to_pascal_case(name)}ColorScale' for name in names
    ) + ';'


def generate_theme_variant_types(variants: Sequence[str], include_jsdoc: bool = False) -> str:
    """Union of theme variant names, or an empty string when there are none."""
    if not variants:
        return ''

    lines = []
    if include_jsdoc:
        lines += ['/**', ' * Available theme variant names', ' */']
    lines.append('export type ThemeVariantName =')
    lines += [f"  | '{name}'" for name in sorted(variants)]
    lines[-1] += ';'
    return '\n'.join(lines)


def generate_color_types(colors: Mapping[str, Any], config: Optional[TypeGenerationConfig] = None) -> str:
    """Generate declarations for a color registry.

    Args:
        colors: Color definitions keyed by name
        config: Output options

    Returns:
        Declaration text

    Raises:
        TypeGenerationError: If the registry fails validation
    """
    config = config or TypeGenerationConfig()
    validate_color_registry(colors)

    names = sorted(colors)
    jsdoc = config.include_jsdoc
    sections = [
        '\n'.join([
            '/**',
            ' * Auto-generated theme color types',
            ' * DO NOT EDIT MANUALLY - regenerate with `tokenforge types`',
            ' */',
        ]),
        f"import type {{ ColorRef }} from '{config.module_name}';",
    ]

    name_lines = []
    if jsdoc:
        name_lines += ['/**', ' * Available color names', ' */']
    name_lines.append('export type ColorName =')
    name_lines += [f"  | '{name}'" for name in names]
    name_lines[-1] += ';'
    sections.append('\n'.join(name_lines))

    step_lines = []
    if jsdoc:
        step_lines += ['/**', ' * Valid color scale steps', ' */']
    step_lines.append('export type ColorScaleStep = ' + ' | '.join(str(s) for s in COLOR_STEPS) + ';')
    sections.append('\n'.join(step_lines))

    for name in names:
        definition = colors[name]
        sections.append(generate_color_scale_type(
            name,
            _scale_of(definition),
            include_jsdoc=jsdoc,
            description=_description_of(definition),
        ))

    registry_lines = []
    if jsdoc:
        registry_lines += ['/**', ' * Every registered color step', ' */']
    scale_types = ', '.join(f'{to_pascal_case(name)}ColorScale' for name in names)
    registry_lines.append(f'export interface ColorRegistry extends {scale_types} {{}}')
    sections.append('\n'.join(registry_lines))

    sections.append('export type ColorRefString = `${ColorName}.${ColorScaleStep}`;')

    if config.augment_module:
        sections.append('\n'.join([
            f"declare module '{config.augment_module}' {{",
            '  interface ThemeBuilder {',
            '    readonly colors: ColorRegistry;',
            '  }',
            '}',
        ]))

    return '\n\n'.join(sections) + '\n'


def generate_complete_types(
    colors: Mapping[str, Any],
    variants: Sequence[str],
    config: Optional[TypeGenerationConfig] = None,
) -> str:
    """Color declarations followed by the theme variant union."""
    config = config or TypeGenerationConfig()
    output = generate_color_types(colors, config)
    variant_types = generate_theme_variant_types(variants, config.include_jsdoc)
    if variant_types:
        output += '\n' + variant_types + '\n'
    return output


def write_type_declarations(path: Union[str, Path], text: str) -> Path:
    """Write declaration text, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding='utf-8')
    logger.info(f"Wrote type declarations to {target}")
    return target
