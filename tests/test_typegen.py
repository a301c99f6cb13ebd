"""Tests for TypeScript declaration generation."""

import pytest

from tokenforge.errors import TypeGenerationError
from tokenforge.theme_engine.schema import ColorDefinition, ColorMetadata, OKLCHColor
from tokenforge.theme_engine.typegen import (
    TypeGenerationConfig,
    generate_color_registry_type,
    generate_color_scale_type,
    generate_color_types,
    generate_complete_types,
    generate_theme_variant_types,
    to_pascal_case,
    write_type_declarations,
)


def color(steps=None, description=None):
    metadata = ColorMetadata(description=description) if description else None
    if steps is None:
        return ColorDefinition(source=OKLCHColor(l=0.5, c=0.1, h=200), metadata=metadata)
    return ColorDefinition(source=OKLCHColor(l=0.5, c=0.1, h=200), scale=steps, metadata=metadata)


class TestGenerateColorTypes:
    """Test the full declaration output."""

    def setup_method(self):
        self.colors = {
            'gray': color([50, 500, 900], description='Neutral grays'),
            'blue': color([500, 700]),
        }

    def test_header_and_import(self):
        output = generate_color_types(self.colors)
        assert 'Auto-generated theme color types' in output
        assert 'DO NOT EDIT MANUALLY' in output
        assert "import type { ColorRef } from '@tokenforge/themes';" in output

    def test_custom_module_name(self):
        output = generate_color_types(self.colors, TypeGenerationConfig(module_name='@acme/theme'))
        assert "import type { ColorRef } from '@acme/theme';" in output

    def test_color_names_sorted(self):
        output = generate_color_types(self.colors)
        assert "export type ColorName =\n  | 'blue'\n  | 'gray';" in output

    def test_scale_step_union(self):
        output = generate_color_types(self.colors)
        assert 'export type ColorScaleStep = 50 | 100 | 200 | 300 | 400 | 500 | 600 | 700 | 800 | 900 | 950;' in output

    def test_scale_interfaces(self):
        output = generate_color_types(self.colors)
        assert 'export interface GrayColorScale {\n  gray50: ColorRef;\n  gray500: ColorRef;\n  gray900: ColorRef;\n}' in output
        assert 'export interface BlueColorScale {' in output
        assert 'blue500: ColorRef;' in output
        assert 'gray100' not in output

    def test_registry_and_ref_string(self):
        output = generate_color_types(self.colors)
        assert 'export interface ColorRegistry extends BlueColorScale, GrayColorScale {}' in output
        assert 'export type ColorRefString = `${ColorName}.${ColorScaleStep}`;' in output

    def test_jsdoc(self):
        output = generate_color_types(self.colors)
        assert 'Available color names' in output
        assert 'Valid color scale steps' in output
        assert 'Color scale for gray' in output
        assert 'Neutral grays' in output

    def test_without_jsdoc(self):
        output = generate_color_types(self.colors, TypeGenerationConfig(include_jsdoc=False))
        assert '/**' in output  # file header only
        assert 'Available color names' not in output
        assert 'Color scale for gray' not in output

    def test_deterministic(self):
        reordered = {'blue': self.colors['blue'], 'gray': self.colors['gray']}
        assert generate_color_types(self.colors) == generate_color_types(reordered)

    def test_hyphenated_names(self):
        output = generate_color_types({'deep-ocean-blue': color([500])})
        assert 'export interface DeepOceanBlueColorScale {' in output
        assert "'deep-ocean-blue500': ColorRef;" in output

    def test_module_augmentation(self):
        output = generate_color_types(self.colors, TypeGenerationConfig(augment_module='@acme/theme'))
        assert "declare module '@acme/theme' {" in output
        assert 'readonly colors: ColorRegistry;' in output

    def test_dict_definitions(self):
        output = generate_color_types({'red': {'scale': [100]}})
        assert 'red100: ColorRef;' in output


class TestErrors:
    """Test generation preconditions."""

    def test_no_colors(self):
        with pytest.raises(TypeGenerationError, match='no colors registered'):
            generate_color_types({})

    def test_uppercase_name(self):
        with pytest.raises(TypeGenerationError, match='must start with lowercase letter'):
            generate_color_types({'Blue': color()})

    def test_name_starting_with_digit(self):
        with pytest.raises(TypeGenerationError):
            generate_color_types({'1blue': color()})

    def test_empty_scale(self):
        with pytest.raises(TypeGenerationError, match='Color "blue" has no scale steps'):
            generate_color_types({'blue': {'scale': []}})


class TestHelpers:
    """Test the smaller generators."""

    def test_to_pascal_case(self):
        assert to_pascal_case('blue') == 'Blue'
        assert to_pascal_case('ocean-blue') == 'OceanBlue'
        assert to_pascal_case('deep-ocean-blue') == 'DeepOceanBlue'

    def test_scale_type(self):
        assert generate_color_scale_type('red', [500, 100]) == (
            'export interface RedColorScale {\n  red100: ColorRef;\n  red500: ColorRef;\n}'
        )

    def test_registry_type(self):
        assert generate_color_registry_type(['gray', 'blue', 'red']) == (
            'export type ColorRegistry = GrayColorScale & BlueColorScale & RedColorScale;'
        )
        assert generate_color_registry_type([]) == 'export type ColorRegistry = Record<never, never>;'

    def test_variant_types(self):
        output = generate_theme_variant_types(['light', 'dark'], include_jsdoc=True)
        assert 'Available theme variant names' in output
        assert "export type ThemeVariantName =\n  | 'dark'\n  | 'light';" in output
        assert generate_theme_variant_types([]) == ''

    def test_complete_types(self):
        output = generate_complete_types({'blue': color([500])}, ['light'])
        assert 'export type ColorName' in output
        assert "export type ThemeVariantName =\n  | 'light';" in output

    def test_write(self, tmp_path):
        target = tmp_path / 'types' / 'theme.d.ts'
        path = write_type_declarations(target, 'export {};\n')
        assert path == target
        assert target.read_text() == 'export {};\n'
