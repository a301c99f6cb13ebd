"""Tests for the end-to-end build pipeline."""

import pytest

from tokenforge.config import BuildSettings
from tokenforge.errors import ThemeValidationFailed, TypeGenerationError
from tokenforge.pipeline import run_pipeline
from tokenforge.plugins import ThemePlugin
from tokenforge.theme_engine.schema import ValidationErrorType

from conftest import BASE_COLORS


def make_settings(tmp_path, **overrides):
    values = {
        'plugins_dir': str(tmp_path / 'plugins'),
        'output_dir': str(tmp_path / 'dist'),
        'types_output': str(tmp_path / 'dist' / 'theme-colors.d.ts'),
    }
    values.update(overrides)
    return BuildSettings(**values)


def font_plugin(tmp_path):
    root = tmp_path / 'plugins' / 'fonts' / 'assets'
    root.mkdir(parents=True)
    (root / 'inter.woff2').write_bytes(b'wOF2')
    return ThemePlugin(
        id='fonts',
        version='1.0.0',
        register=lambda builder: None,
        get_assets=lambda: [{'type': 'font', 'path': 'inter.woff2', 'family': 'Inter', 'weight': 400}],
    )


class TestRunPipeline:
    """Test building and writing artifacts."""

    def test_writes_types(self, tmp_path, palette_plugin):
        settings = make_settings(tmp_path)
        result = run_pipeline([palette_plugin], settings)

        assert result.plugin_order == ['palette']
        assert result.validation.valid
        assert result.contrast_violations == []
        assert result.types_path == tmp_path / 'dist' / 'theme-colors.d.ts'
        text = result.types_path.read_text()
        assert 'export interface BlueColorScale {' in text
        assert "export type ThemeVariantName =\n  | 'light';" in text
        assert result.font_css == ''
        assert result.font_css_path is None

    def test_no_write(self, tmp_path, palette_plugin):
        result = run_pipeline([palette_plugin], make_settings(tmp_path), write=False)
        assert result.types is not None
        assert result.types_path is None
        assert not (tmp_path / 'dist').exists()

    def test_types_disabled(self, tmp_path, palette_plugin):
        result = run_pipeline([palette_plugin], make_settings(tmp_path, types_output=None))
        assert result.types is not None
        assert result.types_path is None

    def test_module_name_setting(self, tmp_path, palette_plugin):
        settings = make_settings(tmp_path, module_name='@acme/theme', include_jsdoc=False)
        result = run_pipeline([palette_plugin], settings, write=False)
        assert "from '@acme/theme';" in result.types
        assert 'Available color names' not in result.types

    def test_no_colors_fails(self, tmp_path):
        empty = ThemePlugin(id='empty', version='1.0.0', register=lambda builder: None)
        with pytest.raises(TypeGenerationError, match='no colors registered'):
            run_pipeline([empty], make_settings(tmp_path))
        assert not (tmp_path / 'dist').exists()

    def test_no_colors_fails_without_write(self, tmp_path):
        empty = ThemePlugin(id='empty', version='1.0.0', register=lambda builder: None)
        with pytest.raises(TypeGenerationError):
            run_pipeline([empty], make_settings(tmp_path), write=False)

    def test_assets_and_font_css(self, tmp_path, palette_plugin):
        result = run_pipeline([palette_plugin, font_plugin(tmp_path)], make_settings(tmp_path))

        assert result.copied_assets == ['fonts/assets/inter.woff2']
        assert (tmp_path / 'dist' / 'fonts' / 'assets' / 'inter.woff2').read_bytes() == b'wOF2'
        assert result.font_css_path == tmp_path / 'dist' / 'fonts.css'
        css = result.font_css_path.read_text()
        assert "font-family: 'Inter';" in css
        assert "url('./fonts/assets/inter.woff2') format('woff2')" in css
        assert result.summary()['assets'] == 1

    def test_summary(self, tmp_path, palette_plugin):
        summary = run_pipeline([palette_plugin], make_settings(tmp_path), write=False).summary()
        assert summary['plugins'] == 1
        assert summary['colors'] == 5
        assert summary['variants'] == 1
        assert summary['errors'] == 0


class TestContrastGate:
    """Test contrast handling in the pipeline."""

    def _plugin(self, make_tokens):
        def register(builder):
            for name, definition in BASE_COLORS.items():
                builder.add_color(name, definition)
            builder.add_theme_variant('light', make_tokens(text_muted='gray.200'))

        return ThemePlugin(id='faint', version='1.0.0', register=register)

    def test_violations_reported(self, tmp_path, make_tokens):
        result = run_pipeline([self._plugin(make_tokens)], make_settings(tmp_path), write=False)
        assert [v.foreground_token for v in result.contrast_violations] == ['text_muted']
        assert result.summary()['contrast_violations'] == 1

    def test_fail_on_contrast(self, tmp_path, make_tokens):
        settings = make_settings(tmp_path, fail_on_contrast=True)
        with pytest.raises(ThemeValidationFailed) as exc_info:
            run_pipeline([self._plugin(make_tokens)], settings)

        errors = exc_info.value.result.errors
        assert [e.type for e in errors] == [ValidationErrorType.CONTRAST_VIOLATION]
        assert errors[0].field == 'text_muted'
        assert not (tmp_path / 'dist').exists()
