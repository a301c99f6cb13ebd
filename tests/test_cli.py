"""Tests for the tokenforge command-line interface."""

from pathlib import Path

from click.testing import CliRunner

from tokenforge import __version__
from tokenforge.cli.commands import main
from tokenforge.config import CONFIG_FILE_NAME, Config


class TestCLI:
    """Test CLI commands against the built-in presets."""

    def setup_method(self):
        Config._instance = None
        Config._path = None
        self.runner = CliRunner()

    def teardown_method(self):
        Config._instance = None
        Config._path = None

    def test_version(self):
        result = self.runner.invoke(main, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['list'])
        assert result.exit_code == 0
        assert 'Available Plugins' in result.output
        assert 'primitives' in result.output

    def test_validate(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['validate'])
        assert result.exit_code == 0
        assert 'Theme is valid' in result.output

    def test_build_writes_types(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['build'])
            assert result.exit_code == 0, result.output
            assert Path('dist/theme/theme-colors.d.ts').is_file()
        assert 'Theme built' in result.output

    def test_build_custom_types_output(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['build', '--types-output', 'out/colors.d.ts'])
            assert result.exit_code == 0, result.output
            assert Path('out/colors.d.ts').is_file()

    def test_types_to_stdout(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['types', '-o', '-', '--module-name', '@acme/theme'])
            assert not Path('dist').exists()
        assert result.exit_code == 0
        assert 'export type ColorName' in result.output
        assert "import type { ColorRef } from '@acme/theme';" in result.output

    def test_types_to_file(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['types', '-o', 'colors.d.ts', '--no-jsdoc'])
            assert result.exit_code == 0
            text = Path('colors.d.ts').read_text()
        assert 'Wrote type declarations to' in result.output
        assert 'Available color names' not in text

    def test_contrast(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['contrast', '--variant', 'light'])
        assert result.exit_code == 0
        assert 'light (AA)' in result.output

    def test_contrast_unknown_variant(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['contrast', '--variant', 'sepia'])
        assert result.exit_code == 1
        assert 'Unknown theme variant' in result.output

    def test_unknown_plugin(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(main, ['validate', '-p', 'nope'])
        assert result.exit_code == 1
        assert 'plugin not found' in result.output

    def test_user_plugin(self):
        with self.runner.isolated_filesystem():
            Path('plugins').mkdir()
            Path('plugins/accent.yaml').write_text(
                'id: accent\n'
                'version: 1.0.0\n'
                'dependencies: [blueprint-core]\n'
                'colors:\n'
                '  teal: {source: "#14b8a6", scale: [500]}\n'
            )
            result = self.runner.invoke(
                main, ['types', '-o', '-', '-p', 'primitives', '-p', 'core', '-p', 'accent']
            )
        assert result.exit_code == 0
        assert 'teal500: ColorRef;' in result.output

    def test_build_without_colors_fails(self):
        with self.runner.isolated_filesystem():
            Path('plugins').mkdir()
            Path('plugins/empty.yaml').write_text('id: empty\nversion: 1.0.0\n')
            result = self.runner.invoke(main, ['build', '-p', 'empty'])
            assert not Path('dist').exists()
        assert result.exit_code == 1
        assert 'no colors registered' in result.output

    def test_bad_config(self):
        with self.runner.isolated_filesystem():
            Path(CONFIG_FILE_NAME).write_text('bogus: 1\n')
            result = self.runner.invoke(main, ['list'])
        assert result.exit_code == 1
        assert 'Configuration error' in result.output

    def test_config_option(self):
        with self.runner.isolated_filesystem():
            Path('custom.yaml').write_text('types_output: types/theme.d.ts\n')
            result = self.runner.invoke(main, ['--config', 'custom.yaml', 'build'])
            assert result.exit_code == 0, result.output
            assert Path('types/theme.d.ts').is_file()
