"""Tests for build settings."""

import pytest

from tokenforge.config import CONFIG_FILE_NAME, BuildSettings, Config, load_config, save_config


class TestBuildSettings:
    """Test the settings dataclass."""

    def test_defaults(self):
        settings = BuildSettings()
        assert settings.plugins == ['primitives', 'core']
        assert settings.contrast_standard == 'AA'
        assert settings.types_output == 'dist/theme/theme-colors.d.ts'
        assert settings.module_name == '@tokenforge/themes'

    def test_normalizes_case(self):
        settings = BuildSettings(contrast_standard='aaa', log_level='debug')
        assert settings.contrast_standard == 'AAA'
        assert settings.log_level == 'DEBUG'

    def test_invalid_standard(self):
        with pytest.raises(ValueError, match='contrast_standard'):
            BuildSettings(contrast_standard='A')

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match='log_level'):
            BuildSettings(log_level='LOUD')

    def test_yaml_round_trip(self):
        settings = BuildSettings(plugins=['core'], fail_on_contrast=True)
        assert BuildSettings.from_yaml(settings.to_yaml()) == settings

    def test_unknown_key(self):
        with pytest.raises(ValueError, match='Unknown setting'):
            BuildSettings.from_dict({'plugin_dir': 'x'})

    def test_non_mapping_yaml(self):
        with pytest.raises(ValueError, match='mapping'):
            BuildSettings.from_yaml('- a\n- b\n')

    def test_empty_yaml(self):
        assert BuildSettings.from_yaml('') == BuildSettings()


class TestConfig:
    """Test loading and saving settings files."""

    def setup_method(self):
        Config._instance = None
        Config._path = None

    def teardown_method(self):
        Config._instance = None
        Config._path = None

    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_config(tmp_path / CONFIG_FILE_NAME)
        assert settings == BuildSettings()

    def test_load_file(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('plugins:\n  - core\ncontrast_standard: AAA\n')
        settings = load_config(path)
        assert settings.plugins == ['core']
        assert settings.contrast_standard == 'AAA'
        assert settings.output_dir == 'dist/theme'

    def test_load_is_cached(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        first = load_config(path)
        assert load_config(path) is first
        assert Config.get() is first

    def test_invalid_file(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('contrast_standard: [1, 2\n')
        with pytest.raises(ValueError, match='Invalid settings'):
            load_config(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('colour: red\n')
        with pytest.raises(ValueError, match='Unknown setting'):
            load_config(path)

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / 'nested' / CONFIG_FILE_NAME
        load_config(path)
        save_config(BuildSettings(output_dir='out'), path)
        assert path.exists()
        assert Config.reload().output_dir == 'out'
