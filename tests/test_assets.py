"""Tests for plugin asset collection, copying and font CSS."""

import os

import pytest

from tokenforge.errors import (
    AssetNotFoundError,
    AssetSecurityError,
    BlockedExtensionError,
    DisallowedExtensionError,
    NullByteError,
    PathTraversalError,
)
from tokenforge.plugins import ThemePlugin
from tokenforge.theme_engine.assets import (
    MAX_ASSET_SIZE_BYTES,
    collect_plugin_assets,
    copy_plugin_assets,
    format_bytes,
    generate_font_face_css,
    generate_font_face_css_for_plugin,
    get_assets_total_size,
    get_font_families,
    get_font_format,
    get_plugin_ids_from_assets,
    plugin_has_fonts,
    sanitize_font_family,
    validate_asset_path,
)
from tokenforge.theme_engine.schema import AssetType, FontAssetDefinition


def asset_plugin(plugin_id, assets):
    return ThemePlugin(
        id=plugin_id,
        version='1.0.0',
        register=lambda builder: None,
        get_assets=lambda: assets,
    )


class TestValidateAssetPath:
    """Test asset path security checks."""

    def setup_method(self):
        self.plugin_id = 'brand'

    def _root(self, tmp_path):
        root = tmp_path / 'brand' / 'assets'
        (root / 'fonts').mkdir(parents=True)
        (root / 'fonts' / 'inter.woff2').write_bytes(b'wOF2')
        (root / 'LICENSE.txt').write_text('MIT')
        return root

    def test_valid_font(self, tmp_path):
        root = self._root(tmp_path)
        source = validate_asset_path(self.plugin_id, 'fonts/inter.woff2', AssetType.FONT, root)
        assert source == (root / 'fonts' / 'inter.woff2').resolve()

    def test_parent_traversal(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(PathTraversalError):
            validate_asset_path(self.plugin_id, '../../secret.txt', AssetType.OTHER, root)

    def test_backslash_traversal(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(PathTraversalError):
            validate_asset_path(self.plugin_id, 'fonts\\..\\..\\secret.txt', AssetType.OTHER, root)

    def test_absolute_path(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(PathTraversalError):
            validate_asset_path(self.plugin_id, '/etc/passwd.txt', AssetType.OTHER, root)

    def test_windows_drive(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(PathTraversalError):
            validate_asset_path(self.plugin_id, 'C:/fonts/inter.woff2', AssetType.FONT, root)

    def test_null_byte(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(NullByteError):
            validate_asset_path(self.plugin_id, 'fonts/inter.woff2\0.txt', AssetType.FONT, root)

    def test_blocked_extension(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(BlockedExtensionError):
            validate_asset_path(self.plugin_id, 'scripts/evil.js', AssetType.OTHER, root)

    def test_blocked_inner_extension(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(BlockedExtensionError):
            validate_asset_path(self.plugin_id, 'fonts/payload.exe.woff2', AssetType.FONT, root)

    def test_wrong_extension_for_type(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(DisallowedExtensionError):
            validate_asset_path(self.plugin_id, 'fonts/inter.woff2', AssetType.IMAGE, root)

    def test_missing_file(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(AssetNotFoundError):
            validate_asset_path(self.plugin_id, 'fonts/missing.woff2', AssetType.FONT, root)

    @pytest.mark.skipif(not hasattr(os, 'symlink'), reason="symlinks unavailable")
    def test_symlink_escape(self, tmp_path):
        root = self._root(tmp_path)
        outside = tmp_path / 'outside.txt'
        outside.write_text('secret')
        (root / 'link.txt').symlink_to(outside)
        with pytest.raises(PathTraversalError):
            validate_asset_path(self.plugin_id, 'link.txt', AssetType.OTHER, root)

    def test_errors_share_base_class(self, tmp_path):
        root = self._root(tmp_path)
        with pytest.raises(AssetSecurityError) as exc_info:
            validate_asset_path(self.plugin_id, '../x.txt', AssetType.OTHER, root)
        assert exc_info.value.plugin_id == 'brand'
        assert exc_info.value.path == '../x.txt'


class TestCollectAndCopy:
    """Test collection and copying."""

    def setup_method(self):
        self.font = {'type': 'font', 'path': 'fonts/inter.woff2', 'family': 'Inter', 'weight': 400}
        self.license = {'type': 'other', 'path': 'LICENSE.txt'}

    def _plugins_dir(self, tmp_path):
        plugins_dir = tmp_path / 'plugins'
        root = plugins_dir / 'brand' / 'assets'
        (root / 'fonts').mkdir(parents=True)
        (root / 'fonts' / 'inter.woff2').write_bytes(b'wOF2data')
        (root / 'LICENSE.txt').write_text('MIT')
        return plugins_dir

    def test_collect(self, tmp_path):
        plugins_dir = self._plugins_dir(tmp_path)
        assets = collect_plugin_assets([asset_plugin('brand', [self.font, self.license])], plugins_dir)
        assert [a.target_path for a in assets] == ['brand/assets/fonts/inter.woff2', 'brand/assets/LICENSE.txt']
        assert isinstance(assets[0].definition, FontAssetDefinition)
        assert get_plugin_ids_from_assets(assets) == ['brand']

    def test_plugins_without_assets(self, tmp_path):
        plain = ThemePlugin(id='plain', version='1.0.0', register=lambda b: None)
        assert collect_plugin_assets([plain], tmp_path) == []

    def test_custom_asset_root(self, tmp_path):
        root = tmp_path / 'elsewhere'
        root.mkdir()
        (root / 'logo.svg').write_text('<svg/>')
        plugin = asset_plugin('brand', [{'type': 'image', 'path': 'logo.svg'}])
        plugin.asset_root = root
        assets = collect_plugin_assets([plugin], tmp_path / 'unused')
        assert assets[0].source_path == (root / 'logo.svg').resolve()

    def test_first_bad_asset_fails_collection(self, tmp_path):
        plugins_dir = self._plugins_dir(tmp_path)
        plugin = asset_plugin('brand', [self.font, {'type': 'other', 'path': 'run.sh'}])
        with pytest.raises(BlockedExtensionError):
            collect_plugin_assets([plugin], plugins_dir)

    def test_invalid_definition(self, tmp_path):
        plugin = asset_plugin('brand', [{'type': 'video', 'path': 'clip.mp4'}])
        with pytest.raises(ValueError):
            collect_plugin_assets([plugin], tmp_path)

    def test_copy(self, tmp_path):
        plugins_dir = self._plugins_dir(tmp_path)
        assets = collect_plugin_assets([asset_plugin('brand', [self.font, self.license])], plugins_dir)
        output = tmp_path / 'dist'

        result = copy_plugin_assets(assets, output)

        assert result.copied == ['brand/assets/fonts/inter.woff2', 'brand/assets/LICENSE.txt']
        assert result.warnings == []
        assert (output / 'brand' / 'assets' / 'fonts' / 'inter.woff2').read_bytes() == b'wOF2data'
        assert get_assets_total_size(assets) == len(b'wOF2data') + len('MIT')

    def test_large_asset_warning(self, tmp_path):
        plugins_dir = self._plugins_dir(tmp_path)
        big = plugins_dir / 'brand' / 'assets' / 'big.png'
        big.write_bytes(b'\0' * (MAX_ASSET_SIZE_BYTES + 1))
        assets = collect_plugin_assets([asset_plugin('brand', [{'type': 'image', 'path': 'big.png'}])], plugins_dir)

        result = copy_plugin_assets(assets, tmp_path / 'dist')

        assert len(result.warnings) == 1
        assert 'big.png' in result.warnings[0]


class TestFontFaceCss:
    """Test @font-face generation."""

    def _assets(self, tmp_path, fonts):
        plugins_dir = tmp_path / 'plugins'
        root = plugins_dir / 'brand' / 'assets'
        root.mkdir(parents=True)
        for font in fonts:
            (root / font['path']).write_bytes(b'font')
        (root / 'logo.svg').write_text('<svg/>')
        definitions = list(fonts) + [{'type': 'image', 'path': 'logo.svg'}]
        return collect_plugin_assets([asset_plugin('brand', definitions)], plugins_dir)

    def test_font_face(self, tmp_path):
        assets = self._assets(tmp_path, [{
            'type': 'font',
            'path': 'inter.woff2',
            'family': 'Inter',
            'weight': '100 900',
            'style': 'normal',
            'unicode_range': 'U+0000-00FF',
        }])
        css = generate_font_face_css(assets)

        assert css.startswith('/* Auto-generated @font-face declarations */')
        assert css.count('@font-face {') == 1
        assert "font-family: 'Inter';" in css
        assert "src: url('./brand/assets/inter.woff2') format('woff2');" in css
        assert 'font-weight: 100 900;' in css
        assert 'font-style: normal;' in css
        assert 'font-display: swap;' in css
        assert 'unicode-range: U+0000-00FF;' in css

    def test_url_is_encoded(self, tmp_path):
        assets = self._assets(tmp_path, [{'type': 'font', 'path': 'My Font.ttf', 'family': 'Mine'}])
        css = generate_font_face_css(assets, base_url='/static/')
        assert "url('/static/brand/assets/My%20Font.ttf') format('truetype')" in css

    def test_family_is_sanitized(self, tmp_path):
        assets = self._assets(tmp_path, [{'type': 'font', 'path': 'x.woff', 'family': "Evil'; } body { color: red"}])
        css = generate_font_face_css(assets)
        family_line = [line for line in css.splitlines() if 'font-family' in line][0]
        assert family_line.count("'") == 2
        assert '}' not in family_line and ';' not in family_line[:-1]

    def test_no_fonts(self, tmp_path):
        assert generate_font_face_css([]) == ''

    def test_plugin_helpers(self, tmp_path):
        assets = self._assets(tmp_path, [
            {'type': 'font', 'path': 'a.woff2', 'family': 'Inter'},
            {'type': 'font', 'path': 'b.woff2', 'family': 'Inter'},
        ])
        assert plugin_has_fonts(assets, 'brand')
        assert not plugin_has_fonts(assets, 'other')
        assert get_font_families(assets) == ['Inter']
        assert generate_font_face_css_for_plugin(assets, 'other') == ''
        assert generate_font_face_css_for_plugin(assets, 'brand').count('@font-face') == 2


class TestHelpers:
    """Test formatting helpers."""

    def test_sanitize_font_family(self):
        assert sanitize_font_family('  "Inter" ') == 'Inter'
        assert sanitize_font_family('a(b);{c}\\') == 'abc'

    @pytest.mark.parametrize('char', ["'", '"', '\\', ';', '{', '}', '(', ')', '\n', '\r'])
    def test_sanitize_removes_unsafe_character(self, char):
        assert sanitize_font_family(f'In{char}ter') == 'Inter'

    @pytest.mark.parametrize('family', [
        "x'; } body { color: red",
        'Inter"); @import url(evil.css); ("',
        '\'"\\;{}()\n\r',
        "Brand\n}\r\n.a{background:url('x')}",
    ])
    def test_sanitize_blocks_rule_injection(self, family):
        sanitized = sanitize_font_family(family)
        for char in '\'"\\;{}()\n\r':
            assert char not in sanitized

    def test_sanitized_family_in_css(self, tmp_path):
        root = tmp_path / 'brand' / 'assets'
        root.mkdir(parents=True)
        (root / 'x.woff2').write_bytes(b'wOF2')
        plugin = asset_plugin('brand', [
            {'type': 'font', 'path': 'x.woff2', 'family': "x'; } body { color: red"},
        ])
        css = generate_font_face_css(collect_plugin_assets([plugin], tmp_path))
        assert "font-family: 'x  body  color: red';" in css
        assert css.count('{') == css.count('}') == 1

    def test_get_font_format(self):
        assert get_font_format('x.woff2') == 'woff2'
        assert get_font_format('x.TTF') == 'truetype'
        assert get_font_format('x.otf') == 'opentype'
        assert get_font_format('x.eot') == 'embedded-opentype'

    def test_format_bytes(self):
        assert format_bytes(512) == '512 B'
        assert format_bytes(2048) == '2.0 KB'
        assert format_bytes(5 * 1024 * 1024) == '5.0 MB'

    def test_font_definition_validation(self):
        with pytest.raises(ValueError):
            FontAssetDefinition(path='x.woff2', family='  ')
        with pytest.raises(ValueError):
            FontAssetDefinition(path='x.woff2', family='Inter', weight=2000)
        with pytest.raises(ValueError):
            FontAssetDefinition(path='x.woff2', family='Inter', unicode_range='everything')
