"""
Unit tests for configuration loading and the page catalog.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from printsheet.config import (
    AppConfig, BUILTIN_PAGES, BUILTIN_STANDARDS, LayoutConfig, PageCatalog, PageSpec,
    PhotoStandard, get_config, load_catalog, load_config, load_yaml_config
)


CATALOG_YAML = """
default_page: card
default_standard: "1x1"
pages:
  - key: card
    label: Card
    width_px: 1000
    height_px: 700
  - key: broken
    label: Broken
    width_px: 0
    height_px: 700
standards:
  - key: "1x1"
    label: 1x1 inch
    width_px: 300
    height_px: 300
"""


class TestModels:
    """Test the catalog record types."""

    def test_page_spec_is_immutable(self):
        page = BUILTIN_PAGES['4x6_L']

        with pytest.raises(PydanticValidationError):
            page.width_px = 10

    @pytest.mark.parametrize("width, height", [(0, 100), (100, -1)])
    def test_dimensions_must_be_positive(self, width, height):
        with pytest.raises(PydanticValidationError):
            PageSpec(key='bad', label='Bad', width_px=width, height_px=height)
        with pytest.raises(PydanticValidationError):
            PhotoStandard(key='bad', label='Bad', width_px=width, height_px=height)

    def test_layout_config_rejects_negative_values(self):
        with pytest.raises(PydanticValidationError):
            LayoutConfig(margin_px=-1)
        with pytest.raises(PydanticValidationError):
            LayoutConfig(gap_px=-5)

    def test_builtin_tables(self):
        assert BUILTIN_PAGES['4x6_L'].size == (1800, 1200)
        assert BUILTIN_PAGES['4x6_P'].size == (1200, 1800)
        assert BUILTIN_PAGES['5x7_L'].size == (2100, 1500)
        assert BUILTIN_PAGES['A4_P'].size == (2480, 3508)
        assert BUILTIN_PAGES['Letter_P'].size == (2550, 3300)
        assert BUILTIN_STANDARDS['35x45'].size == (413, 531)
        assert BUILTIN_STANDARDS['2x2'].size == (600, 600)


class TestPageCatalog:
    """Test key resolution with fallback."""

    def test_resolve_known_keys(self):
        catalog = PageCatalog()

        assert catalog.resolve_page('A4_P').key == 'A4_P'
        assert catalog.resolve_standard('2x2').key == '2x2'

    @pytest.mark.parametrize("key", ['nope', '', None, '4X6_L'])
    def test_unknown_page_falls_back_to_default(self, key):
        catalog = PageCatalog()

        assert catalog.resolve_page(key).key == '4x6_L'

    def test_unknown_standard_falls_back_to_default(self):
        catalog = PageCatalog()

        assert catalog.resolve_standard('passport').key == '35x45'

    def test_fallback_is_logged(self, log_messages):
        PageCatalog().resolve_page('nope')

        assert any(r['level'].name == 'WARNING' and 'nope' in r['message'] for r in log_messages)

    def test_missing_default_uses_first_entry(self):
        catalog = PageCatalog(default_page='gone', default_standard='gone')

        assert catalog.resolve_page('nope').key == '4x6_L'
        assert catalog.resolve_standard('nope').key == '35x45'

    def test_options(self):
        catalog = PageCatalog()

        pages = catalog.page_options()
        standards = catalog.standard_options()

        assert [p['key'] for p in pages] == ['4x6_L', '4x6_P', '5x7_L', 'A4_P', 'Letter_P']
        assert pages[0] == {'key': '4x6_L', 'label': '4x6 Inch (Landscape)', 'width_px': 1800, 'height_px': 1200}
        assert [s['key'] for s in standards] == ['35x45', '2x2']


class TestLoadCatalog:
    """Test loading the catalog from YAML."""

    def test_load_from_yaml(self, temp_work_dir):
        path = temp_work_dir / "catalog.yaml"
        path.write_text(CATALOG_YAML, encoding='utf-8')

        catalog = load_catalog(str(path))

        assert list(catalog.pages) == ['card']
        assert list(catalog.standards) == ['1x1']
        assert catalog.resolve_page('unknown').key == 'card'
        assert catalog.resolve_standard(None).key == '1x1'

    def test_invalid_entries_are_skipped(self, temp_work_dir, log_messages):
        path = temp_work_dir / "catalog.yaml"
        path.write_text(CATALOG_YAML, encoding='utf-8')

        catalog = load_catalog(str(path))

        assert 'broken' not in catalog.pages
        assert any(r['level'].name == 'ERROR' and 'broken' in r['message'] for r in log_messages)

    def test_missing_file_uses_builtin_tables(self, temp_work_dir):
        catalog = load_catalog(str(temp_work_dir / "missing.yaml"))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.standards == BUILTIN_STANDARDS
        assert catalog.default_page == '4x6_L'
        assert catalog.default_standard == '35x45'

    def test_empty_tables_use_builtin_tables(self, temp_work_dir):
        path = temp_work_dir / "catalog.yaml"
        path.write_text("pages: []\n", encoding='utf-8')

        catalog = load_catalog(str(path))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.standards == BUILTIN_STANDARDS

    def test_blank_table_keys_use_builtin_tables(self, temp_work_dir):
        path = temp_work_dir / "catalog.yaml"
        path.write_text("default_page:\npages:\nstandards:\n", encoding='utf-8')

        catalog = load_catalog(str(path))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.standards == BUILTIN_STANDARDS
        assert catalog.default_page == '4x6_L'

    def test_table_that_is_not_a_list(self, temp_work_dir, log_messages):
        path = temp_work_dir / "catalog.yaml"
        path.write_text("pages: 5\nstandards:\n  35x45: 413\n", encoding='utf-8')

        catalog = load_catalog(str(path))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.standards == BUILTIN_STANDARDS
        assert any(r['level'].name == 'ERROR' and 'page' in r['message'] for r in log_messages)

    def test_top_level_that_is_not_a_mapping(self, temp_work_dir):
        path = temp_work_dir / "catalog.yaml"
        path.write_text("- 4x6_L\n- A4_P\n", encoding='utf-8')

        catalog = load_catalog(str(path))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.resolve_page('A4_P').key == 'A4_P'

    def test_shipped_catalog_matches_builtin_tables(self):
        from pathlib import Path

        shipped = Path(__file__).resolve().parents[1] / "config" / "catalog.yaml"

        catalog = load_catalog(str(shipped))

        assert catalog.pages == BUILTIN_PAGES
        assert catalog.standards == BUILTIN_STANDARDS


class TestLoadConfig:
    """Test settings loading and overrides."""

    def test_defaults_without_files(self, temp_work_dir, monkeypatch):
        monkeypatch.chdir(temp_work_dir)
        monkeypatch.delenv('FLASK_ENV', raising=False)
        monkeypatch.delenv('LOG_LEVEL', raising=False)

        config = load_config('development')

        assert config.DEBUG is True
        assert config.LAYOUT_MARGIN_PX == 20
        assert config.LAYOUT_GAP_PX == 15
        assert config.LAYOUT_MINIMUM_ACCEPTABLE == 8
        assert config.OUTPUT_QUALITY == 95

    def test_yaml_and_environment_overrides(self, temp_work_dir, monkeypatch):
        monkeypatch.chdir(temp_work_dir)
        (temp_work_dir / "config").mkdir()
        (temp_work_dir / "config" / "settings.yaml").write_text(
            "LAYOUT_MARGIN_PX: 25\nLAYOUT_GAP_PX: 20\nLOG_LEVEL: INFO\n", encoding='utf-8')
        (temp_work_dir / "config" / "settings_production.yaml").write_text(
            "LAYOUT_MINIMUM_ACCEPTABLE: 4\n", encoding='utf-8')
        monkeypatch.delenv('FLASK_ENV', raising=False)
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')

        config = load_config('production')

        assert config.FLASK_ENV == 'production'
        assert config.DEBUG is False
        assert config.LOG_LEVEL == 'DEBUG'
        assert config.layout_config() == LayoutConfig(margin_px=25, gap_px=20, minimum_acceptable=4)

    def test_invalid_settings_fall_back_to_defaults(self, temp_work_dir, monkeypatch):
        monkeypatch.chdir(temp_work_dir)
        (temp_work_dir / "config").mkdir()
        (temp_work_dir / "config" / "settings.yaml").write_text("OUTPUT_QUALITY: 500\n", encoding='utf-8')

        config = load_config('development')

        assert config.OUTPUT_QUALITY == 95

    def test_load_yaml_missing_file(self, temp_work_dir):
        assert load_yaml_config(str(temp_work_dir / "nope.yaml")) == {}

    def test_load_yaml_non_mapping_file(self, temp_work_dir):
        path = temp_work_dir / "list.yaml"
        path.write_text("- one\n- two\n", encoding='utf-8')

        assert load_yaml_config(str(path)) == {}

    def test_load_yaml_malformed_file(self, temp_work_dir):
        path = temp_work_dir / "bad.yaml"
        path.write_text("key: [unclosed\n", encoding='utf-8')

        assert load_yaml_config(str(path)) == {}

    def test_layout_config_from_app_config(self):
        config = AppConfig(LAYOUT_MARGIN_PX=0, LAYOUT_GAP_PX=0, LAYOUT_MINIMUM_ACCEPTABLE=1)

        assert config.layout_config() == LayoutConfig(margin_px=0, gap_px=0, minimum_acceptable=1)

    def test_get_config_loads_once(self, settings_dir):
        (settings_dir / "settings.yaml").write_text("LAYOUT_GAP_PX: 20\n", encoding='utf-8')

        first = get_config()
        (settings_dir / "settings.yaml").write_text("LAYOUT_GAP_PX: 5\n", encoding='utf-8')

        assert first.LAYOUT_GAP_PX == 20
        assert get_config() is first
