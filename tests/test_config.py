"""
Tests for configuration loading.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from matcher.config import load_config, MatcherConfig, ENV_CATALOG_PATH, ENV_MATCH_THRESHOLD
from matcher.item_parser import NAME_REPLACEMENTS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_CATALOG_PATH, raising=False)
    monkeypatch.delenv(ENV_MATCH_THRESHOLD, raising=False)


class TestLoadConfig:

    def test_defaults(self):
        config = MatcherConfig()
        assert config.match_threshold == 0.40
        assert config.name_replacements == NAME_REPLACEMENTS
        assert config.ocr.binarize_threshold == 200

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text(
            "catalog_path: parts.xlsx\n"
            "match_threshold: 0.55\n"
            "name_replacements:\n"
            "  LW: LW (LOCK WASHER)\n"
            "ocr:\n"
            "  lang: en\n"
            "  preprocess: false\n",
            encoding="utf-8"
        )

        config = load_config(str(path))

        assert config.catalog_path == "parts.xlsx"
        assert config.match_threshold == 0.55
        assert config.name_replacements["LW"] == "LW (LOCK WASHER)"
        assert config.name_replacements["SW"] == "SW (SPRING WASHER)"
        assert config.ocr.lang == "en"
        assert config.ocr.preprocess is False

    def test_replace_default_names(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("replace_default_names: true\nname_replacements:\n  LW: LOCK WASHER\n", encoding="utf-8")

        assert load_config(str(path)).name_replacements == {"LW": "LOCK WASHER"}

    def test_defaults_not_shared_between_configs(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("name_replacements:\n  LW: LOCK WASHER\n", encoding="utf-8")
        load_config(str(path))

        assert "LW" not in NAME_REPLACEMENTS
        assert "LW" not in MatcherConfig().name_replacements

    def test_empty_file(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)).match_threshold == 0.40

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "cfg.yaml"
        path.write_text("match_threshold: 0.5\n", encoding="utf-8")
        monkeypatch.setenv(ENV_CATALOG_PATH, "/data/catalog.xlsx")
        monkeypatch.setenv(ENV_MATCH_THRESHOLD, "0.6")

        config = load_config(str(path))

        assert config.catalog_path == "/data/catalog.xlsx"
        assert config.match_threshold == 0.6

    def test_threshold_out_of_range(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("match_threshold: 40\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(str(path))

    def test_bundled_config_matches_defaults(self):
        bundled = Path(__file__).parent.parent / "config" / "matcher_config.yaml"
        config = load_config(str(bundled))

        assert config.match_threshold == 0.40
        assert config.name_replacements == NAME_REPLACEMENTS
        assert config.header_keywords == ["명칭", "재료", "수량", "규격"]

    def test_unknown_ocr_setting(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("ocr:\n  dpi: 300\n", encoding="utf-8")
        with pytest.raises(ValueError, match="dpi"):
            load_config(str(path))

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("match_threshold: [0.4\nocr: {lang: en\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Malformed YAML"):
            load_config(str(path))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("- 0.4\n- korean\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(str(path))

    def test_boolean_abbreviation_key_rejected(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text("name_replacements:\n  NO: NO (NUMBER)\n", encoding="utf-8")
        with pytest.raises(ValueError, match="quote"):
            load_config(str(path))

    def test_quoted_abbreviation_key(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text('name_replacements:\n  "NO": NO (NUMBER)\n', encoding="utf-8")
        assert load_config(str(path)).name_replacements["NO"] == "NO (NUMBER)"
