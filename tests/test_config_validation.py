"""Tests for configuration loading and validation logic in main.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagsmith.db.database import Database
from tagsmith.db.repositories import ApiCacheRepository
from tagsmith.main import load_config, main, validate_config
from tagsmith.models.config import AppConfig
from tagsmith.utils.constants import DEFAULT_MAX_RESULTS, DEFAULT_PROVIDER_ORDER, SORT_BY_TRACK


class TestValidateConfig:
    def test_valid_config_produces_no_warnings(self):
        config = {
            "library_path": "/home/me/Music",
            "max_results": 8,
            "track_casing": "lower",
            "sort_by": "title",
            "track_template": "%Track%-%Title%",
            "providers": ["itunes", "musicbrainz"],
        }
        warnings = validate_config(config)
        assert warnings == []
        assert config["library_path"] == "/home/me/Music"

    def test_dangerous_library_path_system_dir(self):
        config = {"library_path": "C:\\Windows\\System32"}
        warnings = validate_config(config)
        assert any("system directory" in w for w in warnings)
        assert config["library_path"] == ""

    def test_dangerous_posix_system_dir(self):
        config = {"library_path": "/usr"}
        warnings = validate_config(config)
        assert any("system directory" in w for w in warnings)
        assert config["library_path"] == ""

    def test_dangerous_library_path_drive_root(self):
        """Drive roots like D:\\ are flagged as too shallow."""
        config = {"library_path": "D:\\"}
        warnings = validate_config(config)
        assert any("level" in w.lower() for w in warnings)

    def test_shallow_library_path(self):
        config = {"library_path": "D:\\Music"}
        warnings = validate_config(config)
        assert len(warnings) == 1
        assert config["library_path"] == ""

    @pytest.mark.parametrize("value", [0, -3, "five", True, 2.5])
    def test_bad_max_results(self, value):
        config = {"max_results": value}
        warnings = validate_config(config)
        assert any("max_results" in w for w in warnings)
        assert config["max_results"] == DEFAULT_MAX_RESULTS

    def test_bad_casing_falls_back(self):
        config = {"release_casing": "shouty", "track_casing": "upper"}
        warnings = validate_config(config)
        assert any("release_casing" in w for w in warnings)
        assert "release_casing" not in config
        assert config["track_casing"] == "upper"

    def test_bad_sort_key(self):
        config = {"sort_by": "duration"}
        warnings = validate_config(config)
        assert any("sort_by" in w for w in warnings)
        assert config["sort_by"] == SORT_BY_TRACK

    def test_track_template_without_title(self):
        config = {"track_template": "%Track%-%Artist%"}
        warnings = validate_config(config)
        assert any("%Title%" in w for w in warnings)

    def test_track_template_title_token_any_case(self):
        assert validate_config({"track_template": "%track%-%TITLE%"}) == []

    def test_unknown_providers_dropped(self):
        config = {"providers": ["discogs", "itunes"]}
        warnings = validate_config(config)
        assert any("discogs" in w for w in warnings)
        assert config["providers"] == ["itunes"]

    def test_no_usable_providers_restores_default(self):
        config = {"providers": ["discogs"]}
        validate_config(config)
        assert config["providers"] == list(DEFAULT_PROVIDER_ORDER)

    def test_empty_config(self):
        """Empty config produces no warnings (uses defaults)."""
        assert validate_config({}) == []


class TestLoadConfig:
    def test_missing_file_is_empty(self, tmp_path: Path):
        assert load_config(tmp_path / "absent.yaml") == {}

    def test_reads_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("max_results: 3\nproviders:\n  - itunes\n", encoding="utf-8")
        assert load_config(path) == {"max_results": 3, "providers": ["itunes"]}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == {}

    def test_non_mapping_rejected(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_shipped_config_is_valid(self):
        config = load_config()
        assert validate_config(config) == []
        app = AppConfig.from_dict(config)
        assert app.providers == list(DEFAULT_PROVIDER_ORDER)


class TestAppConfig:
    def test_unknown_keys_and_nulls_ignored(self):
        config = AppConfig.from_dict({"max_results": 9, "nonsense": 1, "log_file": None})
        assert config.max_results == 9
        assert config.log_file is None

    def test_target_extension(self):
        assert AppConfig().target_extension is None
        assert AppConfig(target_format="MP3").target_extension == ".mp3"
        assert AppConfig(target_format=".flac").target_extension == ".flac"

    def test_library_path_resolved(self, tmp_path: Path):
        assert AppConfig().library_path_resolved is None
        assert AppConfig(library_path=str(tmp_path)).library_path_resolved == tmp_path.resolve()

    def test_defaults_are_independent(self):
        a, b = AppConfig(), AppConfig()
        a.replacements["&"] = "and"
        assert "&" not in b.replacements


class TestMain:
    def test_no_library_configured(self, tmp_path: Path):
        assert main(["--config", str(tmp_path / "absent.yaml")]) == 2

    def test_unsafe_library_refused(self, tmp_path: Path):
        assert main(["--config", str(tmp_path / "absent.yaml"), "/usr"]) == 2

    def _cached_config(self, tmp_path: Path) -> tuple[Path, Path]:
        cache_path = tmp_path / "cache.db"
        config_path = tmp_path / "config.yaml"
        config_path.write_text(f"cache_path: {cache_path}\n", encoding="utf-8")
        with Database(cache_path) as db:
            repo = ApiCacheRepository(db.connection)
            repo.put("itunes:search:a", {"n": 1})
            repo.put("musicbrainz:search:a", {"n": 2})
        return config_path, cache_path

    def test_clear_cache(self, tmp_path: Path, capsys):
        config_path, cache_path = self._cached_config(tmp_path)

        assert main(["--config", str(config_path), "--clear-cache"]) == 0

        assert "Removed 2 cached API responses" in capsys.readouterr().out
        with Database(cache_path) as db:
            assert ApiCacheRepository(db.connection).count() == 0

    def test_clear_cache_for_one_provider(self, tmp_path: Path):
        config_path, cache_path = self._cached_config(tmp_path)

        assert main(["--config", str(config_path), "--clear-cache", "itunes"]) == 0

        with Database(cache_path) as db:
            repo = ApiCacheRepository(db.connection)
            assert repo.count("itunes") == 0
            assert repo.count("musicbrainz") == 1
