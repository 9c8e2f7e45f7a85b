"""
Tests for collector configuration loading.
"""

import os
from pathlib import Path

import pytest

from alcollector import config as config_module
from alcollector.config import CollectorConfig, get_config


@pytest.fixture
def no_user_config(monkeypatch, tmp_path):
    """Point the search path away from the real home directory."""
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [tmp_path / "absent.yaml"])


class TestCollectorConfig:

    def test_defaults(self, no_user_config):
        config = CollectorConfig()
        assert config.config_path is None
        assert config.source_roots == []
        assert config.bundle_root is None
        assert config.image_format == "WEBP"
        assert config.excluded_ship_ids == (900000, 900999)
        assert config.parallel_roots is False

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "source_roots: [/data/EN, /data/CN]\n"
            "bundle_root: /data/bundles\n"
            "parallel_roots: true\n"
            "max_workers: 8\n"
            "image_format: png\n",
            encoding="utf-8",
        )
        config = CollectorConfig(path)
        assert config.config_path == path
        assert config.source_roots == [Path("/data/EN"), Path("/data/CN")]
        assert config.bundle_root == Path("/data/bundles")
        assert config.parallel_roots is True
        assert config.max_workers == 8
        assert config.image_format == "PNG"

    def test_environment_overrides(self, no_user_config, monkeypatch):
        monkeypatch.setenv("AL_SOURCE_ROOTS", os.pathsep.join(["/a", "/b"]))
        monkeypatch.setenv("AL_BUNDLE_ROOT", "/bundles")
        monkeypatch.setenv("AL_DATA_PATH", "scripts")
        config = CollectorConfig()
        assert config.source_roots == [Path("/a"), Path("/b")]
        assert config.bundle_root == Path("/bundles")
        assert config.script_path == "scripts"

    def test_invalid_yaml_falls_back(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("source_roots: [unclosed\n", encoding="utf-8")
        config = CollectorConfig(path)
        assert config.config_path is None
        assert config.source_roots == []

    def test_to_settings(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("excluded_ship_ids: [1, 5]\nscript_path: lua\n", encoding="utf-8")
        settings = CollectorConfig(path).to_settings()
        assert settings.excluded_ship_ids == (1, 5)
        assert settings.is_excluded_ship(3)
        assert not settings.is_excluded_ship(6)
        assert settings.script_path == "lua"

    def test_get_config_caches(self, no_user_config):
        first = get_config()
        assert get_config() is first
