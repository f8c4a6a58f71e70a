"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import load_config, load_settings
from src.config.settings import Settings
from src.utils.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run from an empty directory so a developer's .env is not picked up."""
    monkeypatch.chdir(tmp_path)
    for name in ("CHUNK_SIZE", "CHUNK_OVERLAP", "QUERY_TOP_K", "ARCHIVE_BUCKET"):
        monkeypatch.delenv(name, raising=False)


def _write_yaml(tmp_path: Path, text: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestSettingsDefaults:
    def test_pipeline_constants(self) -> None:
        settings = Settings()
        assert settings.chunk_size == 500
        assert settings.chunk_overlap == 80
        assert settings.analysis_max_retries == 3
        assert settings.page_analysis_concurrency == 4
        assert settings.query_top_k == 5
        assert settings.max_upload_bytes == 20 * 1024 * 1024
        assert settings.chromadb_collection == "files_data"

    def test_archive_disabled_without_bucket(self) -> None:
        assert Settings().archive_enabled() is False
        assert Settings(archive_bucket="docs").archive_enabled() is True

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "800")
        assert Settings().chunk_size == 800


class TestLoadConfig:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path / "absent.yaml")) == {}

    def test_empty_file_is_empty(self, tmp_path: Path) -> None:
        assert load_config(_write_yaml(tmp_path, "")) == {}

    def test_reads_sections(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "ingestion:\n  chunk_size: 300\n")
        assert load_config(path) == {"ingestion": {"chunk_size": 300}}


class TestLoadSettings:
    def test_yaml_values_apply(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "ingestion:\n  chunk_size: 300\nstore:\n  query_top_k: 9\n")
        settings = load_settings(path)
        assert settings.chunk_size == 300
        assert settings.query_top_k == 9

    def test_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CHUNK_SIZE", "700")
        path = _write_yaml(tmp_path, "ingestion:\n  chunk_size: 300\n  chunk_overlap: 40\n")
        settings = load_settings(path)
        assert settings.chunk_size == 700
        assert settings.chunk_overlap == 40

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "ingestion:\n  chunk_sise: 300\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(path)
        assert "chunk_sise" in exc_info.value.message

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert load_settings(str(tmp_path / "absent.yaml")).chunk_size == 500

    def test_repository_config_is_valid(self) -> None:
        repo_config = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        settings = load_settings(str(repo_config))
        assert settings.chunk_size == 500
        assert settings.analysis_language == "Japanese"
