"""Tests for environment-driven settings."""

import os
import subprocess
import sys
from pathlib import Path

import pytest

from flowershop.config import DEFAULT_CORS_ORIGINS, Settings, cors_origins_from_env
from flowershop.storage import DatabaseStorage, MemStorage, create_storage


class TestSettingsFromEnv:
    def test_defaults(self, tmp_path):
        settings = Settings.from_env({"FLOWERSHOP_DATA_DIR": str(tmp_path)})

        assert settings.storage == "database"
        assert settings.database_url == f"sqlite:///{tmp_path / 'flowershop.db'}"
        assert settings.data_dir == tmp_path
        assert settings.seed is True
        assert settings.log_level == "INFO"
        assert settings.echo_sql is False
        assert settings.cors_origins == DEFAULT_CORS_ORIGINS

    def test_overrides(self):
        settings = Settings.from_env(
            {
                "FLOWERSHOP_STORAGE": " Memory ",
                "FLOWERSHOP_DATABASE_URL": "postgresql://shop@db/flowers",
                "FLOWERSHOP_SEED": "no",
                "FLOWERSHOP_LOG_LEVEL": "debug",
                "FLOWERSHOP_ECHO_SQL": "true",
            }
        )

        assert settings.storage == "memory"
        assert settings.database_url == "postgresql://shop@db/flowers"
        assert settings.seed is False
        assert settings.log_level == "DEBUG"
        assert settings.echo_sql is True

    def test_cors_origins_split(self):
        settings = Settings.from_env(
            {"FLOWERSHOP_CORS_ORIGINS": "https://shop.example, ,http://localhost:8080"}
        )
        assert settings.cors_origins == ("https://shop.example", "http://localhost:8080")

    def test_unknown_storage(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            Settings.from_env({"FLOWERSHOP_STORAGE": "redis"})


class TestCreateStorage:
    def test_memory(self):
        storage = create_storage(Settings(storage="memory"))
        assert isinstance(storage, MemStorage)

    def test_sqlite_file_creates_directory(self, tmp_path):
        db_file = tmp_path / "nested" / "dir" / "shop.db"
        storage = create_storage(Settings(database_url=f"sqlite:///{db_file}"))
        try:
            assert isinstance(storage, DatabaseStorage)
            assert Path(db_file).parent.is_dir()
            assert storage.list_flowers() == []
        finally:
            storage.engine.dispose()


class TestCorsOrigins:
    def test_default(self):
        assert cors_origins_from_env({}) == DEFAULT_CORS_ORIGINS

    def test_empty_uses_default(self):
        assert cors_origins_from_env({"FLOWERSHOP_CORS_ORIGINS": ""}) == DEFAULT_CORS_ORIGINS

    def test_ignores_other_settings(self):
        env = {"FLOWERSHOP_STORAGE": "redis", "FLOWERSHOP_CORS_ORIGINS": "https://shop.example"}
        assert cors_origins_from_env(env) == ("https://shop.example",)

    def test_api_imports_with_bad_storage_setting(self):
        """A bad backend name fails when storage is first used, not on import."""
        result = subprocess.run(
            [sys.executable, "-c", "import flowershop.api"],
            env={**os.environ, "FLOWERSHOP_STORAGE": "redis"},
            capture_output=True,
            text=True,
        )

        assert result.returncode == 0, result.stderr
