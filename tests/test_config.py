"""
Settings and database bootstrap tests.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.db.init_db import DatabaseInitializer


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None, database_url="sqlite://")

        assert settings.scan_cooldown_ms == 3000
        assert settings.processing_timeout_ms == 1000
        assert settings.record_repeat_scans is False
        assert settings.sync_endpoint.endswith("/codigos")

    def test_api_url_trailing_slash_stripped(self):
        settings = Settings(api_url="https://scans.example.com/api/")
        assert settings.sync_endpoint == "https://scans.example.com/api/codigos"

    def test_api_url_must_be_http(self):
        with pytest.raises(ValidationError):
            Settings(api_url="ftp://scans.example.com")

    def test_unknown_environment_falls_back(self):
        assert Settings(app_env="Qa").app_env == "development"
        assert Settings(app_env=" PRODUCTION ").is_production is True

    def test_negative_cooldown_rejected(self):
        with pytest.raises(ValidationError):
            Settings(scan_cooldown_ms=-1)

    def test_cors_origins(self):
        assert Settings(cors_origins='["http://a.test"]').cors_origins_list == ["http://a.test"]
        assert Settings(cors_origins="not json").cors_origins_list == ["*"]

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("sqlite:///./storage/db/scans.db", Path("storage/db/scans.db")),
            ("sqlite:///:memory:", None),
            ("sqlite://", None),
            ("postgresql://localhost/scans", None),
        ],
    )
    def test_database_path(self, url, expected):
        assert Settings(database_url=url).get_database_path() == expected


class TestDatabaseInitializer:

    def test_initialize_creates_scan_table(self):
        initializer = DatabaseInitializer()
        initializer.initialize()

        assert initializer.verify_tables() is True

    def test_reset_refused_in_production(self, monkeypatch):
        initializer = DatabaseInitializer()
        monkeypatch.setattr(initializer, "_settings", Settings(app_env="production"))
        dropped = []
        monkeypatch.setattr(initializer._db_manager, "drop_tables", lambda: dropped.append(True))

        initializer.reset()

        assert dropped == []
