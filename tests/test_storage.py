"""Tests for the SQLite preference store."""

from __future__ import annotations

from ambient_appearance.storage.sqlite_repo import SQLiteRepository


class TestSQLiteRepository:
    async def test_empty_after_init(self, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "prefs.db"))
        await repo.init()

        assert await repo.get_all_settings() == {}

    async def test_batch_upserts(self, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "prefs.db"))
        await repo.init()

        await repo.set_settings_batch({"darkness_threshold": 40.0, "is_auto_mode_enabled": False})
        await repo.set_settings_batch({"darkness_threshold": 45.0, "time_override_start": "22:00"})

        assert await repo.get_all_settings() == {
            "darkness_threshold": 45.0,
            "is_auto_mode_enabled": False,
            "time_override_start": "22:00",
        }

    async def test_init_is_idempotent(self, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "prefs.db"))
        await repo.init()
        await repo.set_settings_batch({"settle_delay_seconds": 30.0})
        await repo.init()

        assert await repo.get_all_settings() == {"settle_delay_seconds": 30.0}
