"""Tests for Alembic migration infrastructure."""

from __future__ import annotations

from typing import TYPE_CHECKING

from alembic.config import Config
from sqlalchemy import create_engine, inspect

from alembic import command

if TYPE_CHECKING:
    from pathlib import Path


def _config(db_path: Path) -> Config:
    cfg = Config("alembic.ini")
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    return cfg


def _inspect(db_path: Path):
    engine = create_engine(f"sqlite:///{db_path}")
    return engine, inspect(engine)


class TestAlembicMigrations:
    def test_upgrade_to_head_creates_all_tables(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test_alembic.db"
        command.upgrade(_config(db_path), "head")

        engine, inspector = _inspect(db_path)
        tables = set(inspector.get_table_names())
        engine.dispose()

        assert {"purchase_progress", "domains", "domain_activity_logs", "alembic_version"} <= tables

    def test_domains_table_matches_orm(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test_alembic.db"
        command.upgrade(_config(db_path), "head")

        engine, inspector = _inspect(db_path)
        columns = {c["name"] for c in inspector.get_columns("domains")}
        uniques = inspector.get_unique_constraints("domains")
        engine.dispose()

        from domainhub.db.orm import DomainRow

        assert columns == {c.name for c in DomainRow.__table__.columns}
        assert any(u["column_names"] == ["domain_name", "user_id"] for u in uniques)

    def test_progress_session_id_is_unique(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test_alembic.db"
        command.upgrade(_config(db_path), "head")

        engine, inspector = _inspect(db_path)
        columns = {c["name"] for c in inspector.get_columns("purchase_progress")}
        uniques = inspector.get_unique_constraints("purchase_progress")
        indexes = inspector.get_indexes("purchase_progress")
        engine.dispose()

        assert "cancel_requested" in columns
        unique_cols = [u["column_names"] for u in uniques] + [
            i["column_names"] for i in indexes if i["unique"]
        ]
        assert ["session_id"] in unique_cols

    def test_downgrade_drops_all_tables(self, tmp_path: Path) -> None:
        db_path = tmp_path / "test_alembic.db"
        cfg = _config(db_path)

        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine, inspector = _inspect(db_path)
        tables = set(inspector.get_table_names())
        engine.dispose()

        assert "purchase_progress" not in tables
        assert "domains" not in tables
        assert "domain_activity_logs" not in tables
