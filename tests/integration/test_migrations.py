"""Tests for the Alembic migration scripts."""

import io
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

MIGRATIONS = Path(__file__).resolve().parents[2] / "hostel_billing" / "migrations"

ENUM_TYPES = ("userrole", "duestatus", "billtype", "paymentmethod", "paymenttype", "duetype")

TABLES = {
    "users",
    "hostels",
    "rooms",
    "tenancies",
    "rent_charges",
    "bills",
    "shared_utility_charges",
    "payments",
    "payment_allocations",
    "audit_logs",
}


def alembic_config(output=None) -> Config:
    config = Config(output_buffer=output) if output is not None else Config()
    config.set_main_option("script_location", str(MIGRATIONS))
    return config


class TestPostgresScript:
    """SQL rendered offline for PostgreSQL."""

    @pytest.fixture(autouse=True)
    def postgres_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://billing@localhost/billing")

    def test_each_enum_type_created_once(self):
        output = io.StringIO()

        command.upgrade(alembic_config(output), "head", sql=True)

        sql = output.getvalue()
        for type_name in ENUM_TYPES:
            assert sql.count(f"CREATE TYPE {type_name} ") == 1, type_name

    def test_downgrade_drops_enum_types(self):
        output = io.StringIO()

        command.downgrade(alembic_config(output), "001_initial_schema:base", sql=True)

        sql = output.getvalue()
        assert sql.index("DROP TABLE users") < sql.index("DROP TYPE IF EXISTS userrole")
        for type_name in ENUM_TYPES:
            assert f"DROP TYPE IF EXISTS {type_name}" in sql


class TestSqliteMigration:
    """Upgrade and downgrade against a SQLite file."""

    def test_upgrade_then_downgrade(self, monkeypatch, tmp_path):
        url = f"sqlite:///{tmp_path / 'billing.db'}"
        monkeypatch.setenv("DATABASE_URL", url)
        config = alembic_config()
        engine = create_engine(url)

        command.upgrade(config, "head")
        assert TABLES <= set(inspect(engine).get_table_names())

        command.downgrade(config, "base")
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
        engine.dispose()
