"""Unit tests for configuration loading."""

import logging

import pytest

from hostel_billing.services.config import DEFAULT_DATABASE_URL, load_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run from an empty directory so no .env file is picked up."""
    monkeypatch.chdir(tmp_path)
    for name in ("DATABASE_URL", "LOG_FILE", "LOG_LEVEL", "RENT_DUE_DAY"):
        # setenv first so values written by load_dotenv are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults(self):
        config = load_config()

        assert config.database_url == DEFAULT_DATABASE_URL
        assert config.log_file == "logs/billing.log"
        assert config.rent_due_day == 5
        assert config.log_level == logging.INFO

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/billing")
        monkeypatch.setenv("LOG_FILE", "/var/log/billing.log")
        monkeypatch.setenv("RENT_DUE_DAY", "10")

        config = load_config()

        assert config.database_url == "postgresql://localhost/billing"
        assert config.log_file == "/var/log/billing.log"
        assert config.rent_due_day == 10

    def test_dotenv_file_is_loaded(self, tmp_path):
        (tmp_path / ".env").write_text("RENT_DUE_DAY=7\n")

        config = load_config()

        assert config.rent_due_day == 7

    def test_non_integer_due_day(self, monkeypatch):
        monkeypatch.setenv("RENT_DUE_DAY", "fifth")

        with pytest.raises(ValueError, match="RENT_DUE_DAY must be an integer"):
            load_config()

    @pytest.mark.parametrize("day", ["0", "29", "31"])
    def test_due_day_out_of_range(self, monkeypatch, day):
        monkeypatch.setenv("RENT_DUE_DAY", day)

        with pytest.raises(ValueError, match="between 1 and 28"):
            load_config()

    def test_empty_database_url(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "  ")

        with pytest.raises(ValueError, match="DATABASE_URL is empty"):
            load_config()

    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", " debug ")

        assert load_config().log_level == logging.DEBUG

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValueError, match="LOG_LEVEL must be one of"):
            load_config()
