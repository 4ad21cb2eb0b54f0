"""Tests for settings resolution and logging setup."""

import logging
from unittest.mock import patch

import pytest

from triage.config import ENV_VARS, Settings
from triage.utils.logging import get_logger, setup_logging


@pytest.fixture
def clean_env():
    """Environment without any Triage Assist variables."""
    with patch.dict("os.environ", {}, clear=True):
        yield


class TestSettings:
    """Tests for Settings.load."""

    def test_defaults(self, clean_env, tmp_path):
        settings = Settings.load(config_path=str(tmp_path / "missing.yaml"), env_file=str(tmp_path / ".env"))

        assert settings.data_dir == "data"
        assert settings.recent_history_limit == 5
        assert settings.address_min_chars == 3
        assert settings.max_address_suggestions == 5
        assert not settings.encrypted

    def test_yaml_then_env_then_overrides(self, clean_env, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text(
            "triage:\n"
            "  data_dir: /srv/triage\n"
            "  log_level: DEBUG\n"
            "  recent_history_limit: 3\n"
        )
        env = {ENV_VARS["log_level"]: "WARNING", ENV_VARS["recent_history_limit"]: "8"}

        with patch.dict("os.environ", env):
            settings = Settings.load(config_path=str(config), env_file=str(tmp_path / ".env"), data_dir="/tmp/x")

        assert settings.data_dir == "/tmp/x"
        assert settings.log_level == "WARNING"
        assert settings.recent_history_limit == 8

    def test_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TRIAGE_STORE_PASSPHRASE=hunter2\n")

        settings = Settings.load(config_path=str(tmp_path / "missing.yaml"), env_file=str(env_file))

        assert settings.encrypted
        assert "hunter2" not in repr(settings)

    def test_unknown_yaml_keys_ignored(self, clean_env, tmp_path):
        config = tmp_path / "settings.yaml"
        config.write_text("triage:\n  colour: blue\n  address_min_chars: 4\n")

        settings = Settings.load(config_path=str(config), env_file=str(tmp_path / ".env"))
        assert settings.address_min_chars == 4


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_installs_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "triage.log"
        logger = setup_logging("DEBUG", str(log_file))

        assert logger.name == "triage"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        get_logger("tests").info("written")
        for handler in logger.handlers:
            handler.close()
        assert "written" in log_file.read_text()

        logger.handlers = []

    def test_get_logger_namespace(self):
        assert get_logger("storage").name == "triage.storage"
        assert get_logger().name == "triage"
