"""Unit tests for settings and logging setup."""

from __future__ import annotations

import json

import structlog

from printpal.config import DEFAULT_BASE_URL, Settings
from printpal.logging import configure_logging, get_logger


class TestSettings:
    def test_defaults(self, monkeypatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        for name in ("API_KEY", "BASE_URL", "TIMEOUT", "POLL_INTERVAL", "LOG_LEVEL"):
            monkeypatch.delenv(f"PRINTPAL_{name}", raising=False)
        config = Settings()
        assert config.api_key is None
        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout == 60.0
        assert config.poll_interval == 5.0

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("PRINTPAL_API_KEY", "pp_live_env")
        monkeypatch.setenv("PRINTPAL_TIMEOUT", "12.5")
        monkeypatch.setenv("PRINTPAL_POLL_INTERVAL", "2")
        config = Settings()
        assert config.api_key == "pp_live_env"
        assert config.timeout == 12.5
        assert config.poll_interval == 2.0

    def test_dotenv_file(self, monkeypatch, tmp_path) -> None:
        monkeypatch.delenv("PRINTPAL_BASE_URL", raising=False)
        (tmp_path / ".env").write_text("PRINTPAL_BASE_URL=https://staging.printpal.test\n")
        monkeypatch.chdir(tmp_path)
        assert Settings().base_url == "https://staging.printpal.test"


def _json_lines(text: str):
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestLogging:
    def test_info_events_reach_stderr_as_json(self, capfd) -> None:
        configure_logging("INFO")
        get_logger("printpal.tests", component="tests").info(
            "generation submitted", generation_uid="abc"
        )

        lines = _json_lines(capfd.readouterr().err)
        assert len(lines) == 1
        assert lines[0]["event"] == "generation submitted"
        assert lines[0]["level"] == "info"
        assert lines[0]["generation_uid"] == "abc"
        assert lines[0]["component"] == "tests"

    def test_reconfiguring_changes_the_level(self, capfd) -> None:
        configure_logging("WARNING")
        configure_logging("INFO")
        get_logger("printpal.tests").info("status changed")
        assert _json_lines(capfd.readouterr().err)[0]["event"] == "status changed"

    def test_warning_level_drops_info(self, capfd) -> None:
        configure_logging("WARNING")
        logger = get_logger("printpal.tests")
        logger.info("quiet")
        assert capfd.readouterr().err == ""

        logger.warning("loud")
        assert _json_lines(capfd.readouterr().err)[0]["level"] == "warning"

    def test_get_logger_leaves_host_configuration_alone(self) -> None:
        def marker(logger, method_name, event_dict):
            return event_dict

        structlog.configure(processors=[marker])
        get_logger("printpal.client")
        assert structlog.get_config()["processors"][0] is marker
