"""Tests for the w3loot-web launcher."""

import logging
from unittest.mock import patch

import pytest

from w3loot.core.config import W3LootConfig, reset_config, set_config
from w3loot.server import build_parser, main, run_server


@pytest.fixture
def config():
    config = W3LootConfig()
    config.server.host = "127.0.0.1"
    config.server.port = 9100
    config.server.workers = 3
    config.logging.level = "WARNING"
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def uvicorn_run():
    with patch("w3loot.server.uvicorn.run") as run:
        yield run


class TestRunServer:
    """Tests for run_server."""

    def test_defaults_from_config(self, config, uvicorn_run):
        run_server()
        uvicorn_run.assert_called_once_with(
            "w3loot.api:app",
            host="127.0.0.1",
            port=9100,
            reload=False,
            workers=3,
            log_level="warning",
        )

    def test_logging_config_applied(self, config, uvicorn_run):
        run_server()
        assert logging.getLogger().level == logging.WARNING

    def test_reload_forces_single_worker(self, config, uvicorn_run):
        run_server(reload=True, workers=8)
        assert uvicorn_run.call_args.kwargs["workers"] == 1
        assert uvicorn_run.call_args.kwargs["reload"] is True


class TestMain:
    """Tests for the argparse entry point."""

    def test_arguments_override_config(self, config, uvicorn_run):
        main(["--host", "0.0.0.0", "--port", "8080", "--workers", "2", "--log-level", "debug"])
        kwargs = uvicorn_run.call_args.kwargs
        assert (kwargs["host"], kwargs["port"], kwargs["workers"]) == ("0.0.0.0", 8080, 2)
        assert kwargs["log_level"] == "debug"

    def test_unset_arguments_are_none(self):
        args = build_parser().parse_args([])
        assert args.host is None
        assert args.port is None
        assert args.reload is False

    def test_bad_log_level_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "loud"])
