"""Tests for the uvicorn entry point."""

from unittest.mock import patch

from pocketshell import server


class TestServerSettings:
    """Test settings read from the environment."""

    def test_defaults(self, monkeypatch) -> None:
        """Test a local bind without reload when nothing is set."""
        names = ("POCKETSHELL_HOST", "POCKETSHELL_PORT", "POCKETSHELL_RELOAD", "POCKETSHELL_LOG_LEVEL")
        for name in names:
            monkeypatch.delenv(name, raising=False)

        assert server.server_settings() == {
            "host": "127.0.0.1",
            "port": 8080,
            "reload": False,
            "log_level": "info",
        }

    def test_overrides(self, monkeypatch) -> None:
        """Test host, port, reload and log level overrides."""
        monkeypatch.setenv("POCKETSHELL_HOST", "0.0.0.0")
        monkeypatch.setenv("POCKETSHELL_PORT", "9000")
        monkeypatch.setenv("POCKETSHELL_RELOAD", "yes")
        monkeypatch.setenv("POCKETSHELL_LOG_LEVEL", "DEBUG")

        settings = server.server_settings()

        assert settings["host"] == "0.0.0.0"
        assert settings["port"] == 9000
        assert settings["reload"] is True
        assert settings["log_level"] == "debug"

    def test_main_runs_the_app(self, monkeypatch) -> None:
        """Test main hands the API app path to uvicorn."""
        monkeypatch.delenv("POCKETSHELL_PORT", raising=False)

        with patch("pocketshell.server.uvicorn.run") as run:
            server.main()

        assert run.call_args.args == ("pocketshell.api:app",)
        assert run.call_args.kwargs["port"] == 8080
