"""Tests for the Redis client factory."""

from unittest.mock import MagicMock, patch

import redis

from pocketshell.redis_client import get_redis_client, is_redis_healthy


class TestGetRedisClient:
    """Test client creation and fallback to None."""

    def test_disabled(self, monkeypatch) -> None:
        """Test REDIS_ENABLED=false skips connecting."""
        monkeypatch.setenv("REDIS_ENABLED", "false")

        with patch("pocketshell.redis_client.redis.Redis") as redis_cls:
            assert get_redis_client() is None
            redis_cls.assert_not_called()

    def test_unreachable(self, monkeypatch) -> None:
        """Test a failed PING yields None."""
        monkeypatch.setenv("REDIS_ENABLED", "true")
        monkeypatch.delenv("REDIS_URL", raising=False)
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")

        with patch("pocketshell.redis_client.redis.Redis", return_value=client):
            assert get_redis_client() is None

    def test_host_port_and_db_from_env(self, monkeypatch) -> None:
        """Test connection settings come from the environment."""
        monkeypatch.setenv("REDIS_ENABLED", "true")
        monkeypatch.delenv("REDIS_URL", raising=False)
        monkeypatch.setenv("REDIS_HOST", "cache")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_DB", "3")
        client = MagicMock()
        client.ping.return_value = True

        with patch("pocketshell.redis_client.redis.Redis", return_value=client) as redis_cls:
            assert get_redis_client() is client

        kwargs = redis_cls.call_args.kwargs
        assert (kwargs["host"], kwargs["port"], kwargs["db"]) == ("cache", 6380, 3)
        assert kwargs["decode_responses"] is True

    def test_url_takes_precedence(self, monkeypatch) -> None:
        """Test REDIS_URL is used when set."""
        monkeypatch.setenv("REDIS_ENABLED", "true")
        monkeypatch.setenv("REDIS_URL", "redis://cache:6379/1")
        client = MagicMock()
        client.ping.return_value = True

        with patch("pocketshell.redis_client.redis.Redis.from_url", return_value=client) as from_url:
            assert get_redis_client() is client

        assert from_url.call_args.args == ("redis://cache:6379/1",)


class TestIsRedisHealthy:
    """Test the PING health check."""

    def test_none(self) -> None:
        """Test a missing client is unhealthy."""
        assert not is_redis_healthy(None)

    def test_error(self) -> None:
        """Test Redis errors are reported as unhealthy."""
        client = MagicMock()
        client.ping.side_effect = redis.TimeoutError("slow")

        assert not is_redis_healthy(client)
