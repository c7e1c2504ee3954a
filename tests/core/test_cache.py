"""Tests for market data cache configuration."""

from unittest.mock import Mock, patch

from redis.exceptions import ConnectionError, TimeoutError

from portfolio.core.cache import (
    CACHE_EXPIRATION,
    configure_market_data_cache,
    get_cache_stats,
    get_redis_connection,
)


class TestRedisConnection:
    """Tests for Redis connection management."""

    @patch("portfolio.core.cache.Redis")
    def test_get_redis_connection_success(self, mock_redis):
        """Test successful Redis connection."""
        mock_client = Mock()
        mock_client.ping.return_value = True
        mock_redis.from_url.return_value = mock_client

        conn = get_redis_connection()

        assert conn is mock_client
        mock_client.ping.assert_called_once()

    @patch("portfolio.core.cache.Redis")
    def test_get_redis_connection_failure(self, mock_redis):
        """Test Redis connection failure handling."""
        mock_redis.from_url.side_effect = ConnectionError("Connection refused")

        assert get_redis_connection() is None

    @patch("portfolio.core.cache.Redis")
    def test_get_redis_connection_timeout(self, mock_redis):
        """Test Redis ping timeout handling."""
        mock_redis.from_url.return_value.ping.side_effect = TimeoutError("timeout")

        assert get_redis_connection() is None


class TestCacheConfiguration:
    """Tests for cache configuration."""

    @patch("portfolio.core.cache.RedisCache")
    @patch("portfolio.core.cache.get_redis_connection")
    @patch("portfolio.core.cache.requests_cache.install_cache")
    def test_configure_cache_success(self, mock_install, mock_redis_conn, mock_backend):
        """The cache is installed with per-URL expirations."""
        mock_redis_conn.return_value = Mock()

        assert configure_market_data_cache() is True

        mock_install.assert_called_once()
        call_kwargs = mock_install.call_args.kwargs
        assert call_kwargs["backend"] is mock_backend.return_value
        assert call_kwargs["stale_if_error"] is True
        expire = call_kwargs["urls_expire_after"]
        assert expire["*/v8/finance/chart/*"] == CACHE_EXPIRATION["chart"]
        assert expire["*"] == CACHE_EXPIRATION["default"]

    @patch("portfolio.core.cache.get_redis_connection")
    @patch("portfolio.core.cache.requests_cache.install_cache")
    def test_configure_cache_redis_unavailable(self, mock_install, mock_redis_conn):
        """Without Redis nothing is installed."""
        mock_redis_conn.return_value = None

        assert configure_market_data_cache() is False
        mock_install.assert_not_called()


class TestCacheStats:
    """Tests for cache statistics."""

    @patch("portfolio.core.cache.requests_cache.is_installed", return_value=False)
    def test_stats_when_disabled(self, _mock_installed):
        assert get_cache_stats() == {"enabled": False}

    @patch("portfolio.core.cache.requests_cache.get_cache")
    @patch("portfolio.core.cache.requests_cache.is_installed", return_value=True)
    def test_stats_when_enabled(self, _mock_installed, mock_get_cache):
        cache = Mock()
        cache.responses = {"a": 1, "b": 2}
        mock_get_cache.return_value = cache

        stats = get_cache_stats()

        assert stats["enabled"] is True
        assert stats["size"] == 2
