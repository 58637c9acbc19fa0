"""Tests for ValkeyClient - Redis-compatible document store."""

from unittest.mock import MagicMock, patch

import pytest
import redis

from clients.valkey_client import ValkeyClient


@pytest.fixture
def fake_redis():
    """The redis-py client handed out by redis.from_url."""
    with patch("clients.valkey_client.redis.from_url") as from_url:
        client = MagicMock()
        from_url.return_value = client
        yield from_url, client


@pytest.fixture
def valkey(fake_redis):
    return ValkeyClient("redis://localhost:6379/0")


class TestValkeyClientInit:
    """Connection initialization."""

    def test_connects_with_decoded_responses(self, fake_redis):
        from_url, client = fake_redis
        ValkeyClient("redis://localhost:6379/0")
        from_url.assert_called_once_with("redis://localhost:6379/0", decode_responses=True)
        client.ping.assert_called_once()

    def test_unreachable_server_fails_fast(self, fake_redis):
        _, client = fake_redis
        client.ping.side_effect = redis.ConnectionError("refused")
        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://localhost:6379/0")


class TestBasicOperations:
    """Get/set/delete operations."""

    def test_ping(self, valkey):
        assert valkey.ping() is True

    def test_get_passes_through(self, valkey, fake_redis):
        _, client = fake_redis
        client.get.return_value = "[]"
        assert valkey.get("jstark_invoices") == "[]"
        client.get.assert_called_with("jstark_invoices")

    def test_get_missing_returns_none(self, valkey, fake_redis):
        """Get on non-existent key returns None (not error)."""
        _, client = fake_redis
        client.get.return_value = None
        assert valkey.get("jstark_estimates") is None

    def test_set_reports_acknowledgement(self, valkey, fake_redis):
        _, client = fake_redis
        client.set.return_value = True
        assert valkey.set("jstark_invoices", "[]") is True

        client.set.return_value = None
        assert valkey.set("jstark_invoices", "[]") is False

    def test_delete_returns_true_when_existed(self, valkey, fake_redis):
        _, client = fake_redis
        client.delete.return_value = 1
        assert valkey.delete("jstark_invoices") is True

    def test_delete_returns_false_when_missing(self, valkey, fake_redis):
        _, client = fake_redis
        client.delete.return_value = 0
        assert valkey.delete("jstark_invoices") is False

    def test_exists(self, valkey, fake_redis):
        _, client = fake_redis
        client.exists.return_value = 1
        assert valkey.exists("jstark_invoices") is True
        client.exists.return_value = 0
        assert valkey.exists("jstark_invoices") is False

    def test_connection_errors_propagate(self, valkey, fake_redis):
        _, client = fake_redis
        client.get.side_effect = redis.ConnectionError("gone")
        with pytest.raises(redis.ConnectionError):
            valkey.get("jstark_invoices")

    def test_close(self, valkey, fake_redis):
        _, client = fake_redis
        valkey.close()
        client.close.assert_called_once()
