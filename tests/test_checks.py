"""Tests for the built-in check types."""

from __future__ import annotations

from collections import namedtuple
from unittest.mock import MagicMock, patch

import httpx
import pytest

from healthwatch.health.checks import (
    BUILTIN_CHECKS,
    command_check,
    disk_check,
    dns_check,
    http_check,
    tcp_check,
)
from healthwatch.health.models import CheckExecutionError, Status
from healthwatch.health.registry import CheckRegistry, default_registry

Usage = namedtuple("Usage", "total used free")


def _mock_client(mock_client_cls, response=None, error=None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.request.side_effect = error
    else:
        client.request.return_value = response
    mock_client_cls.return_value.__enter__.return_value = client
    return client


# ── HTTP check ───────────────────────────────────────────────────────────────


class TestHTTPCheck:
    @patch("healthwatch.health.checks.httpx.Client")
    def test_success(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, MagicMock(status_code=200))
        result = http_check({"url": "http://localhost/health", "timeout_ms": 3000})
        assert result.status == Status.HEALTHY
        assert result.meta == {"status_code": 200}
        assert result.duration_ms >= 0

    @patch("healthwatch.health.checks.httpx.Client")
    def test_unexpected_status(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, MagicMock(status_code=503))
        result = http_check({"url": "http://localhost/health"})
        assert result.status == Status.ERROR
        assert "got 503" in result.message

    @patch("healthwatch.health.checks.httpx.Client")
    def test_slow_response_warns(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, MagicMock(status_code=200))
        result = http_check({"url": "http://localhost/health", "warn_latency_ms": -1})
        assert result.status == Status.WARNING

    @patch("healthwatch.health.checks.httpx.Client")
    def test_connect_error(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, error=httpx.ConnectError("refused"))
        result = http_check({"url": "http://localhost/health"})
        assert result.status == Status.ERROR
        assert "Connection error" in result.message

    @patch("healthwatch.health.checks.httpx.Client")
    def test_timeout(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, error=httpx.ReadTimeout("slow"))
        result = http_check({"url": "http://localhost/health", "timeout_ms": 50})
        assert result.status == Status.ERROR
        assert "timed out" in result.message

    def test_missing_url(self) -> None:
        with pytest.raises(CheckExecutionError, match="url"):
            http_check({})


# ── DNS check ────────────────────────────────────────────────────────────────


class TestDNSCheck:
    def test_localhost_resolves(self) -> None:
        result = dns_check({"hostname": "localhost"})
        assert result.status == Status.HEALTHY
        assert result.meta["ips"]

    def test_invalid_hostname(self) -> None:
        result = dns_check({"hostname": "this-host-does-not-exist-xyz.invalid"})
        assert result.status == Status.ERROR


# ── TCP check ────────────────────────────────────────────────────────────────


class TestTCPCheck:
    @patch("healthwatch.health.checks.socket.create_connection")
    def test_open_port(self, mock_connect) -> None:
        result = tcp_check({"hostname": "db.local", "port": 5432})
        assert result.status == Status.HEALTHY
        mock_connect.assert_called_once_with(("db.local", 5432), timeout=5.0)

    @patch("healthwatch.health.checks.socket.create_connection", side_effect=ConnectionRefusedError("nope"))
    def test_refused(self, mock_connect) -> None:
        result = tcp_check({"hostname": "db.local", "port": 5432})
        assert result.status == Status.ERROR
        assert "ConnectionRefusedError" in result.message

    def test_port_required(self) -> None:
        with pytest.raises(CheckExecutionError, match="port"):
            tcp_check({"hostname": "db.local"})


# ── Disk check ───────────────────────────────────────────────────────────────


class TestDiskCheck:
    @pytest.mark.parametrize(
        ("free", "expected"),
        [(50, Status.HEALTHY), (15, Status.WARNING), (5, Status.ERROR)],
    )
    def test_thresholds(self, free, expected) -> None:
        with patch("healthwatch.health.checks.shutil.disk_usage", return_value=Usage(100, 100 - free, free)):
            result = disk_check({"path": "/data"})
        assert result.status == expected
        assert result.meta["free_percent"] == float(free)

    def test_missing_path(self, tmp_path) -> None:
        with pytest.raises(CheckExecutionError):
            disk_check({"path": str(tmp_path / "missing")})


# ── Command check ────────────────────────────────────────────────────────────


class TestCommandCheck:
    def test_success(self) -> None:
        result = command_check({"command": "echo ready"})
        assert result.status == Status.HEALTHY
        assert result.message == "ready"

    def test_failure(self) -> None:
        result = command_check({"command": "exit 3"})
        assert result.status == Status.ERROR
        assert result.meta == {"returncode": 3}

    def test_timeout(self) -> None:
        result = command_check({"command": "sleep 5", "timeout_seconds": 0.2})
        assert result.status == Status.ERROR
        assert "timed out" in result.message
        assert result.meta == {"timeout": True}


# ── Registry ─────────────────────────────────────────────────────────────────


class TestRegistry:
    def test_default_registry_has_builtins(self) -> None:
        registry = default_registry()
        assert registry.types() == sorted(BUILTIN_CHECKS)

    def test_decorator_registration(self) -> None:
        registry = CheckRegistry()

        @registry.check("redis", timeout=2.0)
        def check_redis(params):
            return Status.HEALTHY

        spec = registry.resolve("redis")
        assert spec.fn is check_redis
        assert spec.timeout == 2.0

    def test_resolve_unknown(self) -> None:
        from healthwatch.health.models import CheckNotFound, NotFound

        with pytest.raises(CheckNotFound):
            CheckRegistry().resolve("nonexistent")
        assert issubclass(CheckNotFound, NotFound)

    def test_replace_and_unregister(self) -> None:
        registry = CheckRegistry()
        registry.register("x", lambda p: Status.HEALTHY)
        registry.register("x", lambda p: Status.ERROR)
        assert len(registry) == 1
        assert registry.resolve("x").fn({}) == Status.ERROR
        registry.unregister("x")
        assert "x" not in registry
        assert registry.get("x") is None
