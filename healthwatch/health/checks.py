"""Built-in check types.

Supports: HTTP(S), TLS cert expiry, DNS resolve, TCP connect, disk space,
shell command. Each check takes the resource's parameters mapping and returns
a CheckResult; the checker fills in the resource name and timing.
"""

from __future__ import annotations

import shutil
import socket
import ssl
import subprocess
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from .models import CheckExecutionError, CheckResult, Status
from .registry import CheckRegistry


def _result(status: Status, message: str, t0: float, meta: dict[str, Any] | None = None) -> CheckResult:
    latency = (time.perf_counter() - t0) * 1000
    return CheckResult(
        resource_name="", status=status, message=message,
        duration_ms=round(latency, 1), meta=meta,
    )


def _require(params: Mapping[str, Any], key: str) -> Any:
    value = params.get(key)
    if value in (None, ""):
        raise CheckExecutionError(f"missing parameter '{key}'")
    return value


# ── Check runners ────────────────────────────────────────────────────────────


def http_check(params: Mapping[str, Any]) -> CheckResult:
    """HTTP(S) check — status code + latency budget."""
    url = _require(params, "url")
    method = params.get("method", "GET")
    expected_status = int(params.get("expected_status", 200))
    timeout_ms = int(params.get("timeout_ms", 10_000))
    warn_latency_ms = float(params.get("warn_latency_ms", 3000))

    t0 = time.perf_counter()
    try:
        with httpx.Client(timeout=timeout_ms / 1000, follow_redirects=True) as client:
            resp = client.request(method, url)
    except httpx.TimeoutException:
        return _result(Status.ERROR, f"Connection timed out ({timeout_ms}ms)", t0)
    except httpx.HTTPError as e:
        return _result(Status.ERROR, f"Connection error: {e}", t0)

    if resp.status_code != expected_status:
        return _result(
            Status.ERROR, f"Expected {expected_status}, got {resp.status_code}", t0,
            {"status_code": resp.status_code},
        )

    result = _result(Status.HEALTHY, f"{resp.status_code} OK", t0, {"status_code": resp.status_code})
    if result.duration_ms > warn_latency_ms:
        result.status = Status.WARNING
        result.message = f"{resp.status_code} OK but slow ({result.duration_ms:.0f}ms)"
    return result


def tls_check(params: Mapping[str, Any]) -> CheckResult:
    """TLS certificate expiry."""
    hostname = _require(params, "hostname")
    port = int(params.get("port", 443))
    warn_days_before = int(params.get("warn_days_before", 14))
    timeout_ms = int(params.get("timeout_ms", 10_000))

    t0 = time.perf_counter()
    try:
        ctx = ssl.create_default_context()
        with socket.create_connection((hostname, port), timeout=timeout_ms / 1000) as sock:
            with ctx.wrap_socket(sock, server_hostname=hostname) as ssock:
                cert = ssock.getpeercert()
    except (OSError, ssl.SSLError) as e:
        return _result(Status.ERROR, f"TLS error: {type(e).__name__}: {e}", t0)

    if not cert:
        return _result(Status.ERROR, "No certificate returned", t0)

    expiry = datetime.strptime(cert["notAfter"], "%b %d %H:%M:%S %Y %Z").replace(tzinfo=timezone.utc)
    days_left = (expiry - datetime.now(timezone.utc)).days

    if days_left < 0:
        status, msg = Status.ERROR, f"Certificate EXPIRED {-days_left} days ago"
    elif days_left < warn_days_before:
        status, msg = Status.WARNING, f"Certificate expires in {days_left} days (warn < {warn_days_before})"
    else:
        status, msg = Status.HEALTHY, f"Certificate valid, expires in {days_left} days"
    return _result(status, msg, t0, {"days_left": days_left, "expiry": expiry.isoformat()})


def dns_check(params: Mapping[str, Any]) -> CheckResult:
    """DNS resolution."""
    hostname = _require(params, "hostname")
    t0 = time.perf_counter()
    try:
        addrs = socket.getaddrinfo(hostname, None)
    except socket.gaierror as e:
        return _result(Status.ERROR, f"DNS resolution failed: {e}", t0)

    ips = sorted({a[4][0] for a in addrs})
    return _result(Status.HEALTHY, f"Resolved to {', '.join(ips[:3])}", t0, {"ips": ips})


def tcp_check(params: Mapping[str, Any]) -> CheckResult:
    """Raw TCP port connectivity."""
    hostname = _require(params, "hostname")
    port = int(_require(params, "port"))
    timeout_ms = int(params.get("timeout_ms", 5_000))

    t0 = time.perf_counter()
    try:
        sock = socket.create_connection((hostname, port), timeout=timeout_ms / 1000)
        sock.close()
    except OSError as e:
        return _result(Status.ERROR, f"TCP connect failed: {type(e).__name__}: {e}", t0)
    return _result(Status.HEALTHY, f"Port {port} open", t0)


def disk_check(params: Mapping[str, Any]) -> CheckResult:
    """Free disk space — warn / error below a percentage of free space."""
    path = params.get("path", "/")
    warn_pct = float(params.get("warn_free_percent", 20))
    error_pct = float(params.get("error_free_percent", 10))

    t0 = time.perf_counter()
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        raise CheckExecutionError(f"Cannot stat {path}: {e}") from e

    free_pct = round(usage.free / usage.total * 100, 1) if usage.total else 0.0
    meta = {"path": path, "free_percent": free_pct, "free_bytes": usage.free}
    if free_pct < error_pct:
        return _result(Status.ERROR, f"Only {free_pct}% free on {path}", t0, meta)
    if free_pct < warn_pct:
        return _result(Status.WARNING, f"{free_pct}% free on {path} (warn < {warn_pct}%)", t0, meta)
    return _result(Status.HEALTHY, f"{free_pct}% free on {path}", t0, meta)


def command_check(params: Mapping[str, Any]) -> CheckResult:
    """Run a shell command; exit code 0 means healthy."""
    command = _require(params, "command")
    timeout = float(params.get("timeout_seconds", 10))
    t0 = time.perf_counter()
    try:
        proc = subprocess.run(command, shell=True, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        return _result(Status.ERROR, f"Command timed out after {timeout:g}s", t0, {"timeout": True})
    output = (proc.stdout or proc.stderr).strip()[:500]
    if proc.returncode != 0:
        return _result(Status.ERROR, output or f"exit code {proc.returncode}", t0, {"returncode": proc.returncode})
    return _result(Status.HEALTHY, output or "OK", t0, {"returncode": 0})


BUILTIN_CHECKS = {
    "http": http_check,
    "tls": tls_check,
    "dns": dns_check,
    "tcp": tcp_check,
    "disk": disk_check,
    "command": command_check,
}


def register_builtin_checks(registry: CheckRegistry) -> CheckRegistry:
    for name, fn in BUILTIN_CHECKS.items():
        registry.register(name, fn)
    return registry
