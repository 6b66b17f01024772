from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from machine_inventory.engine.reachability import ReachabilityFilter, ping_command
from machine_inventory.errors import CollectionError, SessionError
from machine_inventory.models import QueryCategory
from machine_inventory.sessions.base import Session, SessionProvider


class ProbeSession(Session):
    def __init__(self, host: str, fail: bool = False) -> None:
        super().__init__(host)
        self.fail = fail
        self.queries: list[QueryCategory] = []

    async def query(self, category, query_filter=None):
        self.queries.append(category)
        if self.fail:
            raise CollectionError(self.host, category, "access denied")
        return [{"Version": "1.0", "SerialNumber": "SN"}]


class ProbeProvider(SessionProvider):
    def __init__(self, refuse: set[str] = frozenset(), failing: set[str] = frozenset()) -> None:
        self.refuse = refuse
        self.failing = failing
        self.sessions: list[ProbeSession] = []

    async def open(self, host: str) -> Session:
        if host in self.refuse:
            raise SessionError(host, "refused")
        session = ProbeSession(host, fail=host in self.failing)
        self.sessions.append(session)
        return session


def _patch_ping(alive: set[str]):
    async def fake_is_alive(self, host: str) -> bool:
        return host in alive

    return patch.object(ReachabilityFilter, "is_alive", fake_is_alive)


# ── ping command ────────────────────────────────────────


def test_ping_command_posix():
    with patch("machine_inventory.engine.reachability.platform.system", return_value="Linux"):
        assert ping_command("h1", 1, 2.0) == ["ping", "-c", "1", "-W", "2", "h1"]
        assert ping_command("h1", 3, 0.5) == ["ping", "-c", "3", "-W", "1", "h1"]


def test_ping_command_windows():
    with patch("machine_inventory.engine.reachability.platform.system", return_value="Windows"):
        assert ping_command("h1", 1, 2.0) == ["ping", "-n", "1", "-w", "2000", "h1"]


# ── is_alive ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_is_alive_uses_exit_code():
    proc = MagicMock()
    proc.wait = AsyncMock(return_value=0)
    with patch(
        "machine_inventory.engine.reachability.asyncio.create_subprocess_exec",
        AsyncMock(return_value=proc),
    ) as mock_exec:
        assert await ReachabilityFilter(count=1, timeout=1.0).is_alive("h1") is True
    assert mock_exec.call_args[0][0] == "ping"
    assert mock_exec.call_args[0][-1] == "h1"


@pytest.mark.asyncio
async def test_is_alive_false_on_nonzero_exit():
    proc = MagicMock()
    proc.wait = AsyncMock(return_value=1)
    with patch(
        "machine_inventory.engine.reachability.asyncio.create_subprocess_exec",
        AsyncMock(return_value=proc),
    ):
        assert await ReachabilityFilter().is_alive("h1") is False


@pytest.mark.asyncio
async def test_is_alive_false_without_ping_binary():
    with patch(
        "machine_inventory.engine.reachability.asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError("ping")),
    ):
        assert await ReachabilityFilter().is_alive("h1") is False


def test_ping_command_rejects_option_like_host():
    with pytest.raises(ValueError):
        ping_command("-f", 1, 2.0)


@pytest.mark.asyncio
async def test_option_like_host_is_never_pinged():
    with patch(
        "machine_inventory.engine.reachability.asyncio.create_subprocess_exec",
        AsyncMock(),
    ) as mock_exec:
        assert await ReachabilityFilter().is_alive("-f") is False
    mock_exec.assert_not_called()


# ── filter ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_filter_yields_live_hosts_in_order():
    with _patch_ping({"c", "a"}):
        hosts = [h async for h in ReachabilityFilter().filter(["c", "b", "a", " "])]
    assert hosts == ["c", "a"]


@pytest.mark.asyncio
async def test_probe_runs_bios_query_and_closes():
    provider = ProbeProvider()
    with _patch_ping({"h1"}):
        hosts = [h async for h in ReachabilityFilter(provider, probe=True).filter(["h1"])]

    assert hosts == ["h1"]
    assert provider.sessions[0].queries == [QueryCategory.BIOS]
    assert provider.sessions[0].closed is True


@pytest.mark.asyncio
async def test_probe_failure_does_not_exclude_host():
    provider = ProbeProvider(refuse={"h1"}, failing={"h2"})
    with _patch_ping({"h1", "h2"}):
        hosts = [h async for h in ReachabilityFilter(provider, probe=True).filter(["h1", "h2"])]

    assert hosts == ["h1", "h2"]
    assert [s.host for s in provider.sessions] == ["h2"]
    assert provider.sessions[0].closed is True


@pytest.mark.asyncio
async def test_no_probe_without_flag():
    provider = ProbeProvider()
    with _patch_ping({"h1"}):
        hosts = [h async for h in ReachabilityFilter(provider).filter(["h1"])]
    assert hosts == ["h1"]
    assert provider.sessions == []
