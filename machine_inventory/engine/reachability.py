from __future__ import annotations

import asyncio
import logging
import math
import platform
from collections.abc import AsyncIterator

from machine_inventory.config import settings
from machine_inventory.engine.pipeline import Hosts, iter_hosts
from machine_inventory.errors import InventoryError
from machine_inventory.models.facts import QueryCategory
from machine_inventory.sessions.base import SessionProvider

logger = logging.getLogger(__name__)


def ping_command(host: str, count: int, timeout: float) -> list[str]:
    """Build a single-host ``ping`` invocation for the local platform."""
    if host.startswith("-"):
        raise ValueError(f"not a host name: {host!r}")
    if platform.system() == "Windows":
        return ["ping", "-n", str(count), "-w", str(int(timeout * 1000)), host]
    return ["ping", "-c", str(count), "-W", str(max(1, math.ceil(timeout))), host]


class ReachabilityFilter:
    """Admits only hosts that answer a ping.

    With ``probe=True`` a live host also gets a best-effort BIOS query
    through ``provider``; its failure is logged and never excludes the host.
    """

    def __init__(
        self,
        provider: SessionProvider | None = None,
        probe: bool = False,
        count: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._provider = provider
        self.probe = probe
        self.count = count if count is not None else settings.ping_count
        self.timeout = timeout if timeout is not None else settings.ping_timeout

    async def is_alive(self, host: str) -> bool:
        try:
            cmd = ping_command(host, self.count, self.timeout)
        except ValueError as exc:
            logger.warning("Refusing to ping %s", exc)
            return False
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError:
            logger.error("ping executable not found; treating %s as unreachable", host)
            return False
        returncode = await proc.wait()
        return returncode == 0

    async def filter(self, hosts: Hosts) -> AsyncIterator[str]:
        async for raw in iter_hosts(hosts):
            host = raw.strip()
            if not host:
                continue
            if not await self.is_alive(host):
                logger.warning("%s did not respond to ping", host)
                continue
            if self.probe and self._provider is not None:
                await self._probe(host)
            yield host

    async def _probe(self, host: str) -> None:
        try:
            session = await self._provider.open(host)
        except InventoryError as exc:
            logger.info("Probe of %s failed: %s", host, exc.message)
            return
        try:
            bios = await session.query(QueryCategory.BIOS)
            if bios:
                logger.info("%s BIOS serial %s", host, bios[0].get("SerialNumber", "?"))
        except InventoryError as exc:
            logger.info("Probe of %s failed: %s", host, exc.message)
        finally:
            await session.close()
