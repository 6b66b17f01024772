from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable

from machine_inventory.collectors.fact_collector import FactCollector
from machine_inventory.engine.normalizer import normalize
from machine_inventory.errors import CollectionError, SessionError
from machine_inventory.models.facts import QueryCategory, RawFacts
from machine_inventory.models.machine import MachineInfo
from machine_inventory.models.results import HostResult
from machine_inventory.sessions.base import Session, SessionProvider

logger = logging.getLogger(__name__)

Hosts = Iterable[str] | AsyncIterable[str]


async def iter_hosts(hosts: Hosts) -> AsyncIterator[str]:
    if isinstance(hosts, AsyncIterable):
        async for host in hosts:
            yield host
    else:
        for host in hosts:
            yield host


class InventoryPipeline:
    """Collects one record per host, sequentially and in input order.

    Each session is closed as soon as its host is done, so no session is
    held across a ``yield`` and none outlives the iteration.
    """

    def __init__(
        self,
        provider: SessionProvider,
        collector: FactCollector | None = None,
        normalizer: Callable[[RawFacts], MachineInfo] = normalize,
    ) -> None:
        self._provider = provider
        self._collector = collector or FactCollector()
        self._normalize = normalizer

    async def results(self, hosts: Hosts) -> AsyncIterator[HostResult]:
        seen: set[str] = set()
        async for raw in iter_hosts(hosts):
            host = raw.strip()
            if not host:
                continue
            if host.lower() in seen:
                logger.debug("Skipping duplicate host %s", host)
                continue
            seen.add(host.lower())
            yield await self._collect_host(host)

    async def collect_all(self, hosts: Hosts) -> AsyncIterator[MachineInfo]:
        """Successful records only; failures are logged and skipped."""
        async for result in self.results(hosts):
            if result.record is not None:
                yield result.record

    # ── internals ───────────────────────────────────────

    async def _collect_host(self, host: str) -> HostResult:
        try:
            session = await self._provider.open(host)
        except SessionError as exc:
            logger.warning("Skipping %s: %s", host, exc.message)
            return HostResult(host=host, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error opening session to %s", host)
            return self._failed(host, exc)

        try:
            facts = await self._collector.collect(session)
        except CollectionError as exc:
            logger.warning("Skipping %s: %s", host, exc.message)
            return HostResult(host=host, error=exc)
        except Exception as exc:
            logger.exception("Unexpected error collecting %s", host)
            return self._failed(host, exc)
        finally:
            await self._release(session)

        try:
            record = self._normalize(facts)
        except Exception as exc:
            logger.exception("Unexpected error normalizing facts for %s", host)
            return self._failed(host, exc)

        if not record.computer_name:
            exc = CollectionError(host, QueryCategory.SYSTEM_SUMMARY, "no computer name reported")
            logger.warning("Skipping %s: %s", host, exc.message)
            return HostResult(host=host, error=exc)

        warnings = tuple(f"{category}: {message}" for category, message in facts.failed.items())
        logger.info("Collected %s (drive %s)", record.computer_name, record.drive or "-")
        return HostResult(host=host, record=record, warnings=warnings)

    @staticmethod
    def _failed(host: str, exc: Exception) -> HostResult:
        return HostResult(host=host, error=CollectionError(host, QueryCategory.SYSTEM_SUMMARY, exc))

    async def _release(self, session: Session) -> None:
        try:
            await session.close()
        except Exception:
            logger.exception("Failed to close session to %s", session.host)
