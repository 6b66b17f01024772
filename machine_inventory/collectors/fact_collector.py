from __future__ import annotations

import logging
from typing import Any

from machine_inventory.errors import CollectionError
from machine_inventory.models.facts import QueryCategory, QueryFilter, RawFacts
from machine_inventory.sessions.base import Session

logger = logging.getLogger(__name__)


class FactCollector:
    """Runs the fixed category queries against one session.

    Queries run in order: system, OS, logical disk (filtered on the OS
    system drive), BIOS, processor. A failed system query is fatal for the
    host; any other failure is recorded in ``RawFacts.failed`` and the
    remaining queries still run.
    """

    name = "fact_collector"

    async def collect(self, session: Session) -> RawFacts:
        host = session.host
        failed: dict[QueryCategory, str] = {}

        system = await self._first(session, QueryCategory.SYSTEM_SUMMARY)

        os_info = await self._try_first(session, QueryCategory.OS_SUMMARY, failed)

        disk = None
        system_drive = (os_info or {}).get("SystemDrive")
        if system_drive:
            disk = await self._try_first(
                session,
                QueryCategory.LOGICAL_DISK,
                failed,
                QueryFilter(field="DeviceID", value=str(system_drive)),
            )
        elif QueryCategory.OS_SUMMARY not in failed:
            logger.debug("No system drive reported by %s; skipping disk query", host)

        bios = await self._try_first(session, QueryCategory.BIOS, failed)
        # multi-socket hosts report one instance per CPU
        processor = await self._try_first(session, QueryCategory.PROCESSOR, failed)

        return RawFacts(
            host=host,
            system=system,
            os=os_info,
            disk=disk,
            bios=bios,
            processor=processor,
            failed=failed,
        )

    # ── internals ───────────────────────────────────────

    async def _first(
        self,
        session: Session,
        category: QueryCategory,
        query_filter: QueryFilter | None = None,
    ) -> dict[str, Any] | None:
        instances = await session.query(category, query_filter)
        return instances[0] if instances else None

    async def _try_first(
        self,
        session: Session,
        category: QueryCategory,
        failed: dict[QueryCategory, str],
        query_filter: QueryFilter | None = None,
    ) -> dict[str, Any] | None:
        try:
            return await self._first(session, category, query_filter)
        except CollectionError as exc:
            logger.warning("Partial inventory for %s: %s", session.host, exc.message)
            failed[category] = exc.message
            return None
