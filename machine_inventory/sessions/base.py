from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from machine_inventory.models.facts import QueryCategory, QueryFilter

logger = logging.getLogger(__name__)


class Session(ABC):
    """A live management session bound to a single host.

    Subclasses implement ``query()``; ``close()`` is idempotent.
    """

    def __init__(self, host: str) -> None:
        self.host = host
        self._closed = False

    @abstractmethod
    async def query(
        self,
        category: QueryCategory,
        query_filter: QueryFilter | None = None,
    ) -> list[dict[str, Any]]:
        """Return the instances of ``category``, optionally filtered."""
        ...

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Session to %s closed", self.host)

    @property
    def closed(self) -> bool:
        return self._closed


class SessionProvider(ABC):
    """Opens sessions by host name. Raises ``SessionError`` on failure."""

    @abstractmethod
    async def open(self, host: str) -> Session:
        ...
