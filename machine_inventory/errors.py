from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from machine_inventory.models.facts import QueryCategory


class InventoryError(Exception):
    """Base class for per-host and per-statement inventory failures."""

    def __init__(self, host: str, message: str) -> None:
        super().__init__(f"{host}: {message}")
        self.host = host
        self.message = message


class SessionError(InventoryError):
    """Raised when a management session to a host cannot be opened."""


class CollectionError(InventoryError):
    """Raised when one category query fails at the transport level."""

    def __init__(self, host: str, category: QueryCategory, cause: str | BaseException) -> None:
        super().__init__(host, f"{category} query failed: {cause}")
        self.category = category
        self.cause = cause


class PersistenceError(InventoryError):
    """Raised (or reported) when a SQL statement for one record fails."""

    def __init__(
        self,
        host: str,
        message: str,
        drive: str = "",
        statement: str = "",
    ) -> None:
        super().__init__(host, message)
        self.drive = drive
        self.statement = statement
