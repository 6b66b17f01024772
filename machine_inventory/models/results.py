from __future__ import annotations

from dataclasses import dataclass, field

from machine_inventory.errors import InventoryError, PersistenceError
from machine_inventory.models.machine import MachineInfo


@dataclass(frozen=True)
class HostResult:
    """Outcome of collecting one host: a record, an error, or both absent."""

    host: str
    record: MachineInfo | None = None
    error: InventoryError | None = None
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of the delete+insert pair for one record."""

    computer_name: str
    drive: str
    rows_deleted: int = 0
    inserted: bool = False
    errors: tuple[PersistenceError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.inserted and not self.errors
