from __future__ import annotations

import logging
from typing import Any

from machine_inventory.models.facts import RawFacts
from machine_inventory.models.machine import MachineInfo

logger = logging.getLogger(__name__)

GIB = 2**30
SQLITE_MAX_INT = 2**63 - 1


def _as_int(value: Any) -> int:
    """Coerce a CIM numeric (int, float or numeric string) to an int in [0, SQLITE_MAX_INT]."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            number = int(float(value))
        except (TypeError, ValueError, OverflowError):
            logger.debug("Ignoring non-numeric value %r", value)
            return 0
    return min(max(number, 0), SQLITE_MAX_INT)


def _as_str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def to_gib(num_bytes: Any) -> int:
    """Whole GiB, truncated: 3 * 2**30 + 1 bytes is 3."""
    return _as_int(num_bytes) // GIB


def free_percent(free_bytes: Any, size_bytes: Any) -> int:
    """Truncated percentage of free space; 0 for a zero-sized disk."""
    size = _as_int(size_bytes)
    if size == 0:
        return 0
    return _as_int(free_bytes) * 100 // size


def normalize(facts: RawFacts) -> MachineInfo:
    """Flatten raw attribute bags into one record. Pure; never raises on missing data."""
    system = facts.system or {}
    os_info = facts.os or {}
    disk = facts.disk or {}
    bios = facts.bios or {}
    cpu = facts.processor or {}

    return MachineInfo(
        computer_name=_as_str(system.get("Name")),
        domain=_as_str(system.get("Domain")),
        manufacturer=_as_str(system.get("Manufacturer")),
        model=_as_str(system.get("Model")),
        ram=to_gib(system.get("TotalPhysicalMemory")),
        drive=_as_str(disk.get("DeviceID") or os_info.get("SystemDrive")),
        disk_size=to_gib(disk.get("Size")),
        free_space=to_gib(disk.get("FreeSpace")),
        free_percent=free_percent(disk.get("FreeSpace"), disk.get("Size")),
        bios_version=_as_str(bios.get("Version")),
        bios_serial=_as_str(bios.get("SerialNumber")),
        os_name=_as_str(os_info.get("Caption")),
        os_version=_as_str(os_info.get("Version")),
        os_architecture=_as_str(os_info.get("OSArchitecture")),
        processor=_as_str(cpu.get("Name")),
        processor_address_width=_as_int(cpu.get("AddressWidth")),
    )
