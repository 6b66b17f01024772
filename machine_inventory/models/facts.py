from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class QueryCategory(StrEnum):
    SYSTEM_SUMMARY = "system_summary"
    OS_SUMMARY = "os_summary"
    LOGICAL_DISK = "logical_disk"
    BIOS = "bios"
    PROCESSOR = "processor"


CIM_CLASSES: dict[QueryCategory, str] = {
    QueryCategory.SYSTEM_SUMMARY: "Win32_ComputerSystem",
    QueryCategory.OS_SUMMARY: "Win32_OperatingSystem",
    QueryCategory.LOGICAL_DISK: "Win32_LogicalDisk",
    QueryCategory.BIOS: "Win32_BIOS",
    QueryCategory.PROCESSOR: "Win32_Processor",
}

CATEGORY_PROPERTIES: dict[QueryCategory, tuple[str, ...]] = {
    QueryCategory.SYSTEM_SUMMARY: ("Name", "Manufacturer", "Model", "Domain", "TotalPhysicalMemory"),
    QueryCategory.OS_SUMMARY: ("Caption", "Version", "OSArchitecture", "SystemDrive"),
    QueryCategory.LOGICAL_DISK: ("DeviceID", "Size", "FreeSpace"),
    QueryCategory.BIOS: ("Version", "SerialNumber"),
    QueryCategory.PROCESSOR: ("Name", "AddressWidth"),
}


class QueryFilter(BaseModel):
    """Equality predicate on a single property of a category's instances."""

    model_config = ConfigDict(frozen=True)

    field: str
    value: str


class RawFacts(BaseModel):
    """Attribute bags returned by the category queries for one host.

    A bag is ``None`` when its query returned no instance or failed;
    non-fatal failures are kept in ``failed`` keyed by category.
    """

    host: str
    system: dict[str, Any] | None = None
    os: dict[str, Any] | None = None
    disk: dict[str, Any] | None = None
    bios: dict[str, Any] | None = None
    processor: dict[str, Any] | None = None
    failed: dict[QueryCategory, str] = Field(default_factory=dict)
