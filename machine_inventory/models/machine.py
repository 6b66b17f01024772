from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class MachineInfo(BaseModel):
    """Flat inventory record for one host and its system drive.

    Attribute names are snake_case; the external names (JSON output and
    table columns) are the aliases, in declaration order.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    COLUMNS: ClassVar[tuple[str, ...]] = (
        "ComputerName",
        "Domain",
        "Manufacturer",
        "Model",
        "RAM",
        "Drive",
        "DiskSize",
        "FreeSpace",
        "FreePercent",
        "BIOSVersion",
        "BIOSSerial",
        "OSName",
        "OSVersion",
        "OSArchitecture",
        "Processor",
        "ProcessorAddressWidth",
    )

    # identity
    computer_name: str = Field("", alias="ComputerName")
    domain: str = Field("", alias="Domain")
    # hardware
    manufacturer: str = Field("", alias="Manufacturer")
    model: str = Field("", alias="Model")
    ram: int = Field(0, ge=0, alias="RAM")  # GiB
    # storage
    drive: str = Field("", alias="Drive")
    disk_size: int = Field(0, ge=0, alias="DiskSize")  # GiB
    free_space: int = Field(0, ge=0, alias="FreeSpace")  # GiB
    free_percent: int = Field(0, ge=0, alias="FreePercent")
    # firmware
    bios_version: str = Field("", alias="BIOSVersion")
    bios_serial: str = Field("", alias="BIOSSerial")
    # os
    os_name: str = Field("", alias="OSName")
    os_version: str = Field("", alias="OSVersion")
    os_architecture: str = Field("", alias="OSArchitecture")
    # cpu
    processor: str = Field("", alias="Processor")
    processor_address_width: int = Field(0, ge=0, alias="ProcessorAddressWidth")

    @property
    def key(self) -> tuple[str, str]:
        """Upsert key: (ComputerName, Drive)."""
        return (self.computer_name, self.drive)

    def as_row(self) -> tuple:
        """Values in column order, for parameterized INSERTs."""
        data = self.model_dump(by_alias=True)
        return tuple(data[col] for col in self.COLUMNS)
