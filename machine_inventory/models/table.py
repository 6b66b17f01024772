from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class TableRef(BaseModel):
    """Destination table: a database file and an optionally schema-qualified name."""

    model_config = ConfigDict(frozen=True)

    database: str
    table: str

    @field_validator("table")
    @classmethod
    def _check_identifier(cls, v: str) -> str:
        if not _IDENTIFIER_RE.match(v):
            raise ValueError(f"invalid table identifier: {v!r}")
        return v

    @property
    def schema_name(self) -> str | None:
        return self.table.split(".")[0] if "." in self.table else None

    @property
    def name(self) -> str:
        return self.table.rsplit(".", 1)[-1]

    @property
    def quoted(self) -> str:
        return ".".join(f'"{part}"' for part in self.table.split("."))

    @property
    def quoted_index(self) -> str:
        index = f'"{self.name}_host_drive"'
        return f'"{self.schema_name}".{index}' if self.schema_name else index
