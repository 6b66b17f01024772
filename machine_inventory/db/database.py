from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from pathlib import Path

import aiosqlite

from machine_inventory.config import settings
from machine_inventory.errors import PersistenceError
from machine_inventory.models import MachineInfo, TableRef, UpsertResult

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).with_name("schema.sql")

Records = Iterable[MachineInfo] | AsyncIterable[MachineInfo]


def default_table() -> TableRef:
    return TableRef(database=settings.db_path, table=settings.db_table)


async def get_connection(database: str | None = None) -> aiosqlite.Connection:
    db = await aiosqlite.connect(database or settings.db_path)
    db.row_factory = aiosqlite.Row
    return db


async def init_db(table: TableRef | None = None) -> None:
    """Create the inventory table and its key index if they don't exist."""
    table = table or default_table()
    Path(table.database).parent.mkdir(parents=True, exist_ok=True)
    schema = _SCHEMA_PATH.read_text().format(
        table=table.quoted,
        index=table.quoted_index,
        table_name=table.name,
    )
    async with aiosqlite.connect(table.database) as db:
        await db.executescript(schema)
        await db.commit()


# ── statements ──────────────────────────────────────────


def delete_statement(table: TableRef) -> str:
    return f"DELETE FROM {table.quoted} WHERE ComputerName = ? AND Drive = ?"


def insert_statement(table: TableRef) -> str:
    columns = ", ".join(MachineInfo.COLUMNS)
    placeholders = ", ".join("?" for _ in MachineInfo.COLUMNS)
    return f"INSERT INTO {table.quoted} ({columns}) VALUES ({placeholders})"


# ── upsert ──────────────────────────────────────────────


async def upsert(
    conn: aiosqlite.Connection,
    record: MachineInfo,
    table: TableRef,
    transactional: bool = False,
) -> UpsertResult:
    """Delete any row keyed on (ComputerName, Drive), then insert ``record``.

    Without ``transactional`` each statement commits on its own: a failed
    delete is reported and the insert still runs, and a failed insert
    after a successful delete leaves the row missing. With
    ``transactional`` both commit together or both roll back.
    """
    errors: list[PersistenceError] = []
    rows_deleted = 0
    inserted = False

    try:
        cursor = await conn.execute(delete_statement(table), record.key)
        rows_deleted = max(cursor.rowcount, 0)
        if not transactional:
            await conn.commit()
    except (aiosqlite.Error, OverflowError) as exc:
        errors.append(_report(record, "DELETE", exc))
        if transactional:
            await conn.rollback()
            return UpsertResult(record.computer_name, record.drive, errors=tuple(errors))

    try:
        await conn.execute(insert_statement(table), record.as_row())
        await conn.commit()
        inserted = True
    except (aiosqlite.Error, OverflowError) as exc:
        errors.append(_report(record, "INSERT", exc))
        if transactional:
            await conn.rollback()
            rows_deleted = 0

    if inserted:
        logger.debug(
            "Upserted %s/%s into %s (%d replaced)",
            record.computer_name, record.drive, table.table, rows_deleted,
        )
    return UpsertResult(
        record.computer_name,
        record.drive,
        rows_deleted=rows_deleted,
        inserted=inserted,
        errors=tuple(errors),
    )


async def upsert_all(
    records: Records,
    table: TableRef | None = None,
    transactional: bool | None = None,
) -> list[UpsertResult]:
    """Upsert every record over one shared connection.

    Failing to open the connection aborts the run with ``PersistenceError``;
    per-record failures are reported in the results and the batch continues.
    """
    table = table or default_table()
    if transactional is None:
        transactional = settings.db_transactional

    try:
        conn = await get_connection(table.database)
    except (aiosqlite.Error, OSError) as exc:
        raise PersistenceError(table.database, f"cannot open database: {exc}") from exc

    results: list[UpsertResult] = []
    try:
        async for record in _iter_records(records):
            results.append(await upsert(conn, record, table, transactional=transactional))
    finally:
        await conn.close()

    failed = sum(1 for r in results if not r.ok)
    logger.info("Persisted %d record(s) to %s, %d with errors", len(results), table.table, failed)
    return results


# ── helpers ─────────────────────────────────────────────


async def _iter_records(records: Records) -> AsyncIterator[MachineInfo]:
    if isinstance(records, AsyncIterable):
        async for record in records:
            yield record
    else:
        for record in records:
            yield record


def _report(record: MachineInfo, statement: str, exc: Exception) -> PersistenceError:
    logger.error(
        "%s for %s/%s failed: %s", statement, record.computer_name, record.drive, exc
    )
    return PersistenceError(
        record.computer_name,
        f"{statement} failed: {exc}",
        drive=record.drive,
        statement=statement,
    )
