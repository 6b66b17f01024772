"""Command-line entry point for the machine inventory.

Usage:
    machine-inventory collect HOST [HOST ...]        # print one JSON record per host
    machine-inventory save HOST ... --table inv      # collect and upsert into SQLite
    machine-inventory check HOST ... --probe         # print hosts that answer a ping
    machine-inventory init-db                        # create the inventory table
    cat hosts.txt | machine-inventory collect        # host names from stdin
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TextIO

import yaml

from machine_inventory.config import settings
from machine_inventory.db import database as db
from machine_inventory.engine import InventoryPipeline, ReachabilityFilter
from machine_inventory.engine.pipeline import Hosts
from machine_inventory.errors import PersistenceError
from machine_inventory.models import HostResult, MachineInfo, TableRef
from machine_inventory.sessions import SessionProvider, WinRMSessionProvider

logger = logging.getLogger("machine_inventory")


# ── host resolution ──────────────────────────────────


def load_hosts_file(path: str) -> list[str]:
    """Read host names from YAML: a plain list or a mapping with a ``hosts`` list."""
    data = yaml.safe_load(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("hosts")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of hosts")
    return [str(h).strip() for h in data if str(h).strip()]


def resolve_hosts(hosts: list[str], stdin: TextIO | None = None) -> list[str]:
    """Positional hosts, else piped stdin, else the configured hosts file."""
    if hosts:
        return hosts
    stdin = stdin if stdin is not None else sys.stdin
    if not stdin.isatty():
        lines = (line.split("#", 1)[0].strip() for line in stdin)
        piped = [line for line in lines if line]
        if piped:
            return piped
    if settings.hosts_file:
        return load_hosts_file(settings.hosts_file)
    return []


# ── commands ─────────────────────────────────────────


def _prefiltered(args: argparse.Namespace, hosts: list[str], provider: SessionProvider) -> Hosts:
    if not args.check:
        return hosts
    reachability = ReachabilityFilter(provider, probe=settings.probe_on_check)
    return reachability.filter(hosts)


def _table(args: argparse.Namespace) -> TableRef:
    return TableRef(
        database=args.database or settings.db_path,
        table=args.table or settings.db_table,
    )


async def cmd_collect(args: argparse.Namespace, hosts: list[str], provider: SessionProvider) -> int:
    pipeline = InventoryPipeline(provider)
    failed = 0
    async for result in pipeline.results(_prefiltered(args, hosts, provider)):
        if result.record is None:
            failed += 1
            continue
        print(json.dumps(result.record.model_dump(by_alias=True)))
    return 1 if failed else 0


async def cmd_save(args: argparse.Namespace, hosts: list[str], provider: SessionProvider) -> int:
    table = _table(args)
    if args.init:
        await db.init_db(table)

    pipeline = InventoryPipeline(provider)
    host_failures: list[HostResult] = []

    async def records() -> AsyncIterator[MachineInfo]:
        async for result in pipeline.results(_prefiltered(args, hosts, provider)):
            if result.record is None:
                host_failures.append(result)
                continue
            yield result.record

    transactional = True if args.transactional else None
    try:
        results = await db.upsert_all(records(), table, transactional=transactional)
    except PersistenceError as exc:
        logger.error("Persistence run aborted: %s", exc)
        return 2

    written = sum(1 for r in results if r.ok)
    print(
        f"{written} saved, {len(results) - written} write failure(s), "
        f"{len(host_failures)} host failure(s) -> {table.database}:{table.table}"
    )
    return 0 if written == len(results) and not host_failures else 1


async def cmd_check(args: argparse.Namespace, hosts: list[str], provider: SessionProvider) -> int:
    reachability = ReachabilityFilter(provider, probe=args.probe or settings.probe_on_check)
    async for host in reachability.filter(hosts):
        print(host)
    return 0


async def cmd_init_db(args: argparse.Namespace, hosts: list[str], provider: SessionProvider) -> int:
    table = _table(args)
    await db.init_db(table)
    print(f"Initialized {table.database}:{table.table}")
    return 0


COMMANDS = {
    "collect": cmd_collect,
    "save": cmd_save,
    "check": cmd_check,
    "init-db": cmd_init_db,
}


# ── main ─────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="machine-inventory",
        description=f"{settings.app_name}: hardware and OS facts from remote Windows hosts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    collect = sub.add_parser("collect", help="Print one JSON record per host")
    collect.add_argument("hosts", nargs="*", metavar="HOST")
    collect.add_argument("--check", action="store_true", help="Ping hosts before querying")

    save = sub.add_parser("save", help="Collect and upsert records into the inventory table")
    save.add_argument("hosts", nargs="*", metavar="HOST")
    save.add_argument("--check", action="store_true", help="Ping hosts before querying")
    save.add_argument("--database", help="SQLite database path")
    save.add_argument("--table", help="Destination table")
    save.add_argument("--transactional", action="store_true", help="Delete and insert in one transaction")
    save.add_argument("--init", action="store_true", help="Create the table first if missing")

    check = sub.add_parser("check", help="Print hosts that answer a ping")
    check.add_argument("hosts", nargs="*", metavar="HOST")
    check.add_argument("--probe", action="store_true", help="Also try a BIOS query on live hosts")

    init = sub.add_parser("init-db", help="Create the inventory table")
    init.add_argument("--database", help="SQLite database path")
    init.add_argument("--table", help="Destination table")

    return parser


async def main(argv: list[str] | None = None, provider: SessionProvider | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose or settings.debug else settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        hosts: list[str] = []
        if args.command != "init-db":
            hosts = resolve_hosts(args.hosts)
            if not hosts:
                logger.error("No hosts given (arguments, stdin or MINV_HOSTS_FILE)")
                return 2

        provider = provider or WinRMSessionProvider()
        return await COMMANDS[args.command](args, hosts, provider)
    except (ValueError, FileNotFoundError, yaml.YAMLError) as exc:  # bad hosts file or table identifier
        logger.error("%s", exc)
        return 2


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
