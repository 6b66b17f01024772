from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any

import winrm
from winrm.exceptions import WinRMError, WinRMOperationTimeoutError, WinRMTransportError

from machine_inventory.config import settings
from machine_inventory.errors import CollectionError, SessionError
from machine_inventory.models.facts import (
    CATEGORY_PROPERTIES,
    CIM_CLASSES,
    QueryCategory,
    QueryFilter,
)
from machine_inventory.sessions.base import Session, SessionProvider

logger = logging.getLogger(__name__)

# requests exceptions derive from OSError
TRANSPORT_ERRORS = (WinRMError, WinRMTransportError, WinRMOperationTimeoutError, OSError)

_PROPERTY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_PROBE_SCRIPT = "$env:COMPUTERNAME"


# ── script building ────────────────────────────────────


def _ps_quote(text: str) -> str:
    """Quote ``text`` as a PowerShell single-quoted literal."""
    return "'" + text.replace("'", "''") + "'"


def _wql_equals(query_filter: QueryFilter) -> str:
    if not _PROPERTY_RE.match(query_filter.field):
        raise ValueError(f"Invalid CIM property name: {query_filter.field!r}")
    value = query_filter.value.replace("\\", "\\\\").replace('"', '\\"')
    return f'{query_filter.field}="{value}"'


def build_query_script(category: QueryCategory, query_filter: QueryFilter | None = None) -> str:
    """PowerShell pipeline returning the category's instances as compact JSON."""
    command = f"Get-CimInstance -ClassName {CIM_CLASSES[category]}"
    if query_filter is not None:
        command += f" -Filter {_ps_quote(_wql_equals(query_filter))}"
    properties = ",".join(CATEGORY_PROPERTIES[category])
    return f"{command} | Select-Object -Property {properties} | ConvertTo-Json -Compress"


def parse_instances(host: str, category: QueryCategory, output: bytes) -> list[dict[str, Any]]:
    """Decode ConvertTo-Json output: nothing, one object, or an array."""
    text = output.decode("utf-8", errors="replace").lstrip("\ufeff").strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CollectionError(host, category, f"unparsable output: {exc}") from exc
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    raise CollectionError(host, category, f"unexpected output type {type(data).__name__}")


# ── session ────────────────────────────────────────────


class WinRMSession(Session):
    """CIM queries over a pywinrm session.

    pywinrm opens and closes a remote shell per ``run_ps`` call, so
    ``close()`` only drops the client. Blocking calls run in a worker thread.
    """

    def __init__(self, host: str, client: winrm.Session) -> None:
        super().__init__(host)
        self._client: winrm.Session | None = client

    async def _run_ps(self, script: str) -> winrm.Response:
        if self._client is None:
            raise WinRMError(f"session to {self.host} is closed")
        return await asyncio.to_thread(self._client.run_ps, script)

    async def probe(self) -> str:
        """Round-trip a trivial command; returns the remote computer name."""
        response = await self._run_ps(_PROBE_SCRIPT)
        if response.status_code != 0:
            raise WinRMError(response.std_err.decode("utf-8", errors="replace").strip())
        return response.std_out.decode("utf-8", errors="replace").strip()

    async def query(
        self,
        category: QueryCategory,
        query_filter: QueryFilter | None = None,
    ) -> list[dict[str, Any]]:
        script = build_query_script(category, query_filter)
        logger.debug("Querying %s on %s", CIM_CLASSES[category], self.host)
        try:
            response = await self._run_ps(script)
        except TRANSPORT_ERRORS as exc:
            raise CollectionError(self.host, category, exc) from exc
        if response.status_code != 0:
            message = response.std_err.decode("utf-8", errors="replace").strip()
            raise CollectionError(self.host, category, message or f"exit code {response.status_code}")
        return parse_instances(self.host, category, response.std_out)

    async def close(self) -> None:
        self._client = None
        await super().close()


class WinRMSessionProvider(SessionProvider):
    """Builds pywinrm sessions from settings and verifies them with a probe."""

    def __init__(
        self,
        username: str | None = None,
        password: str | None = None,
        transport: str | None = None,
        scheme: str | None = None,
        port: int | None = None,
    ) -> None:
        self.username = username if username is not None else settings.winrm_username
        self.password = password if password is not None else settings.winrm_password
        self.transport = transport or settings.winrm_transport
        self.scheme = scheme or settings.winrm_scheme
        self.port = port or settings.winrm_port

    def endpoint(self, host: str) -> str:
        return f"{self.scheme}://{host}:{self.port}/wsman"

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "transport": self.transport,
            "server_cert_validation": settings.winrm_server_cert_validation,
        }
        if settings.winrm_operation_timeout is not None:
            kwargs["operation_timeout_sec"] = settings.winrm_operation_timeout
        if settings.winrm_read_timeout is not None:
            kwargs["read_timeout_sec"] = settings.winrm_read_timeout
        return kwargs

    async def open(self, host: str) -> WinRMSession:
        endpoint = self.endpoint(host)
        try:
            client = winrm.Session(
                endpoint,
                auth=(self.username, self.password),
                **self._client_kwargs(),
            )
        except (WinRMError, ValueError) as exc:
            raise SessionError(host, f"invalid session parameters: {exc}") from exc

        session = WinRMSession(host, client)
        try:
            remote_name = await session.probe()
        except TRANSPORT_ERRORS as exc:
            await session.close()
            raise SessionError(host, str(exc) or type(exc).__name__) from exc

        logger.info("Session to %s opened (%s, remote name %s)", host, endpoint, remote_name)
        return session
