"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Todo se imprime en stderr: stdout queda reservado para los datos.
"""

from __future__ import annotations

from typing import Iterable

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from adapters.http_client import build_soap_headers, parse_endpoint
from core.domain.models import CallConfig, ResponseMeta, RetryAttempt

REDACTED = "<redacted>"


def build_retry_table(retry_log: Iterable[RetryAttempt]) -> Table:
    """Tabla con los intentos fallidos del caller."""

    table = Table(title="Retry log")
    table.add_column("Attempt", style="cyan", no_wrap=True, justify="right")
    table.add_column("Error", style="red")
    table.add_column("Next wait", style="dim", justify="right")
    for entry in retry_log:
        wait = f"{entry.delay:.2f}s" if entry.delay is not None else "-"
        table.add_row(str(entry.attempt), Text(entry.error), wait)
    return table


def _headers_table(title: str, headers: Iterable[tuple[str, str]]) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Header", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for name, value in headers:
        table.add_row(Text(name), Text(value))
    return table


def build_request_panel(config: CallConfig, body: bytes) -> Panel:
    """Volcado del request (el valor de Authorization nunca se muestra)."""

    url = parse_endpoint(config.endpoint)
    headers = list(build_soap_headers(config=config, url=url, body=body).items())
    if config.auth is not None:
        headers.append(("Authorization", f"Basic {REDACTED} (user={config.auth.username})"))

    summary = Text()
    summary.append("POST ", style="bold")
    summary.append(str(url))
    summary.append(f"\nBody: {len(body)} bytes", style="dim")
    return Panel(
        Group(summary, _headers_table("Request headers", headers)),
        title=Text("Request", style="bold yellow"),
        border_style="yellow",
    )


def build_response_panel(meta: ResponseMeta, body_size: int) -> Panel:
    """Volcado de status/protocolo/headers de la respuesta."""

    style = "green" if meta.is_success else "red"
    summary = Text()
    summary.append(f"{meta.http_version} ", style="dim")
    summary.append(f"{meta.status_code} {meta.reason_phrase}", style=f"bold {style}")
    if meta.url:
        summary.append(f"\nURL: {meta.url}", style="dim")
    summary.append(f"\nBody: {body_size} bytes", style="dim")
    return Panel(
        Group(summary, _headers_table("Response headers", meta.headers)),
        title=Text("Response", style=f"bold {style}"),
        border_style=style,
    )
