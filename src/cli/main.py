"""CLI principal (Typer).

Por qué Typer:
- Opciones tipadas y validadas en el borde; el Core recibe un `CallConfig` ya
  resuelto.
- `run()` es el entrypoint del script `soapcall` y de `python -m main`.
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from adapters.process_host import SubprocessHost
from adapters.resilient_caller import ResilientCaller
from adapters.streams import open_sink, read_input
from cli.ui_components import build_request_panel, build_response_panel, build_retry_table
from core.config import AppSettings
from core.domain.errors import DecodeError, SoapCallError, TransportError
from core.domain.models import CallConfig, CallResult
from core.services.call_pipeline import PipelineHooks, resolve_call_config, run_pipeline

app = typer.Typer(
    add_completion=False,
    help="Send one SOAP/XML request with retries and flatten or decode the response.",
)

_err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )


@app.command()
def call(
    endpoint: str = typer.Option(..., "--endpoint", "-e", help="Service URL (http/https)."),
    soapaction: str = typer.Option("", "--soapaction", "-a", help="SOAPAction header value (sent quoted)."),
    infile: Path | None = typer.Option(None, "--infile", "-i", help="Request body file (default: stdin)."),
    infiletemplate: bool = typer.Option(
        False, "--infiletemplate", "-t", help="Treat the input as a Jinja2 template (helpers: exec, lines, env)."
    ),
    flatten_html: bool = typer.Option(False, "--flattenHTML", help="Flatten the response as HTML."),
    flatten_xml: bool = typer.Option(False, "--flattenXML", help="Flatten the response as XML (wins over HTML)."),
    flatten_key: str = typer.Option(
        "", "--flattenKey", "-k", help="Exact path, or prefix ending in '/', to filter flattened records."
    ),
    outfile: Path | None = typer.Option(None, "--outfile", "-o", help="Output file (default: stdout)."),
    base64_decode: bool = typer.Option(False, "--base64", help="Decode the base64 <reportBytes> field first."),
    authtype: str | None = typer.Option(None, "--authtype", help="Authentication type (only 'basic')."),
    username: str | None = typer.Option(None, "--username", "-u", help="Basic auth user."),
    password: str | None = typer.Option(None, "--password", "-p", help="Basic auth password."),
    debug: bool = typer.Option(False, "--debug", help="Dump request/response structure to stderr."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Send the request and write the (processed) response body."""

    settings = AppSettings()
    _configure_logging("DEBUG" if verbose else settings.log_level)

    def on_request(config: CallConfig, body: bytes) -> None:
        if debug:
            _err_console.print(build_request_panel(config, body))

    def on_call(result: CallResult) -> None:
        if result.retry_log:
            _err_console.print(build_retry_table(result.retry_log))
        if debug:
            _err_console.print(build_response_panel(result.response, len(result.raw)))

    try:
        config = resolve_call_config(
            endpoint=endpoint,
            soap_action=soapaction,
            request_template=infiletemplate,
            flatten_xml=flatten_xml,
            flatten_html=flatten_html,
            flatten_key=flatten_key,
            base64_decode=base64_decode,
            auth_type=authtype,
            username=username,
            password=password,
            settings=settings,
        )
        body = read_input(infile)
        with open_sink(outfile) as sink:
            run_pipeline(
                config,
                body,
                sink,
                caller=ResilientCaller(settings),
                host=SubprocessHost(timeout=settings.http_timeout_seconds),
                hooks=PipelineHooks(request_prepared=on_request, call_completed=on_call),
            )
    except TransportError as exc:
        if exc.retry_log:
            _err_console.print(build_retry_table(exc.retry_log))
        if debug and exc.response is not None:
            _err_console.print(build_response_panel(exc.response, 0))
        _fail(exc)
    except DecodeError as exc:
        logger.debug("undecoded body (%d bytes): %r", len(exc.raw), exc.raw[:512])
        logger.debug("partially decoded (%d bytes): %r", len(exc.partial), exc.partial[:512])
        _fail(exc)
    except SoapCallError as exc:
        _fail(exc)
    except OSError as exc:
        _err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _fail(exc: SoapCallError) -> None:
    _err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1) from exc


def run() -> None:
    app()


if __name__ == "__main__":
    run()
