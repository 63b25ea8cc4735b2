"""Call pipeline orchestration.

This module wires the stages of one invocation together: template expansion,
the resilient call, the optional base64 decode and the optional flatten pass.
The CLI only resolves options into a `CallConfig`, opens the streams and
renders diagnostics; everything else lives here so the same flow can be used
from tests or other entry points without touching process-wide streams.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Callable

from pydantic import ValidationError

from adapters.decode import extract_and_decode
from adapters.flatten import build_flattener
from adapters.http_client import parse_endpoint
from adapters.process_host import SubprocessHost
from adapters.resilient_caller import ResilientCaller
from adapters.template_expander import expand_template
from core.config import AppSettings
from core.domain.errors import ConfigError, TemplateError
from core.domain.flatten_mode import FlattenMode
from core.domain.models import BasicAuthCredentials, CallConfig, CallResult
from core.interfaces.host import TemplateHost

logger = logging.getLogger(__name__)

SUPPORTED_AUTH_TYPES = ("basic",)


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (diagnostics, warnings)."""

    warning: Callable[[str], None] | None = None
    request_prepared: Callable[[CallConfig, bytes], None] | None = None
    call_completed: Callable[[CallResult], None] | None = None


@dataclass
class PipelineResult:
    """Output of a pipeline invocation."""

    call: CallResult
    request_body: bytes
    processed: bytes
    warnings: list[str] = field(default_factory=list)

    @property
    def raw(self) -> bytes:
        return self.call.raw


def resolve_call_config(
    *,
    endpoint: str,
    soap_action: str = "",
    request_template: bool = False,
    flatten_xml: bool = False,
    flatten_html: bool = False,
    flatten_key: str = "",
    base64_decode: bool = False,
    auth_type: str | None = None,
    username: str | None = None,
    password: str | None = None,
    settings: AppSettings | None = None,
) -> CallConfig:
    """Build the immutable `CallConfig` from loose options.

    Explicit options win over settings (env / .env). Raises `ConfigError` for
    an unusable endpoint, an unknown auth type or basic auth without a user.
    """

    settings = settings or AppSettings()
    parse_endpoint(endpoint)

    username = username if username is not None else settings.username
    password = password if password is not None else settings.password

    kind = (auth_type or "").strip().lower()
    if kind and kind not in SUPPORTED_AUTH_TYPES:
        raise ConfigError(f"unsupported auth type {auth_type!r} (supported: {', '.join(SUPPORTED_AUTH_TYPES)})")
    if kind == "basic" and not username:
        raise ConfigError("basic auth requires a username")

    auth: BasicAuthCredentials | None = None
    if username:
        auth = BasicAuthCredentials(username=username, password=password or "")

    try:
        return CallConfig(
            endpoint=endpoint.strip(),
            soap_action=soap_action,
            request_template=request_template,
            flatten_mode=FlattenMode.from_flags(xml=flatten_xml, html=flatten_html),
            flatten_key=flatten_key,
            base64_decode=base64_decode,
            auth=auth,
        )
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def prepare_request_body(config: CallConfig, body: bytes, host: TemplateHost | None = None) -> bytes:
    """Return the bytes to send: the input as-is, or its template expansion."""

    if not config.request_template:
        return body
    try:
        template = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TemplateError(f"template is not valid UTF-8: {exc}") from exc
    return expand_template(template, host or SubprocessHost()).encode("utf-8")


def process_response(config: CallConfig, raw: bytes, sink: BinaryIO) -> bytes:
    """Decode (optional) and flatten (optional) `raw`, writing into `sink`.

    Returns the processed bytes that fed the flatten pass (or were written
    through unchanged).
    """

    processed = extract_and_decode(raw) if config.base64_decode else raw
    if config.flatten_mode.enabled:
        build_flattener(config.flatten_mode, config.flatten_key).flatten(io.BytesIO(processed), sink)
    else:
        sink.write(processed)
    return processed


def run_pipeline(
    config: CallConfig,
    body: bytes,
    sink: BinaryIO,
    *,
    caller: ResilientCaller | None = None,
    host: TemplateHost | None = None,
    hooks: PipelineHooks | None = None,
) -> PipelineResult:
    """Run one invocation end to end and write the output into `sink`."""

    hooks = hooks or PipelineHooks()
    caller = caller or ResilientCaller()
    warnings: list[str] = []

    def warn(message: str) -> None:
        warnings.append(message)
        logger.warning(message)
        if hooks.warning:
            hooks.warning(message)

    request_body = prepare_request_body(config, body, host)
    if hooks.request_prepared:
        hooks.request_prepared(config, request_body)

    call = caller.call(config, request_body)
    if hooks.call_completed:
        hooks.call_completed(call)

    if call.retry_log:
        warn(f"request succeeded after {call.attempts} attempts ({len(call.retry_log)} failed)")
    if not call.response.is_success:
        warn(f"endpoint answered HTTP {call.response.status_code} {call.response.reason_phrase}".rstrip())

    processed = process_response(config, call.raw, sink)
    return PipelineResult(call=call, request_body=request_body, processed=processed, warnings=warnings)
