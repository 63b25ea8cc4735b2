"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers fijos del request SOAP y validación del
  endpoint.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings
from core.domain.errors import ConfigError
from core.domain.models import BasicAuthCredentials, CallConfig, ResponseMeta

SOAP_CONTENT_TYPE = "text/xml;charset=UTF-8"


def parse_endpoint(endpoint: str) -> httpx.URL:
    """Valida el endpoint antes de cualquier intento de red."""

    try:
        url = httpx.URL(endpoint.strip())
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ConfigError(f"invalid endpoint {endpoint!r}: {exc}") from exc
    if url.scheme not in ("http", "https"):
        raise ConfigError(f"invalid endpoint {endpoint!r}: scheme must be http or https")
    if not url.host:
        raise ConfigError(f"invalid endpoint {endpoint!r}: missing host")
    return url


def build_soap_headers(*, config: CallConfig, url: httpx.URL, body: bytes) -> dict[str, str]:
    """Headers fijos del POST.

    `Accept-Encoding` vacío: no se negocia compresión, el body llega tal cual.
    """

    return {
        "Content-Type": SOAP_CONTENT_TYPE,
        "SOAPAction": f'"{config.soap_action}"',
        "Content-Length": str(len(body)),
        "Accept-Encoding": "",
        "Host": url.netloc.decode("ascii"),
        "Connection": "Keep-Alive",
    }


def build_auth(credentials: BasicAuthCredentials | None) -> httpx.BasicAuth | None:
    if credentials is None:
        return None
    return httpx.BasicAuth(credentials.username, credentials.password)


def build_soap_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` síncrono con defaults del proyecto.

    Por qué síncrono:
    - Una invocación = una llamada lógica; el único punto de espera es el
      backoff entre intentos.

    Sin seguir redirects: un 3xx es la respuesta final (un POST nunca se
    convierte en GET hacia otra URL).
    """

    settings = settings or AppSettings()
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=False,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


def response_meta(response: httpx.Response) -> ResponseMeta:
    return ResponseMeta(
        status_code=response.status_code,
        reason_phrase=response.reason_phrase,
        http_version=response.http_version,
        url=str(response.url),
        headers=tuple(response.headers.multi_items()),
    )
