"""Llamada HTTP resiliente (POST SOAP con reintentos).

Responsabilidad:
- Enviar exactamente una llamada lógica (hasta N intentos físicos).
- Reintentar solo fallos de transporte (conexión, timeout, protocolo); una
  respuesta recibida nunca se reintenta, sea cual sea su status.
- Devolver la respuesta final junto con el log de intentos fallidos.

Backoff:
- espera(n) = min(max_delay, initial_delay * 2**(n-1) + uniform(0, jitter))
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable

import httpx

from adapters.http_client import (
    build_auth,
    build_soap_client,
    build_soap_headers,
    parse_endpoint,
    response_meta,
)
from core.config import AppSettings
from core.domain.errors import TransportError
from core.domain.models import CallConfig, CallResult, RetryAttempt

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class ResilientCaller:
    """Ejecuta el POST con reintentos y backoff exponencial con jitter."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self._settings.retry_max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Espera antes del intento `attempt + 1` (attempt es 1-based)."""

        s = self._settings
        base = s.retry_initial_delay * (2 ** (attempt - 1))
        return min(s.retry_max_delay, base + self._rng.uniform(0.0, s.retry_jitter))

    def call(self, config: CallConfig, body: bytes) -> CallResult:
        url = parse_endpoint(config.endpoint)
        headers = build_soap_headers(config=config, url=url, body=body)
        auth = build_auth(config.auth)

        retry_log: list[RetryAttempt] = []

        with build_soap_client(self._settings, transport=self._transport) as client:
            attempt = 0
            while True:
                attempt += 1
                request = client.build_request("POST", url, content=body, headers=headers)
                try:
                    response = client.send(request, auth=auth, stream=True)
                except httpx.TransportError as exc:
                    if attempt >= self.max_attempts:
                        retry_log.append(RetryAttempt(attempt=attempt, error=_describe(exc)))
                        raise TransportError(
                            f"request failed after {attempt} attempts: {_describe(exc)}",
                            retry_log=tuple(retry_log),
                        ) from exc
                    delay = self.backoff_delay(attempt)
                    retry_log.append(RetryAttempt(attempt=attempt, error=_describe(exc), delay=delay))
                    logger.warning(
                        "attempt %d/%d to %s failed: %s; retrying in %.2fs",
                        attempt,
                        self.max_attempts,
                        url,
                        _describe(exc),
                        delay,
                    )
                    self._sleep(delay)
                    continue
                except httpx.HTTPError as exc:
                    # Errores de protocolo del cliente: no se reintentan.
                    retry_log.append(RetryAttempt(attempt=attempt, error=_describe(exc)))
                    raise TransportError(
                        f"request failed: {_describe(exc)}",
                        retry_log=tuple(retry_log),
                    ) from exc

                return self._read(response, attempts=attempt, retry_log=tuple(retry_log))

    def _read(
        self,
        response: httpx.Response,
        *,
        attempts: int,
        retry_log: tuple[RetryAttempt, ...],
    ) -> CallResult:
        meta = response_meta(response)
        try:
            raw = response.read()
        except httpx.HTTPError as exc:
            raise TransportError(
                f"reading response body failed: {_describe(exc)}",
                retry_log=retry_log,
                response=meta,
            ) from exc
        finally:
            response.close()

        logger.debug(
            "response %s %s (%d bytes) after %d attempt(s)",
            meta.status_code,
            meta.reason_phrase,
            len(raw),
            attempts,
        )
        return CallResult(raw=raw, response=meta, retry_log=retry_log, attempts=attempts)
