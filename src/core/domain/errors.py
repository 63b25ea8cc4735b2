"""Errores del pipeline.

Por qué una jerarquía propia:
- Cada etapa (config, template, transport, decode, flatten) falla con un tipo
  distinto y un prefijo estable en el mensaje.
- Quien llama distingue "nunca se envió" de "se envió y falló" y de "se
  recibió pero no se pudo interpretar" sin parsear texto libre.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.domain.models import ResponseMeta, RetryAttempt


class SoapCallError(Exception):
    """Base de todos los errores del pipeline."""

    stage = "soapcall"

    def __init__(self, message: str) -> None:
        self.reason = message
        super().__init__(f"{self.stage}: {message}")


class ConfigError(SoapCallError):
    """Configuración inválida; la llamada nunca se intenta."""

    stage = "config"


class TemplateError(SoapCallError):
    """Fallo al expandir el template del request."""

    stage = "template"


class TransportError(SoapCallError):
    """Fallo de envío/recepción tras agotar reintentos, o al leer el body."""

    stage = "transport"

    def __init__(
        self,
        message: str,
        *,
        retry_log: tuple[RetryAttempt, ...] = (),
        response: ResponseMeta | None = None,
    ) -> None:
        super().__init__(message)
        self.retry_log = retry_log
        self.response = response


class DecodeError(SoapCallError):
    """Payload base64 inválido dentro de <reportBytes>."""

    stage = "decode"

    def __init__(self, message: str, *, raw: bytes, partial: bytes) -> None:
        super().__init__(message)
        self.raw = raw
        self.partial = partial


class MalformedMarkupError(SoapCallError):
    """Markup estructuralmente inválido (p.ej. cierre sin apertura)."""

    stage = "flatten"
