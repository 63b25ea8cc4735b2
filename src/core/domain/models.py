"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O (httpx, lxml).
- Los modelos son inmutables (`frozen`): se construyen una vez por invocación
  y solo se leen después.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from core.domain.flatten_mode import FlattenMode


class BasicAuthCredentials(BaseModel):
    """Credenciales para el header `Authorization: Basic ...`."""

    model_config = ConfigDict(frozen=True)

    username: str = Field(
        ...,
        min_length=1,
        description="Usuario para basic auth.",
    )
    password: str = Field(
        default="",
        repr=False,
        description="Password para basic auth (nunca se imprime).",
    )


class CallConfig(BaseModel):
    """Configuración resuelta de una invocación.

    Por qué existe:
    - La CLI y el entorno aportan opciones sueltas; el pipeline solo consume
      este registro ya resuelto.
    - Es inmutable: nada la modifica después de construirla.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(
        ...,
        min_length=1,
        description="URL del servicio remoto (http/https).",
    )
    soap_action: str = Field(
        default="",
        description="Valor del header SOAPAction (se envía entre comillas).",
    )
    request_template: bool = Field(
        default=False,
        description="Si el input es un template Jinja2 a expandir antes de enviarlo.",
    )
    flatten_mode: FlattenMode = Field(
        default=FlattenMode.NONE,
        description="Tokenizer para aplanar la respuesta (none/xml/html).",
    )
    flatten_key: str = Field(
        default="",
        description="Filtro de registros: vacío = todos, path exacto o prefijo terminado en '/'.",
    )
    base64_decode: bool = Field(
        default=False,
        description="Extraer y decodificar el campo <reportBytes> antes de aplanar.",
    )
    auth: BasicAuthCredentials | None = Field(
        default=None,
        description="Credenciales basic auth (si aplica).",
    )


class ResponseMeta(BaseModel):
    """Metadatos de la respuesta HTTP (sin el body)."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., ge=100, le=999)
    reason_phrase: str = Field(default="")
    http_version: str = Field(default="HTTP/1.1")
    url: str = Field(default="")
    headers: tuple[tuple[str, str], ...] = Field(
        default=(),
        description="Headers en orden de llegada (se permiten nombres repetidos).",
    )

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None


class RetryAttempt(BaseModel):
    """Un intento fallido del caller (para diagnóstico)."""

    model_config = ConfigDict(frozen=True)

    attempt: int = Field(..., ge=1, description="Índice del intento (1-based).")
    error: str = Field(..., description="Tipo y mensaje del error de transporte.")
    delay: float | None = Field(
        default=None,
        ge=0,
        description="Espera antes del siguiente intento; None si no hubo otro.",
    )


class CallResult(BaseModel):
    """Resultado de la llamada resiliente."""

    model_config = ConfigDict(frozen=True)

    raw: bytes = Field(..., repr=False, description="Body crudo recibido.")
    response: ResponseMeta
    retry_log: tuple[RetryAttempt, ...] = Field(default=())
    attempts: int = Field(default=1, ge=1, description="Intentos físicos realizados.")
