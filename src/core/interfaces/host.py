"""Contrato de capacidades para el template expander.

Por qué Protocol:
- El expander no toca procesos ni entorno directamente: recibe un host.
- En tests se sustituye por un fake sin lanzar procesos reales.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class TemplateHost(Protocol):
    """Capacidades que los helpers del template pueden usar.

    Reglas de diseño:
    - `run_process` devuelve el stdout capturado o lanza `OSError` /
      `subprocess.CalledProcessError`.
    - `getenv` devuelve None si la variable no existe.
    """

    def run_process(self, argv: Sequence[str]) -> str:
        """Ejecuta `argv` y devuelve su salida estándar como texto."""

        ...

    def getenv(self, name: str) -> str | None:
        """Lee una variable de entorno."""

        ...
