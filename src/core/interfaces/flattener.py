"""Contrato de los motores de aplanado (XML/HTML)."""

from __future__ import annotations

from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class Flattener(Protocol):
    """Motor de un solo uso: consume un stream de markup y escribe registros.

    Reglas de diseño:
    - Escribe cada registro en `sink` apenas lo produce (no acumula).
    - Lanza `MalformedMarkupError` ante markup estructuralmente inválido.
    """

    def flatten(self, source: BinaryIO, sink: BinaryIO) -> None:
        ...
