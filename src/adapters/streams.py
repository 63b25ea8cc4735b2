"""Entrada/salida de bytes del pipeline.

Por qué está en adapters:
- stdin/stdout y archivos son detalles de infraestructura; el pipeline solo
  recibe `bytes` y un sink binario explícito.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator


def read_input(path: Path | None) -> bytes:
    """Lee el body del request desde `path` o, si es None / "-", desde stdin."""

    if path is None or str(path) == "-":
        return sys.stdin.buffer.read()
    return path.read_bytes()


@contextmanager
def open_sink(path: Path | None) -> Iterator[BinaryIO]:
    """Abre el destino de salida.

    - None / "-": stdout (no se cierra, solo se hace flush).
    - Archivo: se crea o trunca; los directorios padre se crean si faltan.
    """

    if path is None or str(path) == "-":
        out = sys.stdout.buffer
        try:
            yield out
        finally:
            out.flush()
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        yield fh
