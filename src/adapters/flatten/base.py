"""Piezas comunes a los motores de aplanado (XML/HTML).

Un registro es `path value`: `path` es la pila de elementos abiertos unida con
"/" y `value` el texto recortado. La pila es una lista explícita: el recorrido
es una sola pasada en streaming y nunca necesita acceso a ancestros.
"""

from __future__ import annotations

from typing import BinaryIO

from core.domain.errors import MalformedMarkupError

CHUNK_SIZE = 64 * 1024
PATH_SEPARATOR = "/"


def format_record(path: str, value: str, key: str) -> str | None:
    """Aplica el filtro `key` y devuelve la línea a escribir (o None).

    - key vacío: `"<path> <value>\\n"`
    - key == path: `"<value>\\n"`
    - key terminado en "/": `"<path> <value>\\n"` solo si el *valor* empieza
      con key (se compara contra el texto, no contra el path).
    """

    if not key:
        return f"{path} {value}\n"
    if key == path:
        return f"{value}\n"
    if key.endswith(PATH_SEPARATOR) and value.startswith(key):
        return f"{path} {value}\n"
    return None


class PathTracker:
    """Pila de elementos + buffer de texto; escribe registros en `sink`."""

    def __init__(self, sink: BinaryIO, key: str = "") -> None:
        self._sink = sink
        self._key = key
        self._text: list[str] = []
        self.stack: list[str] = []
        self.records = 0

    @property
    def path(self) -> str:
        return PATH_SEPARATOR + PATH_SEPARATOR.join(self.stack)

    def push(self, name: str) -> None:
        self.flush_text()
        self.stack.append(name)

    def pop(self, name: str) -> None:
        self.flush_text()
        if not self.stack:
            raise MalformedMarkupError(f"unexpected closing tag </{name}> with no open element")
        self.stack.pop()

    def add_text(self, data: str) -> None:
        self._text.append(data)

    def flush_text(self) -> None:
        """Cierra el token de texto pendiente y lo emite si no está vacío."""

        if not self._text:
            return
        value = "".join(self._text).strip()
        self._text.clear()
        if not value:
            return
        line = format_record(self.path, value, self._key)
        if line is not None:
            self._sink.write(line.encode("utf-8"))
            self.records += 1
