"""Aplanado de HTML en streaming (tokenizer `html.parser`).

Por qué `html.parser`:
- Es el tokenizer sobre el que corre BeautifulSoup con el backend
  "html.parser"; aquí lo usamos directo porque no queremos árbol, solo
  eventos start/end/data.

Reglas propias de HTML:
- Elementos void (`<br>`, `<img>`, ...) y tags auto-cerrados no tocan la pila.
- Un cierre desapila el tope sin comparar nombres (HTML real rara vez está
  balanceado); cerrar con la pila vacía es `MalformedMarkupError`.
"""

from __future__ import annotations

import codecs
import logging
from html.parser import HTMLParser
from typing import BinaryIO

from adapters.flatten.base import CHUNK_SIZE, PathTracker

logger = logging.getLogger(__name__)

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class _FlattenParser(HTMLParser):
    def __init__(self, tracker: PathTracker) -> None:
        super().__init__(convert_charrefs=True)
        self._tracker = tracker

    def handle_starttag(self, tag, attrs):
        if tag in VOID_ELEMENTS:
            self._tracker.flush_text()
            return
        self._tracker.push(tag)

    def handle_startendtag(self, tag, attrs):
        self._tracker.flush_text()

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            self._tracker.flush_text()
            return
        self._tracker.pop(tag)

    def handle_data(self, data):
        self._tracker.add_text(data)

    def handle_comment(self, data):
        self._tracker.flush_text()

    def handle_decl(self, decl):
        self._tracker.flush_text()

    def handle_pi(self, data):
        self._tracker.flush_text()


class HtmlFlattener:
    """Motor HTML de un solo uso."""

    def __init__(self, key: str = "", *, encoding: str = "utf-8") -> None:
        self._key = key
        self._encoding = encoding
        self._used = False

    def flatten(self, source: BinaryIO, sink: BinaryIO) -> None:
        if self._used:
            raise RuntimeError("HtmlFlattener instances are single-use")
        self._used = True

        tracker = PathTracker(sink, self._key)
        parser = _FlattenParser(tracker)
        decoder = codecs.getincrementaldecoder(self._encoding)(errors="replace")

        for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
            parser.feed(decoder.decode(chunk))
        parser.feed(decoder.decode(b"", final=True))
        parser.close()
        tracker.flush_text()

        if tracker.stack:
            logger.debug("html flatten: stream ended with open elements at %s", tracker.path)
        logger.debug("html flatten: %d record(s) written", tracker.records)
