"""Aplanado de XML en streaming (lxml, parser con target).

Por qué lxml con target:
- El feed parser entrega start/end/data a medida que llegan los bytes, sin
  construir árbol: memoria acotada a la profundidad de anidamiento.
- Los errores de buena formación (cierres que no corresponden, contenido
  extra tras la raíz) los detecta libxml2 y se reportan como
  `MalformedMarkupError`.

Los nombres de elemento se reducen a su nombre local (sin namespace), así un
`<soap:Envelope>` aparece como `Envelope` en el path.
"""

from __future__ import annotations

import logging
from typing import BinaryIO

from lxml import etree

from adapters.flatten.base import CHUNK_SIZE, PathTracker
from core.domain.errors import MalformedMarkupError

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[-1]
    return tag


class _FlattenTarget:
    """Target de lxml: traduce eventos del parser a la pila de paths."""

    def __init__(self, tracker: PathTracker) -> None:
        self._tracker = tracker

    def start(self, tag, attrib):
        self._tracker.push(_local_name(tag))

    def end(self, tag):
        self._tracker.pop(_local_name(tag))

    def data(self, data):
        self._tracker.add_text(data)

    def comment(self, text):
        self._tracker.flush_text()

    def pi(self, target, data=None):
        self._tracker.flush_text()

    def close(self):
        self._tracker.flush_text()
        return None


class XmlFlattener:
    """Motor XML de un solo uso."""

    def __init__(self, key: str = "") -> None:
        self._key = key
        self._used = False

    def flatten(self, source: BinaryIO, sink: BinaryIO) -> None:
        if self._used:
            raise RuntimeError("XmlFlattener instances are single-use")
        self._used = True

        tracker = PathTracker(sink, self._key)
        target = _FlattenTarget(tracker)
        parser = etree.XMLParser(target=target, resolve_entities=False, no_network=True)

        blank = True
        try:
            for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
                blank = blank and not chunk.strip()
                parser.feed(chunk)
        except etree.XMLSyntaxError as exc:
            raise MalformedMarkupError(str(exc)) from exc

        if blank:
            logger.debug("xml flatten: no elements in input")
            return

        try:
            parser.close()
        except etree.XMLSyntaxError as exc:
            if tracker.stack:
                # Documento sin cerrar: fin de stream limpio (los errores de
                # estructura ya salieron en feed).
                tracker.flush_text()
                logger.debug("xml flatten: stream ended with open elements at %s", tracker.path)
                return
            raise MalformedMarkupError(str(exc)) from exc

        logger.debug("xml flatten: %d record(s) written", tracker.records)
