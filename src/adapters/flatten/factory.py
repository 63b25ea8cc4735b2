"""Selección del motor según `FlattenMode`."""

from __future__ import annotations

import io

from adapters.flatten.html_flattener import HtmlFlattener
from adapters.flatten.xml_flattener import XmlFlattener
from core.domain.flatten_mode import FlattenMode
from core.interfaces.flattener import Flattener


def build_flattener(mode: FlattenMode, key: str = "") -> Flattener:
    if mode is FlattenMode.XML:
        return XmlFlattener(key)
    if mode is FlattenMode.HTML:
        return HtmlFlattener(key)
    raise ValueError(f"no flattener for mode {mode.value!r}")


def flatten_bytes(data: bytes, mode: FlattenMode, key: str = "") -> bytes:
    """Aplana `data` en memoria (útil para tests y para llamadas embebidas)."""

    sink = io.BytesIO()
    build_flattener(mode, key).flatten(io.BytesIO(data), sink)
    return sink.getvalue()
