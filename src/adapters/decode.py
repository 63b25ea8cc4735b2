"""Etapa de decode: extrae <reportBytes> y lo decodifica (base64).

Reglas:
- Búsqueda simple de substrings (no entiende anidamiento): primera apertura y
  primer cierre en todo el body.
- Si falta la apertura, o el cierre no aparece después, es un no-op: se
  devuelve el input tal cual.
- CR/LF dentro del payload se ignoran; cualquier otro carácter fuera del
  alfabeto estándar es un error.
"""

from __future__ import annotations

import base64
import binascii
import logging
import string

from core.domain.errors import DecodeError

logger = logging.getLogger(__name__)

OPEN_MARKER = b"<reportBytes>"
CLOSE_MARKER = b"</reportBytes>"

_ALPHABET = frozenset((string.ascii_letters + string.digits + "+/=").encode("ascii"))


def extract_payload(raw: bytes) -> bytes | None:
    """Devuelve el contenido entre los marcadores, o None si no aplica."""

    start = raw.find(OPEN_MARKER)
    if start < 0:
        return None
    end = raw.find(CLOSE_MARKER)
    if end <= start:
        return None
    return raw[start + len(OPEN_MARKER) : end]


def _decode_valid_prefix(payload: bytes) -> bytes:
    """Decodifica los bloques completos previos al primer byte inválido."""

    cut = len(payload)
    for i, byte in enumerate(payload):
        if byte not in _ALPHABET:
            cut = i
            break
    prefix = payload[: cut - cut % 4]
    try:
        return base64.b64decode(prefix, validate=True)
    except (binascii.Error, ValueError):
        return b""


def extract_and_decode(raw: bytes) -> bytes:
    payload = extract_payload(raw)
    if payload is None:
        logger.debug("no <reportBytes> field found; passing body through")
        return raw

    payload = payload.replace(b"\r", b"").replace(b"\n", b"")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(
            f"invalid base64 in <reportBytes>: {exc}",
            raw=raw,
            partial=_decode_valid_prefix(payload),
        ) from exc
