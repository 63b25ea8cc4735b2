"""Motores de aplanado de markup (XML/HTML) a registros `path value`."""

from adapters.flatten.base import format_record
from adapters.flatten.html_flattener import HtmlFlattener
from adapters.flatten.xml_flattener import XmlFlattener
from adapters.flatten.factory import build_flattener, flatten_bytes

__all__ = [
    "HtmlFlattener",
    "XmlFlattener",
    "build_flattener",
    "flatten_bytes",
    "format_record",
]
