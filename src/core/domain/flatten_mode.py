"""Flatten modes supported by the response pipeline.

The CLI exposes two independent flags (`--flattenXML`, `--flattenHTML`); this
enum collapses them into the single mode the pipeline acts on.
"""

from __future__ import annotations

from enum import Enum


class FlattenMode(str, Enum):
    """Tokenizer used to flatten the response body (or none at all)."""

    NONE = "none"
    XML = "xml"
    HTML = "html"

    @classmethod
    def from_flags(cls, *, xml: bool, html: bool) -> "FlattenMode":
        """Derive the mode from the CLI flags; XML wins when both are set."""

        if xml:
            return cls.XML
        if html:
            return cls.HTML
        return cls.NONE

    @property
    def enabled(self) -> bool:
        return self is not FlattenMode.NONE
