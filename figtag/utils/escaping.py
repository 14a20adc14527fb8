"""Escaping for text placed into generated HTML/SVG markup."""

from __future__ import annotations

from html import escape


def escape_markup(value: str) -> str:
    """HTML-escape value and neutralize square brackets.

    Brackets become character references so that generated markup can never
    be mistaken for an article tag by a later scan.
    """

    return escape(value, quote=True).replace("[", "&#91;").replace("]", "&#93;")
