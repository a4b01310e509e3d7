"""
utils.py

Utility functions for the key-mapping editor.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from PyQt6.QtGui import QColor


# Qt key names (without the "Key_" prefix) shown as symbols on key badges
KEY_DISPLAY_MAP: Dict[str, str] = {
    "Exclam": "!",
    "At": "@",
    "NumberSign": "#",
    "Dollar": "$",
    "Percent": "%",
    "AsciiCircum": "^",
    "Ampersand": "&",
    "Asterisk": "*",
    "ParenLeft": "(",
    "ParenRight": ")",
    "Underscore": "_",
    "Plus": "+",
    "AsciiTilde": "~",
    "Bar": "|",
    "Colon": ":",
    "QuoteDbl": '"',
    "Less": "<",
    "Greater": ">",
    "Question": "?",
    "BracketLeft": "[",
    "BracketRight": "]",
    "Semicolon": ";",
    "Backslash": "\\",
    "Apostrophe": "'",
    "QuoteLeft": "`",
    "Comma": ",",
    "Period": ".",
    "Slash": "/",
    "Minus": "-",
    "Equal": "=",
    "Space": "␣",
    "Return": "↵",
    "Up": "↑",
    "Down": "↓",
    "Left": "←",
    "Right": "→",
    "Escape": "Esc",
    "Control": "Ctrl",
    "Delete": "Del",
    "Insert": "Ins",
    "PageUp": "PgUp",
    "PageDown": "PgDn",
    "LeftButton": "LMB",
    "MiddleButton": "MMB",
    "RightButton": "RMB",
    "ExtraButton1": "MB4",
    "ExtraButton2": "MB5",
}

KEY_TEXT_MAX = 10
KEY_TEXT_KEEP = 8

MIN_KEY_FONT_SIZE = 8.0
MAX_KEY_FONT_SIZE = 11.0

_SINGLE_SYMBOL = re.compile(r"^[^a-zA-Z0-9]$")


def format_key_text(key: str) -> str:
    """
    Convert a symbolic key id into the short text shown on a key badge.

    ``Key_`` is stripped, known names are replaced by their symbol and
    anything longer than 10 characters is cut to 8 plus an ellipsis.

    Args:
        key: Symbolic key id such as ``"Key_A"`` or ``"LeftButton"``.

    Returns:
        Badge text, or ``""`` for an empty key.
    """
    if not key:
        return ""
    text = key.replace("Key_", "", 1)
    text = KEY_DISPLAY_MAP.get(text, text)
    if len(text) > KEY_TEXT_MAX:
        text = text[:KEY_TEXT_KEEP] + "..."
    return text


def is_single_symbol(text: str) -> bool:
    return len(text) == 1 or bool(_SINGLE_SYMBOL.match(text))


def key_font_size(text: str) -> float:
    """Font size for badge text: 11 for one character, shrinking by 0.5 per extra character down to 8."""
    if is_single_symbol(text):
        return MAX_KEY_FONT_SIZE
    return max(MIN_KEY_FONT_SIZE, min(MAX_KEY_FONT_SIZE, MAX_KEY_FONT_SIZE - (len(text) - 1) * 0.5))


COMMENT_LABEL_MAX = 22
COMMENT_LABEL_KEEP = 20


def truncate_comment(comment: str) -> str:
    if len(comment) > COMMENT_LABEL_MAX:
        return comment[:COMMENT_LABEL_KEEP] + "..."
    return comment


def build_node_label(type_name: str, keys: List[str], comment: str) -> str:
    """
    Build the node list label: ``"<type> - (<keys>) - <comment>"``.

    Empty keys and an empty comment are left out.
    """
    label = type_name
    shown = [format_key_text(k) for k in keys if k]
    if shown:
        label += f" - ({' '.join(shown)})"
    if comment:
        label += f" - {truncate_comment(comment)}"
    return label


def hex_to_qcolor(s: str, fallback: QColor) -> QColor:
    """
    Parse a hex string to a QColor.

    Args:
        s: Hex string like "#RRGGBB" or "#RRGGBBAA"
        fallback: Color to return if parsing fails

    Returns:
        Parsed QColor or fallback
    """
    if not s:
        return QColor(fallback)
    s = s.strip().lstrip("#")
    try:
        if len(s) == 6:
            return QColor(int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
        if len(s) == 8:
            return QColor(int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16), int(s[6:8], 16))
    except ValueError:
        pass
    return QColor(fallback)


# Canonical key order for mapping records
RECORD_KEY_ORDER = ["type", "comment", "opacity", "key", "pos", "startPos", "endPos", "centerPos"]


def sort_record_keys(rec: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sort mapping record keys in canonical order.

    Keys not in ``RECORD_KEY_ORDER`` keep their original relative order
    after the canonical ones.
    """
    result = {}
    for key in RECORD_KEY_ORDER:
        if key in rec:
            result[key] = rec[key]
    for key in rec:
        if key not in result:
            result[key] = rec[key]
    return result
