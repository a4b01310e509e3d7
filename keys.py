"""
keys.py

Translation from Qt key and mouse events to the symbolic key ids stored in
mapping records (``"Key_A"``, ``"Key_Alt"``, ``"LeftButton"``...).
"""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QKeyEvent


# Printable symbols produced with Shift held, mapped to the Qt name of the symbol
SHIFT_SYMBOL_MAP = {
    "!": "Key_Exclam",
    "@": "Key_At",
    "#": "Key_NumberSign",
    "$": "Key_Dollar",
    "%": "Key_Percent",
    "^": "Key_AsciiCircum",
    "&": "Key_Ampersand",
    "*": "Key_Asterisk",
    "(": "Key_ParenLeft",
    ")": "Key_ParenRight",
    "_": "Key_Underscore",
    "+": "Key_Plus",
    "{": "Key_BraceLeft",
    "}": "Key_BraceRight",
    "|": "Key_Bar",
    ":": "Key_Colon",
    '"': "Key_QuoteDbl",
    "<": "Key_Less",
    ">": "Key_Greater",
    "?": "Key_Question",
    "~": "Key_AsciiTilde",
}

# Names kept as the target device expects them
KEY_ALIASES = {
    "Key_Enter": "Key_Return",
    "Key_AltGr": "Key_Alt",
    "Key_Backtab": "Key_Tab",
}

MOUSE_BUTTON_NAMES = {
    Qt.MouseButton.LeftButton: "LeftButton",
    Qt.MouseButton.MiddleButton: "MiddleButton",
    Qt.MouseButton.RightButton: "RightButton",
    Qt.MouseButton.ExtraButton1: "ExtraButton1",
    Qt.MouseButton.ExtraButton2: "ExtraButton2",
}


def key_from_code(key: int, text: str = "") -> Optional[str]:
    """
    Translate a Qt key code to a symbolic key id.

    Args:
        key: ``Qt.Key`` value as an int.
        text: Text produced by the key press; used to recognise shifted symbols.

    Returns:
        ``"Key_*"`` id, or ``None`` for codes Qt does not name.
    """
    if text in SHIFT_SYMBOL_MAP:
        return SHIFT_SYMBOL_MAP[text]
    try:
        name = Qt.Key(key).name
    except ValueError:
        return None
    if not name.startswith("Key_") or name == "Key_unknown":
        return None
    return KEY_ALIASES.get(name, name)


def key_from_event(event: QKeyEvent) -> Optional[str]:
    """Symbolic key id for a key event (auto-repeats are ignored)."""
    if event.isAutoRepeat():
        return None
    return key_from_code(event.key(), event.text())


def key_from_mouse_button(button: Qt.MouseButton) -> Optional[str]:
    """Symbolic id for a mouse button, or ``None`` when the button has no name."""
    return MOUSE_BUTTON_NAMES.get(button)
