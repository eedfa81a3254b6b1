"""
utils.py

Qt helpers for the scene editor's view.
"""

from __future__ import annotations

from PyQt6.QtGui import QColor


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
    if len(s) not in (6, 8):
        return QColor(fallback)
    try:
        channels = [int(s[i:i + 2], 16) for i in range(0, len(s), 2)]
    except ValueError:
        return QColor(fallback)
    return QColor(*channels)
