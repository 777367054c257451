"""
Display formatting helpers for sizes and hashes.
"""

from __future__ import annotations

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_file_size(size: int) -> str:
    """
    Format a byte count for display.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(0)
        '0 Bytes'
    """
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def truncate_hash(value: str, head: int = 10, tail: int = 10) -> str:
    """
    Shorten a long hash to ``head...tail`` for messages.

    Values short enough to read whole are returned unchanged.

    Example:
        >>> truncate_hash("0x" + "ab" * 32)
        '0xabababab...abababab'
    """
    if len(value) <= head + tail + 3:
        return value
    return f"{value[:head]}...{value[-tail:]}"
