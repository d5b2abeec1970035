"""Utility functions for CLI operations."""

import re
import sys

from cli.constants import GREEN, RESET
from pipeline.manifest import ManifestEntry

SIZE_UNITS = {
    '': 1,
    'B': 1,
    'K': 1024,
    'KB': 1024,
    'KIB': 1024,
    'M': 1024 ** 2,
    'MB': 1024 ** 2,
    'MIB': 1024 ** 2,
    'G': 1024 ** 3,
    'GB': 1024 ** 3,
    'GIB': 1024 ** 3,
}

_SIZE_RE = re.compile(r'^\s*(\d+)\s*([a-zA-Z]*)\s*$')


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def parse_size(text: str) -> int:
    """
    Parse a byte size such as '400M', '64KiB' or '1048576'.

    Raises:
        ValueError: If the text is not a positive size
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size: {text!r}")

    number, unit = match.groups()
    unit = unit.upper()
    if unit not in SIZE_UNITS:
        raise ValueError(f"Unknown size unit {unit!r} in {text!r}")

    size = int(number) * SIZE_UNITS[unit]
    if size <= 0:
        raise ValueError(f"Size must be positive: {text!r}")
    return size


def print_fragment_progress(stage: str, entry: ManifestEntry, total: int) -> None:
    """Print one line per stored or fetched fragment."""
    verb = "uploaded" if stage == 'uploaded' else "downloaded"
    sys.stdout.write(
        f"[{entry.index + 1}/{total}] fragment {entry.index:02d} {verb} "
        f"({format_file_size(entry.size)}) root = {GREEN}{entry.content_id}{RESET}\n"
    )
    sys.stdout.flush()
