"""Track files the bundled output can open."""

import os

SUPPORTED_EXTENSIONS = frozenset({'mid', 'midi', 'kar', 'rmi'})


def is_supported_file(path: str) -> bool:
    """True if path has a supported extension (case-insensitive). Does not touch the disk."""
    ext = os.path.splitext(path)[1]
    return ext[1:].lower() in SUPPORTED_EXTENSIONS


def supported_extensions() -> list[str]:
    """Sorted extensions, e.g. for a file dialog filter."""
    return sorted(SUPPORTED_EXTENSIONS)
