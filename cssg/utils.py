"""Utility functions for cssg.

Small path and string helpers shared by the build pipeline, the scaffolder
and the development server.

Key functions:
    ensure_clean_dir: Ensure a directory exists and is empty.
    is_internal_path: Check for ``_``-prefixed path components.
    is_stylesheet: Check whether a path names a CSS file.
    titleize: Convert a file or project name to a human-readable title.
    relative_posix: Express a path relative to a base as a POSIX string.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

STYLESHEET_SUFFIXES = frozenset({".css"})


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def is_internal_path(path: Path) -> bool:
    """Check if a path is internal (contains components starting with _).

    Internal paths hold partials and other includes that are never rendered
    as pages of their own.

    Args:
        path: Path to check, usually relative to the pages directory.

    Returns:
        True if any path component starts with underscore.
    """
    return any(part.startswith("_") for part in path.parts)


def is_stylesheet(path: str | Path) -> bool:
    """Check if a path is a stylesheet, judged by its extension only."""
    return Path(path).suffix.lower() in STYLESHEET_SUFFIXES


def titleize(name: str) -> str:
    """Convert a file or directory name to a human-readable title.

    Args:
        name: Name with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("my-blog")
        'My Blog'
    """
    base = Path(name).stem if "." in name else name
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def relative_posix(path: Path, base: Path) -> str | None:
    """Return ``path`` relative to ``base`` as a POSIX string, or None."""
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return None
