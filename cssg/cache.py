"""Modification-time aware cache for served HTML files.

The development server reads the same few HTML files over and over. Entries
are keyed by path and invalidated by comparing the file's current
modification time against the one recorded when the entry was stored, so a
rebuild that rewrites a file is picked up on the next request.

Entries are immutable values and are replaced rather than mutated, which
keeps concurrent readers safe: the worst outcome of a race is that the last
writer wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class NotFoundError(FileNotFoundError):
    """Raised when a cached file is missing or cannot be read."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"File not found: {path}")


@dataclass(frozen=True)
class CachedFile:
    """Text of a file together with its modification time at read time."""

    path: Path
    content: str
    mtime_ns: int


class FileCache:
    """Cache of decoded file contents keyed by path.

    A hit is only returned while the stored timestamp is at least the current
    on-disk timestamp. There is no size bound; the working set is the handful
    of HTML files in the output directory.
    """

    def __init__(self):
        self._entries: dict[Path, CachedFile] = {}

    def get(self, path: Path | str) -> str:
        """Return the text of ``path``, reading from disk only when stale.

        Raises:
            NotFoundError: If the file does not exist or cannot be read. Any
                entry for the path is evicted first.
        """
        path = Path(path)
        try:
            mtime_ns = path.stat().st_mtime_ns
            cached = self._entries.get(path)
            if cached is not None and cached.mtime_ns >= mtime_ns:
                return cached.content
            content = self._read(path)
        except (OSError, UnicodeDecodeError) as exc:
            self._entries.pop(path, None)
            raise NotFoundError(path) from exc
        self._entries[path] = CachedFile(path, content, mtime_ns)
        return content

    def _read(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def invalidate(self, path: Path | str | None = None) -> None:
        """Drop the entry for ``path``, or every entry when no path is given."""
        if path is None:
            self._entries.clear()
        else:
            self._entries.pop(Path(path), None)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, Path)) and Path(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
