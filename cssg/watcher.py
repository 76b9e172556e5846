"""Filesystem change classification for the development server.

Raw watchdog notifications are converted into ChangeEvent batches and then
run through a ChangeFilter, which throws away events that can never affect
the built site: reads, version-control internals, editor swap files and,
above all, the build's own writes to the output directory.

Key items:
- ChangeKind / ChangeEvent: One raw filesystem notification.
- ChangeFilter: Reduces a ChangeEvent to the set of paths worth rebuilding for.
- WatchdogBridge: watchdog event handler feeding ChangeEvents to a callback.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler

from .config import ResolvedConfig

IGNORED_PARTS = frozenset({".git", "node_modules", "__pycache__"})
IGNORED_NAMES = frozenset({".DS_Store", "Thumbs.db"})
IGNORED_SUFFIXES = (".log", ".tmp", ".swp", ".swx", "~")


class ChangeKind(enum.Enum):
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    ACCESS = "access"


_WATCHDOG_KINDS = {
    "created": ChangeKind.CREATE,
    "modified": ChangeKind.MODIFY,
    "deleted": ChangeKind.REMOVE,
    "moved": ChangeKind.MODIFY,
}


@dataclass(frozen=True)
class ChangeEvent:
    """One raw filesystem notification.

    Attributes:
        kind: What happened to the paths.
        paths: Non-empty set of absolute paths involved.
    """

    kind: ChangeKind
    paths: frozenset[str]

    def __post_init__(self):
        if not self.paths:
            raise ValueError("ChangeEvent requires at least one path")


class ChangeFilter:
    """Discards change events that should not trigger a rebuild.

    Attributes:
        ignored_dirs: Directories whose contents are ignored entirely.
    """

    def __init__(self, ignored_dirs: Iterable[Path] = ()):
        self.ignored_dirs = tuple(Path(d) for d in ignored_dirs)

    @classmethod
    def for_config(cls, config: ResolvedConfig) -> ChangeFilter:
        return cls([config.output_dir])

    def filter(self, event: ChangeEvent) -> set[str]:
        """Return the paths of ``event`` that warrant a rebuild.

        Access events are dropped as a whole since nothing changed. An empty
        result means the event must not trigger anything.
        """
        if event.kind is ChangeKind.ACCESS:
            return set()
        return {path for path in event.paths if not self.is_ignored(path)}

    def is_ignored(self, path: str | Path) -> bool:
        path = Path(path)
        if any(path.is_relative_to(ignored) for ignored in self.ignored_dirs):
            return True
        if IGNORED_PARTS.intersection(path.parts):
            return True
        if path.name in IGNORED_NAMES:
            return True
        return path.name.endswith(IGNORED_SUFFIXES)


class WatchdogBridge(FileSystemEventHandler):
    """Translates watchdog events into ChangeEvents.

    watchdog calls this handler from its observer thread; ``callback`` is
    responsible for handing the event over to whichever thread consumes it.
    """

    def __init__(self, callback: Callable[[ChangeEvent], None]):
        super().__init__()
        self.callback = callback

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        kind = _WATCHDOG_KINDS.get(event.event_type, ChangeKind.ACCESS)
        paths = {os.fsdecode(event.src_path)}
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.add(os.fsdecode(dest_path))
        self.callback(ChangeEvent(kind, frozenset(paths)))
