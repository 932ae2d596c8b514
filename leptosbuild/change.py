"""Sets of source changes that decide which build steps must run."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class WatchedKind(Enum):
    """Kinds of file system events seen by the watcher."""

    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"
    WRITE = "write"
    RESCAN = "rescan"


@dataclass(frozen=True)
class Watched:
    """A file system event; renames carry a destination, rescans carry no path."""

    kind: WatchedKind
    path: Path | None = None
    dest: Path | None = None

    def __post_init__(self) -> None:
        if self.kind is WatchedKind.RESCAN:
            if self.path is not None or self.dest is not None:
                raise ValueError("a rescan event carries no path")
            return
        if self.path is None:
            raise ValueError(f"a {self.kind.value} event needs a path")
        object.__setattr__(self, "path", Path(self.path))
        if self.kind is WatchedKind.RENAME:
            if self.dest is None:
                raise ValueError("a rename event needs a destination")
            object.__setattr__(self, "dest", Path(self.dest))
        elif self.dest is not None:
            raise ValueError(f"a {self.kind.value} event has no destination")


class ChangeKind(Enum):
    """What part of a project changed."""

    BIN_SOURCE = "bin-source"
    LIB_SOURCE = "lib-source"
    ASSET = "asset"
    STYLE = "style"
    CONF = "conf"
    ADDITIONAL = "additional"


@dataclass(frozen=True)
class Change:
    """One change; asset changes carry the file system event behind them."""

    kind: ChangeKind
    watched: Watched | None = None

    def __post_init__(self) -> None:
        if (self.kind is ChangeKind.ASSET) != (self.watched is not None):
            raise ValueError("exactly the asset changes carry a watched event")


class ChangeSet:
    """An ordered collection of distinct changes."""

    def __init__(self, changes: Iterable[Change] = ()) -> None:
        self._changes: list[Change] = []
        for change in changes:
            self.add(change)

    @staticmethod
    def all_changes() -> ChangeSet:
        """A set that triggers every build step."""
        return ChangeSet(
            [
                Change(ChangeKind.BIN_SOURCE),
                Change(ChangeKind.LIB_SOURCE),
                Change(ChangeKind.STYLE),
                Change(ChangeKind.CONF),
                Change(ChangeKind.ASSET, Watched(WatchedKind.RESCAN)),
            ]
        )

    def add(self, change: Change) -> bool:
        """Add a change; return False if it was already present."""
        if change in self._changes:
            return False
        self._changes.append(change)
        return True

    def clear(self) -> None:
        self._changes.clear()

    def _has(self, *kinds: ChangeKind) -> bool:
        return any(Change(kind) in self._changes for kind in kinds)

    def need_server_build(self) -> bool:
        return self._has(ChangeKind.BIN_SOURCE, ChangeKind.CONF, ChangeKind.ADDITIONAL)

    def need_front_build(self) -> bool:
        return self._has(ChangeKind.LIB_SOURCE, ChangeKind.CONF, ChangeKind.ADDITIONAL)

    def need_style_build(self, css_files: bool, css_in_source: bool) -> bool:
        return (css_files and self._has(ChangeKind.STYLE)) or (
            css_in_source and self._has(ChangeKind.LIB_SOURCE)
        )

    def assets(self) -> Iterator[Watched]:
        """The watched events of the asset changes, in order."""
        for change in self._changes:
            if change.watched is not None:
                yield change.watched

    def __iter__(self) -> Iterator[Change]:
        return iter(list(self._changes))

    def __len__(self) -> int:
        return len(self._changes)

    def __contains__(self, change: object) -> bool:
        return change in self._changes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeSet):
            return NotImplemented
        return self._changes == other._changes

    def __repr__(self) -> str:
        return f"ChangeSet({self._changes!r})"