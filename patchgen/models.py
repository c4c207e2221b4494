from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Literal


TimestampResolution = Literal["ns", "s"]
DiffSet = frozenset[str]


@dataclass(frozen=True, slots=True)
class FileRecord:
    path: str
    mtime: int


@dataclass(frozen=True, slots=True)
class PathFailure:
    path: str
    reason: str


class Snapshot(Mapping[str, FileRecord]):
    """Read-only mapping of root-relative path to the record captured for it."""

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[FileRecord] = ()) -> None:
        self._records = MappingProxyType({record.path: record for record in records})

    def __getitem__(self, path: str) -> FileRecord:
        return self._records[path]

    def __iter__(self):
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"Snapshot({len(self._records)} files)"

    def timestamps(self) -> dict[str, int]:
        return {path: record.mtime for path, record in self._records.items()}


@dataclass(slots=True)
class WalkResult:
    records: list[FileRecord]
    failures: list[PathFailure] = field(default_factory=list)


@dataclass(slots=True)
class DiffResult:
    new_paths: list[str]
    modified_paths: list[str]
    scanned_count: int

    @property
    def paths(self) -> DiffSet:
        return frozenset(self.new_paths) | frozenset(self.modified_paths)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_paths or self.modified_paths)


@dataclass(slots=True)
class MaterializeResult:
    destination: str
    copied_paths: list[str]
    failures: list[PathFailure] = field(default_factory=list)
