from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import PurePosixPath


def _normalize_pattern(pattern: str) -> str:
    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def _as_posix(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def _match_pattern(path: str, pattern: str) -> bool:
    posix_path = _as_posix(path)
    path_obj = PurePosixPath(posix_path)
    norm = _normalize_pattern(pattern)
    if not norm:
        return False
    # Root-anchored, any-depth, and "dir/" prefix styles.
    return (
        path_obj.match(norm)
        or path_obj.match(f"**/{norm}")
        or (norm.endswith("/") and posix_path.startswith(norm))
    )


@dataclass(frozen=True, slots=True)
class PathFilter:
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.include_patterns and not self.exclude_patterns

    def matches(self, path: str) -> bool:
        if self.include_patterns and not any(
            _match_pattern(path, pattern) for pattern in self.include_patterns
        ):
            return False
        if any(_match_pattern(path, pattern) for pattern in self.exclude_patterns):
            return False
        return True


def _normalize_all(patterns: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    normalized = (_normalize_pattern(pattern) for pattern in (patterns or []) if pattern)
    return tuple(pattern for pattern in normalized if pattern)


def build_path_filter(
    include_patterns: list[str] | tuple[str, ...] | None = None,
    exclude_patterns: list[str] | tuple[str, ...] | None = None,
) -> PathFilter:
    return PathFilter(
        include_patterns=_normalize_all(include_patterns),
        exclude_patterns=_normalize_all(exclude_patterns),
    )
