from __future__ import annotations

import logging
import os
import stat as stat_module
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from patchgen.errors import FilesystemError
from patchgen.filters import PathFilter
from patchgen.models import FileRecord, PathFailure, TimestampResolution, WalkResult
from patchgen.snapshot_store import unstorable_name_reason

if TYPE_CHECKING:
    from rich.console import Console


logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000


def mtime_from_stat(st: os.stat_result, resolution: TimestampResolution = "ns") -> int:
    if resolution == "s":
        return st.st_mtime_ns // NS_PER_SECOND
    return st.st_mtime_ns


def _check_root(root: Path) -> None:
    if not root.exists():
        raise FilesystemError(f"Directory does not exist: {root}", path=str(root))
    if not root.is_dir():
        raise FilesystemError(f"Not a directory: {root}", path=str(root))
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        raise FilesystemError(
            f"Directory is not readable: {root} ({exc.strerror or exc})", path=str(root)
        ) from exc


def _reason(exc: OSError) -> str:
    return exc.strerror or exc.__class__.__name__


def walk_directory(
    root: Path,
    *,
    path_filter: PathFilter | None = None,
    excluded_paths: Iterable[Path] = (),
    resolution: TimestampResolution = "ns",
    on_directory: Callable[[str], None] | None = None,
) -> WalkResult:
    """Collect a record for every regular file below ``root``.

    Paths are relative to ``root`` and use the host separator. Directories that
    cannot be listed and files that cannot be stat'ed are reported in
    ``WalkResult.failures`` and skipped; only an inaccessible root is fatal.
    Names that cannot be stored in a snapshot (undecodable bytes, control
    characters) are reported the same way. Entries in ``excluded_paths``
    (files or whole directories) are left out.
    """
    root = root.resolve()
    _check_root(root)
    path_filter = path_filter or PathFilter()
    excluded = {os.path.normpath(str(Path(path).resolve())) for path in excluded_paths}

    records: list[FileRecord] = []
    failures: list[PathFailure] = []

    def _on_error(exc: OSError) -> None:
        failed = exc.filename or str(root)
        relative_path = os.path.relpath(failed, root)
        logger.warning("Skipping unreadable directory %s: %s", relative_path, _reason(exc))
        failures.append(PathFailure(path=relative_path, reason=_reason(exc)))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        if on_directory is not None:
            on_directory(os.path.relpath(dirpath, root))
        dirnames[:] = sorted(
            name for name in dirnames if os.path.join(dirpath, name) not in excluded
        )

        for name in sorted(filenames):
            file_path = os.path.join(dirpath, name)
            if file_path in excluded:
                continue
            relative_path = os.path.relpath(file_path, root)
            if not path_filter.is_empty and not path_filter.matches(relative_path):
                continue
            reason = unstorable_name_reason(relative_path)
            if reason is not None:
                logger.warning("Skipping %r: %s", relative_path, reason)
                failures.append(PathFailure(path=relative_path, reason=reason))
                continue

            try:
                st = os.stat(file_path)
            except OSError as exc:
                logger.warning("Skipping %s: %s", relative_path, _reason(exc))
                failures.append(PathFailure(path=relative_path, reason=_reason(exc)))
                continue
            if not stat_module.S_ISREG(st.st_mode):
                continue

            records.append(FileRecord(path=relative_path, mtime=mtime_from_stat(st, resolution)))

    logger.debug("Walked %s: %d file(s), %d skipped", root, len(records), len(failures))
    return WalkResult(records=records, failures=failures)


def walk_directory_with_progress(
    root: Path,
    *,
    path_filter: PathFilter | None = None,
    excluded_paths: Iterable[Path] = (),
    resolution: TimestampResolution = "ns",
    console: "Console | None" = None,
) -> WalkResult:
    if console is None:
        return walk_directory(
            root,
            path_filter=path_filter,
            excluded_paths=excluded_paths,
            resolution=resolution,
        )

    def _shorten_path(path: str, max_len: int = 64) -> str:
        if len(path) <= max_len:
            return path
        keep = max_len - 3
        head = keep // 2
        tail = keep - head
        return f"{path[:head]}...{path[-tail:]}"

    from rich.markup import escape

    seen_dirs = 0
    with console.status("Scanning...") as status:

        def _advance(relative_dir: str) -> None:
            nonlocal seen_dirs
            seen_dirs += 1
            status.update(f"Scanning [bold]{seen_dirs}[/bold] dir(s) {escape(_shorten_path(relative_dir))}")

        return walk_directory(
            root,
            path_filter=path_filter,
            excluded_paths=excluded_paths,
            resolution=resolution,
            on_directory=_advance,
        )
