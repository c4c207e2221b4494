from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from patchgen.errors import FilesystemError
from patchgen.models import MaterializeResult, PathFailure

if TYPE_CHECKING:
    from rich.console import Console


logger = logging.getLogger(__name__)


def _check_destination(source_root: Path, destination_root: Path) -> None:
    if source_root == destination_root or source_root.is_relative_to(destination_root):
        raise FilesystemError(
            f"Refusing to reset {destination_root}: it contains the source directory {source_root}",
            path=str(destination_root),
        )


def reset_destination(destination_root: Path) -> None:
    """Delete ``destination_root`` and everything below it, then recreate it empty."""
    try:
        if destination_root.is_symlink() or destination_root.is_file():
            destination_root.unlink()
        elif destination_root.exists():
            shutil.rmtree(destination_root)
        destination_root.mkdir(parents=True)
    except OSError as exc:
        raise FilesystemError(
            f"Cannot reset output directory {destination_root}: {exc.strerror or exc}",
            path=str(destination_root),
        ) from exc


def _copy_one(source_root: Path, destination_root: Path, relative_path: str) -> None:
    target = destination_root / relative_path
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source_root / relative_path, target)


def materialize_patch(
    diff: Iterable[str],
    source_root: Path,
    destination_root: Path,
    *,
    on_copied: Callable[[str], None] | None = None,
) -> MaterializeResult:
    """Regenerate ``destination_root`` so it holds exactly the files in ``diff``.

    The destination is wiped first: files left there by an earlier run are
    gone afterwards, whether or not they are part of this diff. A file that
    cannot be copied is reported in ``MaterializeResult.failures`` and the
    remaining files are still processed.
    """
    source_root = source_root.resolve()
    destination_root = destination_root.resolve()
    _check_destination(source_root, destination_root)
    reset_destination(destination_root)

    copied: list[str] = []
    failures: list[PathFailure] = []
    for relative_path in sorted(set(diff)):
        try:
            _copy_one(source_root, destination_root, relative_path)
        except OSError as exc:
            reason = exc.strerror or exc.__class__.__name__
            logger.warning("Cannot copy %s: %s", relative_path, reason)
            failures.append(PathFailure(path=relative_path, reason=reason))
        else:
            logger.debug("[copy] %s", relative_path)
            copied.append(relative_path)
        if on_copied is not None:
            on_copied(relative_path)

    return MaterializeResult(
        destination=str(destination_root),
        copied_paths=copied,
        failures=failures,
    )


def materialize_patch_with_progress(
    diff: Iterable[str],
    source_root: Path,
    destination_root: Path,
    *,
    console: "Console | None" = None,
) -> MaterializeResult:
    if console is None:
        return materialize_patch(diff, source_root, destination_root)

    from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

    paths = sorted(set(diff))
    with Progress(
        SpinnerColumn(),
        TextColumn("[bold]Copying"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("copy", total=len(paths))
        return materialize_patch(
            paths,
            source_root,
            destination_root,
            on_copied=lambda _path: progress.advance(task_id, 1),
        )
