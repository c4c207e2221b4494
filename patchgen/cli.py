from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.text import Text

from patchgen.config import PatchConfig, build_config, load_defaults
from patchgen.errors import PatchError
from patchgen.models import PathFailure
from patchgen.pipeline import run_compare, run_update


app = typer.Typer(
    help="Build patch directories holding only the files changed since a snapshot.",
    no_args_is_help=True,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=False)],
        force=True,
    )


def _render_path_summary(title: str, paths: list[str], style: str) -> None:
    if not paths:
        return
    console.print(Text(f"{title} ({len(paths)}):", style=style))
    for path in paths:
        console.print(Text(f"  {path}"))


def _display_path(path: str) -> str:
    return path.encode("utf-8", "backslashreplace").decode("utf-8")


def _render_failures(failures: list[PathFailure]) -> None:
    if not failures:
        return
    console.print(Text(f"Skipped ({len(failures)}):", style="yellow"))
    for failure in failures:
        console.print(Text(f"  {_display_path(failure.path)}: {failure.reason}"))


def _render_error(exc: PatchError) -> None:
    console.print(f"[red]error: {exc.kind}:[/red] {escape(str(exc))}")


def _build(
    mode: str,
    input_dir: Path,
    storage: str | None,
    out_dir: str | None,
    include: list[str] | None,
    exclude: list[str] | None,
    resolution: str | None,
) -> PatchConfig:
    defaults = load_defaults()
    return build_config(
        mode,  # type: ignore[arg-type]
        input_dir,
        storage=storage or defaults.storage,
        out_dir=out_dir or defaults.out_dir,
        include=tuple(include) if include else defaults.include,
        exclude=tuple(exclude) if exclude else defaults.exclude,
        resolution=resolution or defaults.resolution,
    )


def _update(config: PatchConfig) -> int:
    console.print(f"Scanning [bold]{escape(str(config.input_dir))}[/bold] ...")
    result = run_update(config, console=console)
    _render_failures(result.failures)
    console.print(
        f"[green]Snapshot written:[/green] {len(result.records)} file(s) in {escape(result.storage_path)}"
    )
    return 0


def _compare(config: PatchConfig, dry_run: bool) -> int:
    console.print(f"Scanning [bold]{escape(str(config.input_dir))}[/bold] ...")
    result = run_compare(config, console=console, dry_run=dry_run)

    _render_path_summary("New", result.diff.new_paths, "green")
    _render_path_summary("Modified", result.diff.modified_paths, "cyan")
    _render_failures(result.failures)

    if not result.diff.has_changes:
        console.print("[green]No changes detected.[/green]")

    if result.materialized is None:
        console.print(
            f"Dry run: {len(result.diff.paths)} file(s) would be copied to {escape(str(config.output_dir))}"
        )
    else:
        console.print(
            f"[green]Patch written:[/green] {len(result.materialized.copied_paths)} file(s) "
            f"in {escape(result.materialized.destination)}"
        )
    console.print(
        f"Current scan: {result.diff.scanned_count} file(s) | Snapshot: {result.snapshot_count} file(s)"
    )
    return 0


STORAGE_OPTION = typer.Option(
    None,
    "--storage",
    "-s",
    metavar="FILE",
    help="XML snapshot file to write or read. Defaults to storage.xml.",
)
INCLUDE_OPTION = typer.Option(
    None,
    "--include",
    help="Include glob pattern(s) for paths to consider (repeatable).",
)
EXCLUDE_OPTION = typer.Option(
    None,
    "--exclude",
    help="Exclude glob pattern(s) for paths to ignore (repeatable).",
)
RESOLUTION_OPTION = typer.Option(
    None,
    "--resolution",
    help="Timestamp resolution: 'ns' (default) or 's' for snapshots storing whole seconds.",
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Log every file decision.")


@app.command()
def update(
    input_dir: Path = typer.Argument(..., help="Directory to capture."),
    storage: str | None = STORAGE_OPTION,
    include: list[str] | None = INCLUDE_OPTION,
    exclude: list[str] | None = EXCLUDE_OPTION,
    resolution: str | None = RESOLUTION_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Record every file and its modification time into the snapshot file."""
    _configure_logging(verbose)
    try:
        config = _build("update", input_dir, storage, None, include, exclude, resolution)
        code = _update(config)
    except PatchError as exc:
        _render_error(exc)
        code = 1
    raise typer.Exit(code=code)


@app.command()
def compare(
    input_dir: Path = typer.Argument(..., help="Directory to compare against the snapshot."),
    storage: str | None = STORAGE_OPTION,
    out_dir: str | None = typer.Option(
        None,
        "--out-dir",
        "-t",
        metavar="DIR",
        help=(
            "Patch directory. It is DELETED and recreated on every run and must not "
            "contain the snapshot file. Defaults to target/."
        ),
    ),
    include: list[str] | None = INCLUDE_OPTION,
    exclude: list[str] | None = EXCLUDE_OPTION,
    resolution: str | None = RESOLUTION_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Report new and modified files without touching the patch directory.",
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Copy files that are new or modified since the snapshot into a fresh patch directory.

    The patch directory is wiped first, so it only ever holds the current
    diff. Files deleted since the snapshot are not reported.
    """
    _configure_logging(verbose)
    try:
        config = _build("compare", input_dir, storage, out_dir, include, exclude, resolution)
        code = _compare(config, dry_run)
    except PatchError as exc:
        _render_error(exc)
        code = 1
    raise typer.Exit(code=code)


def main() -> None:
    app()
