from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from patchgen.config import PatchConfig
from patchgen.diff_service import diff_records
from patchgen.filters import build_path_filter
from patchgen.materializer import materialize_patch_with_progress
from patchgen.models import DiffResult, FileRecord, MaterializeResult, PathFailure
from patchgen.scanner import walk_directory_with_progress
from patchgen.snapshot_store import read_snapshot, write_snapshot

if TYPE_CHECKING:
    from rich.console import Console


@dataclass(slots=True)
class UpdateResult:
    storage_path: str
    records: list[FileRecord]
    failures: list[PathFailure] = field(default_factory=list)


@dataclass(slots=True)
class CompareResult:
    diff: DiffResult
    snapshot_count: int
    walk_failures: list[PathFailure] = field(default_factory=list)
    materialized: MaterializeResult | None = None

    @property
    def failures(self) -> list[PathFailure]:
        copy_failures = self.materialized.failures if self.materialized is not None else []
        return [*self.walk_failures, *copy_failures]


def _walk(config: PatchConfig, console: "Console | None"):
    return walk_directory_with_progress(
        config.input_dir,
        path_filter=build_path_filter(config.include_patterns, config.exclude_patterns),
        excluded_paths=config.excluded_paths,
        resolution=config.resolution,
        console=console,
    )


def run_update(config: PatchConfig, *, console: "Console | None" = None) -> UpdateResult:
    walk = _walk(config, console)
    write_snapshot(config.storage_path, walk.records)
    return UpdateResult(
        storage_path=str(config.storage_path),
        records=walk.records,
        failures=walk.failures,
    )


def run_compare(
    config: PatchConfig,
    *,
    console: "Console | None" = None,
    dry_run: bool = False,
) -> CompareResult:
    # Snapshot is read before the walk.
    snapshot = read_snapshot(config.storage_path)
    walk = _walk(config, console)
    diff = diff_records(snapshot, walk.records)

    materialized = None
    if not dry_run:
        materialized = materialize_patch_with_progress(
            diff.paths,
            config.input_dir,
            config.output_dir,
            console=console,
        )
    return CompareResult(
        diff=diff,
        snapshot_count=len(snapshot),
        walk_failures=walk.failures,
        materialized=materialized,
    )
