from __future__ import annotations

import logging
from collections.abc import Mapping

from patchgen.models import DiffResult, FileRecord


logger = logging.getLogger(__name__)


def diff_records(
    snapshot: Mapping[str, FileRecord], current_records: list[FileRecord]
) -> DiffResult:
    """Classify live records as new or modified relative to ``snapshot``.

    Snapshot entries with no live counterpart are deleted files; they are not
    reported.
    """
    new_paths: list[str] = []
    modified_paths: list[str] = []

    for record in current_records:
        old = snapshot.get(record.path)
        if old is None:
            new_paths.append(record.path)
            logger.debug("[new] %s", record.path)
            continue
        if old.mtime != record.mtime:
            modified_paths.append(record.path)
            logger.debug("[mod] %s", record.path)

    return DiffResult(
        new_paths=sorted(new_paths),
        modified_paths=sorted(modified_paths),
        scanned_count=len(current_records),
    )
