"""XML persistence for snapshots.

Document layout::

    <files>
      <file name="docs/readme.txt" last_modif="1700000000123456789" />
    </files>

Every ``file`` element carries exactly ``name`` (root-relative path) and
``last_modif`` (decimal integer timestamp).
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable

from patchgen.errors import SnapshotReadError, StorageWriteError
from patchgen.models import FileRecord, Snapshot


logger = logging.getLogger(__name__)

ROOT_TAG = "files"
ENTRY_TAG = "file"
NAME_ATTR = "name"
MTIME_ATTR = "last_modif"

_LEADING_SEPARATORS = "/\\"

# Characters outside the XML 1.0 Char production, including lone surrogates.
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def unstorable_name_reason(name: str) -> str | None:
    """Explain why ``name`` cannot be written to a snapshot, or return None."""
    match = _INVALID_XML_CHARS.search(name)
    if match is None:
        return None
    char = match.group()
    if "\ud800" <= char <= "\udfff":
        return "name is not valid in the filesystem encoding"
    return f"name contains control character U+{ord(char):04X}"


def _build_document(records: Iterable[FileRecord]) -> ET.ElementTree:
    root = ET.Element(ROOT_TAG)
    for record in sorted(records, key=lambda r: r.path):
        ET.SubElement(root, ENTRY_TAG, {NAME_ATTR: record.path, MTIME_ATTR: str(record.mtime)})
    ET.indent(root)
    return ET.ElementTree(root)


def write_snapshot(path: Path, records: Iterable[FileRecord]) -> int:
    """Atomically replace the snapshot at ``path``. Returns the entry count."""
    records = list(records)
    for record in records:
        reason = unstorable_name_reason(record.path)
        if reason is not None:
            raise StorageWriteError(
                f"Cannot write snapshot {path}: {record.path!r}: {reason}", path=str(path)
            )
    document = _build_document(records)
    temp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=".tmp-", suffix=".xml", dir=str(path.parent))
        with os.fdopen(fd, "wb") as handle:
            document.write(handle, encoding="utf-8", xml_declaration=True)
            handle.write(b"\n")
        os.replace(temp_name, path)
    except OSError as exc:
        raise StorageWriteError(
            f"Cannot write snapshot {path}: {exc.strerror or exc}", path=str(path)
        ) from exc
    finally:
        if temp_name is not None and os.path.exists(temp_name):
            os.unlink(temp_name)

    logger.debug("Wrote %d entries to %s", len(records), path)
    return len(records)


def _parse_entry(element: ET.Element, path: Path, index: int) -> FileRecord:
    name = element.get(NAME_ATTR)
    raw_mtime = element.get(MTIME_ATTR)
    if name is None or raw_mtime is None:
        raise SnapshotReadError(
            f"Entry #{index} in {path} lacks a '{NAME_ATTR}' or '{MTIME_ATTR}' attribute",
            path=str(path),
        )

    # Older snapshots kept the separator that followed the root prefix.
    relative_path = name.lstrip(_LEADING_SEPARATORS)
    if not relative_path:
        raise SnapshotReadError(f"Entry #{index} in {path} has an empty name", path=str(path))

    value = raw_mtime.strip()
    digits = value[1:] if value[:1] in "+-" else value
    if not (digits.isascii() and digits.isdigit()):
        raise SnapshotReadError(
            f"Entry {relative_path!r} in {path} has a non-integer timestamp {raw_mtime!r}",
            path=str(path),
        )
    return FileRecord(path=relative_path, mtime=int(value))


def read_snapshot(path: Path) -> Snapshot:
    """Load a snapshot, failing with ``SnapshotReadError`` on anything unexpected."""
    if not path.exists():
        raise SnapshotReadError(
            f"Snapshot file not found: {path}. Run `patchgen update` first.", path=str(path)
        )

    try:
        with path.open("rb") as handle:
            tree = ET.parse(handle)
    except ET.ParseError as exc:
        raise SnapshotReadError(f"Snapshot {path} is not well-formed XML: {exc}", path=str(path)) from exc
    except OSError as exc:
        raise SnapshotReadError(
            f"Cannot read snapshot {path}: {exc.strerror or exc}", path=str(path)
        ) from exc

    records: dict[str, FileRecord] = {}
    for index, element in enumerate(tree.getroot(), start=1):
        record = _parse_entry(element, path, index)
        if record.path in records:
            raise SnapshotReadError(
                f"Snapshot {path} lists {record.path!r} more than once", path=str(path)
            )
        records[record.path] = record

    logger.debug("Loaded %d entries from %s", len(records), path)
    return Snapshot(records.values())
