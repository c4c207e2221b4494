from __future__ import annotations


class PatchError(RuntimeError):
    """Base class for failures that end a patchgen invocation."""

    kind = "error"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ArgumentError(PatchError):
    kind = "invalid arguments"


class SnapshotReadError(PatchError):
    kind = "snapshot read failed"


class StorageWriteError(PatchError):
    kind = "snapshot write failed"


class FilesystemError(PatchError):
    kind = "filesystem error"
