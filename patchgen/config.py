from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from patchgen.errors import ArgumentError
from patchgen.models import TimestampResolution


DEFAULTS_FILENAME = ".patchgen.json"
DEFAULT_STORAGE = "storage.xml"
DEFAULT_OUT_DIR = "target"
RESOLUTIONS = ("ns", "s")

Mode = Literal["update", "compare"]


@dataclass(frozen=True, slots=True)
class ConfigDefaults:
    storage: str = DEFAULT_STORAGE
    out_dir: str = DEFAULT_OUT_DIR
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    resolution: TimestampResolution = "ns"


@dataclass(frozen=True, slots=True)
class PatchConfig:
    mode: Mode
    input_dir: Path
    storage_path: Path
    output_dir: Path
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    resolution: TimestampResolution = "ns"

    @property
    def excluded_paths(self) -> tuple[Path, ...]:
        return (self.storage_path, self.output_dir)


def defaults_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / DEFAULTS_FILENAME


def load_defaults(base_dir: Path | None = None) -> ConfigDefaults:
    path = defaults_path(base_dir)
    if not path.exists():
        return ConfigDefaults()

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise ArgumentError(f"Cannot read defaults file: {exc}", path=str(path)) from exc

    if not isinstance(data, dict):
        raise ArgumentError("Defaults file must contain a JSON object", path=str(path))

    fallback = ConfigDefaults()
    resolution = data.get("resolution", fallback.resolution)
    if resolution not in RESOLUTIONS:
        raise ArgumentError(
            f"Invalid resolution {resolution!r} in defaults file; use 'ns' or 's'",
            path=str(path),
        )
    return ConfigDefaults(
        storage=str(data.get("storage", fallback.storage)),
        out_dir=str(data.get("out_dir", fallback.out_dir)),
        include=_as_patterns(data.get("include"), path),
        exclude=_as_patterns(data.get("exclude"), path),
        resolution=resolution,
    )


def _as_patterns(value, path: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ArgumentError("include/exclude must be a string or a list of strings", path=str(path))


def build_config(
    mode: Mode,
    input_dir: str | Path | None,
    *,
    storage: str | Path = DEFAULT_STORAGE,
    out_dir: str | Path = DEFAULT_OUT_DIR,
    include: tuple[str, ...] | list[str] = (),
    exclude: tuple[str, ...] | list[str] = (),
    resolution: str = "ns",
) -> PatchConfig:
    if input_dir is None or not str(input_dir).strip():
        raise ArgumentError("Input directory is not defined")

    root = Path(input_dir).expanduser().resolve()
    if not root.exists():
        raise ArgumentError(f"Input directory does not exist: {root}", path=str(root))
    if not root.is_dir():
        raise ArgumentError(f"Input path is not a directory: {root}", path=str(root))

    resolution_normalized = resolution.lower().strip()
    if resolution_normalized not in RESOLUTIONS:
        raise ArgumentError(f"Invalid resolution {resolution!r}. Use 'ns' or 's'.")

    storage_path = Path(storage).expanduser().resolve()
    output_dir = Path(out_dir).expanduser().resolve()
    if mode == "compare" and storage_path.is_relative_to(output_dir):
        raise ArgumentError(
            f"Snapshot file {storage_path} is inside the output directory {output_dir}, "
            "which is wiped on every compare",
            path=str(storage_path),
        )

    return PatchConfig(
        mode=mode,
        input_dir=root,
        storage_path=storage_path,
        output_dir=output_dir,
        include_patterns=tuple(include),
        exclude_patterns=tuple(exclude),
        resolution=resolution_normalized,  # type: ignore[arg-type]
    )
