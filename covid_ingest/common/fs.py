"""Filesystem helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from covid_ingest.common.errors import FilesystemError


@dataclass(frozen=True)
class DirEntry:
    path: Path
    name: str
    is_dir: bool
    mtime: float


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def list_entries(directory: Path) -> list[DirEntry]:
    try:
        with os.scandir(directory) as it:
            return [
                DirEntry(
                    path=Path(entry.path),
                    name=entry.name,
                    is_dir=entry.is_dir(),
                    mtime=entry.stat().st_mtime,
                )
                for entry in it
            ]
    except OSError as exc:
        raise FilesystemError(f"Cannot list data directory {directory}: {exc}") from exc


def write_text_atomic(path: Path, text: str) -> None:
    ensure_dir(path.parent)
    tmp_path = path.with_name(f"{path.name}.tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)
