"""Retention policy for the archive directory."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..logging import get_logger

logger = get_logger("archives.retention")


@dataclass(frozen=True)
class ArchiveRecord:
    """An entry directly under the archive directory."""

    name: str
    path: Path
    modified_at: int


def list_archives(directory: Path) -> List[ArchiveRecord]:
    """Return entries newest first; equal timestamps are ordered by name.

    Symlinks are dated by the link itself, so dangling links are listed too.
    """
    try:
        entries = list(Path(directory).iterdir())
    except FileNotFoundError:
        return []

    records: List[ArchiveRecord] = []
    for entry in entries:
        try:
            modified_at = entry.lstat().st_mtime_ns
        except FileNotFoundError:
            continue
        records.append(ArchiveRecord(name=entry.name, path=entry, modified_at=modified_at))
    records.sort(key=lambda record: (-record.modified_at, record.name))
    return records


def prune_archives(directory: Path, keep: int) -> List[Path]:
    """Delete everything except the ``keep`` most recently modified entries."""
    if keep < 0:
        raise ValueError(f"keep must not be negative, got {keep}")
    stale = list_archives(directory)[keep:]
    if not stale:
        return []

    logger.info("Pruning old archives (keeping last %d)...", keep)
    deleted: List[Path] = []
    for record in stale:
        try:
            if record.path.is_dir() and not record.path.is_symlink():
                shutil.rmtree(record.path)
            else:
                record.path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.error("Error deleting old archive %s: %s", record.path, exc)
            continue
        deleted.append(record.path)
        logger.info("  - Deleted old archive item: %s", record.name)
    return deleted


__all__ = ["ArchiveRecord", "list_archives", "prune_archives"]
