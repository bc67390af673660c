"""Zip archive creation for build and schema trees."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Tuple

from ..logging import get_logger
from ..versioning import slugify

logger = get_logger("archives.builder")

COMPRESSION_LEVEL = 9
SCHEMA_ARCHIVE_PREFIX = "DATA-"


class ArchiveError(RuntimeError):
    """Raised when an archive stream fails; the partial archive has been removed."""

    def __init__(self, source: Path, destination: Path, message: str) -> None:
        super().__init__(f"Failed to create zip for {source}: {message}")
        self.source = source
        self.destination = destination


def archive_names(plugin_name: str, version: str) -> Tuple[str, str]:
    """Return ``(primary, schema)`` archive file names for a plugin version."""
    primary = f"{slugify(plugin_name)}-{version}.zip"
    return primary, f"{SCHEMA_ARCHIVE_PREFIX}{primary}"


def create_zip(source_dir: Path, dest_zip: Path) -> int:
    """Zip every file under ``source_dir`` into ``dest_zip`` and return its size.

    Member names are relative to ``source_dir``. A missing source directory is
    skipped and reports zero bytes. The archive is fully closed before this
    function returns.
    """
    source_dir = Path(source_dir)
    dest_zip = Path(dest_zip)
    if not source_dir.is_dir():
        logger.info("Skipping archive creation for non-existent folder: %s", source_dir)
        return 0

    try:
        dest_zip.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(
            dest_zip,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=COMPRESSION_LEVEL,
            strict_timestamps=False,
        ) as archive:
            for path in sorted(source_dir.rglob("*")):
                if path.is_dir() or path == dest_zip:
                    continue
                archive.write(path, path.relative_to(source_dir).as_posix())
        size = dest_zip.stat().st_size
    except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        dest_zip.unlink(missing_ok=True)
        raise ArchiveError(source_dir, dest_zip, str(exc)) from exc

    logger.info("Archive created: %s (%d bytes)", dest_zip, size)
    return size


__all__ = ["ArchiveError", "archive_names", "create_zip"]
