"""Archive creation and retention for built plugins."""

from .builder import ArchiveError, archive_names, create_zip
from .retention import ArchiveRecord, list_archives, prune_archives

__all__ = [
    "ArchiveError",
    "ArchiveRecord",
    "archive_names",
    "create_zip",
    "list_archives",
    "prune_archives",
]
