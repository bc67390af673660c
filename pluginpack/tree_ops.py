"""Recursive directory utilities used to prepare the build tree."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Collection, List

from .config import BuildConfig
from .logging import get_logger

logger = get_logger("tree_ops")


def purge_junk(directory: Path, junk_names: Collection[str]) -> List[Path]:
    """Delete every file named in ``junk_names`` anywhere under ``directory``.

    A missing directory counts as already clean. Errors inside one subtree are
    logged and stop the walk for that subtree only.
    """
    removed: List[Path] = []
    _purge_junk(Path(directory), frozenset(junk_names), removed)
    return removed


def _purge_junk(directory: Path, junk_names: frozenset, removed: List[Path]) -> None:
    try:
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                _purge_junk(entry, junk_names, removed)
            elif entry.name in junk_names:
                entry.unlink()
                removed.append(entry)
                logger.info("Deleted junk file: %s", entry)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.error("Error removing junk from %s: %s", directory, exc)


def rewrite_json_versions(directory: Path, new_version: str) -> List[Path]:
    """Set every ``version`` key in every ``.json`` file under ``directory``."""
    rewritten: List[Path] = []
    _rewrite_json_versions(Path(directory), new_version, rewritten)
    return rewritten


def _rewrite_json_versions(directory: Path, new_version: str, rewritten: List[Path]) -> None:
    try:
        entries = sorted(directory.iterdir())
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.error("Error updating JSON versions in %s: %s", directory, exc)
        return

    for entry in entries:
        try:
            is_dir = entry.is_dir()
        except OSError as exc:
            logger.error("Error updating JSON versions in %s: %s", entry, exc)
            continue
        if is_dir:
            _rewrite_json_versions(entry, new_version, rewritten)
            continue
        if entry.suffix != ".json":
            continue
        try:
            payload = json.loads(entry.read_text(encoding="utf-8"))
            _set_versions(payload, new_version)
            entry.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except (OSError, ValueError, RecursionError) as exc:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors.
            logger.warning("Could not parse or update JSON file %s: %s", entry, exc)
            continue
        rewritten.append(entry)


def _set_versions(node: Any, new_version: str) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "version":
                node[key] = new_version
            else:
                _set_versions(value, new_version)
    elif isinstance(node, list):
        for item in node:
            _set_versions(item, new_version)


def merge_platform_folders(config: BuildConfig) -> List[str]:
    """Copy configured platform folders into the build or schema tree.

    Folders missing from the platform source are skipped. Each destination is
    cleared first unless the folder is additive. A failure is logged and the
    remaining folders are still merged.
    """
    logger.info("Merging platform folders...")
    merged: List[str] = []
    for folder in config.merge_folders:
        source = config.platform_source_dir / folder
        target_root = config.schema_dir if folder in config.schema_folders else config.build_dir
        destination = target_root / folder

        if not source.is_dir():
            logger.debug("Skipping missing platform folder: %s", source)
            continue

        try:
            if folder not in config.additive_folders and destination.exists():
                shutil.rmtree(destination)
            shutil.copytree(source, destination, dirs_exist_ok=True)
        except OSError as exc:
            logger.error("Error merging folder %s: %s", folder, exc)
            continue
        merged.append(folder)
        logger.info("  - Merged %s -> %s", source, destination)
    return merged


def discard_file(path: Path) -> bool:
    """Delete a single file; return ``True`` only when something was removed."""
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        logger.error("Error deleting %s: %s", path, exc)
        return False
    logger.info("Deleted template file: %s", path)
    return True


def copy_tree(source: Path, target: Path) -> bool:
    """Copy ``source`` into ``target``, merging with existing content."""
    if not Path(source).is_dir():
        return False
    shutil.copytree(source, target, dirs_exist_ok=True)
    return True


__all__ = [
    "copy_tree",
    "discard_file",
    "merge_platform_folders",
    "purge_junk",
    "rewrite_json_versions",
]
