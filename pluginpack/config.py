"""Build configuration for pluginpack (.pluginpack.yml)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".pluginpack.yml"

DEFAULT_MERGE_FOLDERS: Tuple[str, ...] = (
    "permissions_root",
    "user_schema_root",
    "queries_root",
    "WEB_ROOT",
    "pagecataloging",
    "MessageKeys",
)
DEFAULT_SCHEMA_FOLDERS: FrozenSet[str] = frozenset({"user_schema_root", "MessageKeys"})
DEFAULT_ADDITIVE_FOLDERS: FrozenSet[str] = frozenset({"WEB_ROOT"})
DEFAULT_JUNK_NAMES: FrozenSet[str] = frozenset(
    {".DS_Store", "Thumbs.db", "robots.txt", "sitemap.xml", "ssr-manifest.json"}
)
DEFAULT_TEMPLATE_FILES: Tuple[str, ...] = ("WEB_ROOT/index.html",)
DEFAULT_ARCHIVES_TO_KEEP = 10

_DEFAULT_DIRECTORIES = {
    "source": "src",
    "build": "dist",
    "archive": "plugin_archive",
    "schema": "schema",
    "platform_source": "src/powerschool",
    "framework_build": "public/build",
}


class ConfigError(RuntimeError):
    """Raised when the build configuration is invalid or cannot be parsed."""


class ProjectType(str, Enum):
    """Front-end framework the plugin was built with."""

    VUE = "vue"
    SVELTE = "svelte"

    @classmethod
    def parse(cls, value: str) -> "ProjectType":
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            choices = ", ".join(member.value for member in cls)
            raise ConfigError(f"Unknown project type {value!r} (expected one of: {choices})") from exc


@dataclass(frozen=True)
class BuildConfig:
    """Run-wide settings, constructed once and passed to every component."""

    project_root: Path
    source_dir: Path
    build_dir: Path
    archive_dir: Path
    schema_dir: Path
    platform_source_dir: Path
    framework_build_dir: Path
    merge_folders: Tuple[str, ...] = DEFAULT_MERGE_FOLDERS
    schema_folders: FrozenSet[str] = DEFAULT_SCHEMA_FOLDERS
    additive_folders: FrozenSet[str] = DEFAULT_ADDITIVE_FOLDERS
    junk_names: FrozenSet[str] = DEFAULT_JUNK_NAMES
    template_files: Tuple[str, ...] = DEFAULT_TEMPLATE_FILES
    page_catalog_folder: str = "pagecataloging"
    archives_to_keep: int = DEFAULT_ARCHIVES_TO_KEEP
    project_type: ProjectType = ProjectType.VUE
    descriptor_filename: str = "package.json"
    manifest_filename: str = "plugin.xml"

    def __post_init__(self) -> None:
        for name in (
            "project_root",
            "source_dir",
            "build_dir",
            "archive_dir",
            "schema_dir",
            "platform_source_dir",
            "framework_build_dir",
        ):
            value = getattr(self, name)
            if not isinstance(value, Path) or not value.is_absolute():
                raise ConfigError(f"{name} must be an absolute path, got {value!r}")
        if isinstance(self.archives_to_keep, bool) or not isinstance(self.archives_to_keep, int):
            raise ConfigError("archives_to_keep must be an integer")
        if self.archives_to_keep < 1:
            raise ConfigError(f"archives_to_keep must be positive, got {self.archives_to_keep}")
        if not isinstance(self.project_type, ProjectType):
            raise ConfigError(f"project_type must be a ProjectType, got {self.project_type!r}")

    @classmethod
    def for_project(cls, root: Path, **overrides: Any) -> "BuildConfig":
        """Return the conventional layout rooted at ``root`` with optional overrides."""
        project_root = Path(root).expanduser().resolve()
        dirs = {key: project_root / value for key, value in _DEFAULT_DIRECTORIES.items()}
        values: Dict[str, Any] = {
            "project_root": project_root,
            "source_dir": dirs["source"],
            "build_dir": dirs["build"],
            "archive_dir": dirs["archive"],
            "schema_dir": dirs["schema"],
            "platform_source_dir": dirs["platform_source"],
            "framework_build_dir": dirs["framework_build"],
        }
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes: Any) -> "BuildConfig":
        return replace(self, **changes)

    @property
    def descriptor_path(self) -> Path:
        return self.project_root / self.descriptor_filename

    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.manifest_filename

    @property
    def page_catalog_dir(self) -> Path:
        return self.platform_source_dir / self.page_catalog_folder


def load_config(
    path: Path,
    *,
    project_type: Optional[str] = None,
    archives_to_keep: Optional[int] = None,
) -> BuildConfig:
    """Load configuration for the project at ``path``.

    ``path`` may be the project directory or the ``.pluginpack.yml`` file
    itself. Keyword arguments come from the command line and win over values
    read from disk.
    """
    config_file = _resolve_config_path(Path(path))
    root = config_file.parent

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    overrides: Dict[str, Any] = {}

    directories = _as_dict(data.get("directories"))
    for key, attr in (
        ("source", "source_dir"),
        ("build", "build_dir"),
        ("archive", "archive_dir"),
        ("schema", "schema_dir"),
        ("platform_source", "platform_source_dir"),
        ("framework_build", "framework_build_dir"),
    ):
        value = _as_str(directories.get(key))
        if value:
            overrides[attr] = _resolve_dir(root, value)

    merge_folders = _as_str_list(data.get("merge_folders"))
    if merge_folders:
        overrides["merge_folders"] = tuple(dict.fromkeys(merge_folders))
    if "schema_folders" in data:
        overrides["schema_folders"] = frozenset(_as_str_list(data.get("schema_folders")))
    if "additive_folders" in data:
        overrides["additive_folders"] = frozenset(_as_str_list(data.get("additive_folders")))
    if "junk_files" in data:
        overrides["junk_names"] = frozenset(_as_str_list(data.get("junk_files")))
    if "template_files" in data:
        overrides["template_files"] = tuple(_as_str_list(data.get("template_files")))

    page_catalog = _as_str(data.get("page_catalog_folder"))
    if page_catalog:
        overrides["page_catalog_folder"] = page_catalog

    keep = archives_to_keep if archives_to_keep is not None else data.get("archives_to_keep")
    if keep is not None:
        parsed_keep = _as_int(keep)
        if parsed_keep is None:
            raise ConfigError(f"archives_to_keep must be an integer, got {keep!r}")
        overrides["archives_to_keep"] = parsed_keep

    type_value = project_type if project_type is not None else _as_str(data.get("project_type"))
    if type_value:
        overrides["project_type"] = ProjectType.parse(type_value)

    return BuildConfig.for_project(root, **overrides)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_dir(root: Path, value: str) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BuildConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "ProjectType",
    "load_config",
]
