"""Plugin manifest (``plugin.xml``) parsing and variant generation."""

from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import BuildConfig
from .logging import get_logger

logger = get_logger("manifest")

SCHEMA_NAME_LIMIT = 35
SCHEMA_NAME_SUFFIX = " DATA"
ACCESS_REQUEST_TAG = "access_request"


class ManifestError(RuntimeError):
    """Raised when the manifest cannot be loaded or the primary copy cannot be written."""


class Manifest:
    """Immutable view over a parsed manifest document.

    Every derivation works on a deep copy, so a value handed to one step can
    never observe edits made for another.
    """

    __slots__ = ("_root",)

    def __init__(self, root: ET.Element) -> None:
        if root.get("name") is None:
            raise ManifestError(f"Manifest root <{root.tag}> has no name attribute")
        self._root = copy.deepcopy(root)

    @property
    def tag(self) -> str:
        return self._root.tag

    @property
    def name(self) -> str:
        return self._root.get("name", "")

    @property
    def version(self) -> str:
        return self._root.get("version", "")

    @property
    def has_access_request(self) -> bool:
        return self._root.find(ACCESS_REQUEST_TAG) is not None

    def with_version(self, version: str) -> "Manifest":
        return self._derive(version=version)

    def with_name(self, name: str) -> "Manifest":
        return self._derive(name=name)

    def schema_variant(self) -> "Manifest":
        """Return the data-only variant: shortened name, ``DATA`` suffix, no access request."""
        name = self.name
        if len(name) > SCHEMA_NAME_LIMIT:
            name = name[:SCHEMA_NAME_LIMIT]
            logger.warning("Plugin name truncated for schema manifest: %s", name)
        root = copy.deepcopy(self._root)
        root.set("name", name + SCHEMA_NAME_SUFFIX)
        for child in root.findall(ACCESS_REQUEST_TAG):
            root.remove(child)
        return Manifest(root)

    def to_bytes(self) -> bytes:
        root = copy.deepcopy(self._root)
        ET.indent(root, space="  ")
        return ET.tostring(root, encoding="UTF-8", xml_declaration=True) + b"\n"

    def _derive(self, **attributes: str) -> "Manifest":
        root = copy.deepcopy(self._root)
        for key, value in attributes.items():
            root.set(key, value)
        return Manifest(root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return ET.tostring(self._root) == ET.tostring(other._root)

    def __hash__(self) -> int:
        return hash(ET.tostring(self._root))

    def __repr__(self) -> str:
        return f"Manifest(name={self.name!r}, version={self.version!r})"


@dataclass(frozen=True)
class ManifestVariants:
    """Manifests written during a run; ``schema`` is ``None`` when it failed."""

    primary: Manifest
    schema: Optional[Manifest]


def parse_manifest(text: str) -> Manifest:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise ManifestError(f"Manifest is not well-formed XML: {exc}") from exc
    return Manifest(root)


def load_manifest(path: Path) -> Manifest:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Could not read manifest {path}: {exc}") from exc
    return parse_manifest(text)


def write_manifest_variants(manifest: Manifest, config: BuildConfig) -> ManifestVariants:
    """Write the primary manifest to the project and build roots, then the schema variant."""
    payload = manifest.to_bytes()
    for target in (config.manifest_path, config.build_dir / config.manifest_filename):
        try:
            target.write_bytes(payload)
        except OSError as exc:
            raise ManifestError(f"Could not write manifest {target}: {exc}") from exc
    logger.info("Updated %s to version %s", config.manifest_filename, manifest.version)

    schema: Optional[Manifest] = None
    try:
        variant = manifest.schema_variant()
        (config.schema_dir / config.manifest_filename).write_bytes(variant.to_bytes())
    except (OSError, ManifestError) as exc:
        logger.error("Could not create schema manifest variant: %s", exc)
    else:
        schema = variant
        logger.info("Created schema-only %s", config.manifest_filename)
    return ManifestVariants(primary=manifest, schema=schema)


__all__ = [
    "ACCESS_REQUEST_TAG",
    "Manifest",
    "ManifestError",
    "ManifestVariants",
    "SCHEMA_NAME_LIMIT",
    "load_manifest",
    "parse_manifest",
    "write_manifest_variants",
]
