"""Package descriptor (``package.json``) reading and version updates."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


class DescriptorError(RuntimeError):
    """Raised when the package descriptor cannot be read or written."""


@dataclass(frozen=True)
class PackageDescriptor:
    """Parsed JSON metadata for the plugin package."""

    path: Path
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        value = self.data.get("name")
        return value if isinstance(value, str) else ""

    @property
    def version(self) -> str:
        value = self.data.get("version")
        return value if isinstance(value, str) else ""


def load_descriptor(path: Path) -> PackageDescriptor:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise DescriptorError(f"Could not read package descriptor {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DescriptorError(f"Package descriptor {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DescriptorError(f"Package descriptor {path} must contain a JSON object")
    return PackageDescriptor(path=Path(path), data=data)


def write_descriptor_version(descriptor: PackageDescriptor, version: str) -> PackageDescriptor:
    """Persist ``version`` into the descriptor file and return the updated value."""
    data = dict(descriptor.data)
    data["version"] = version
    try:
        descriptor.path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
    except OSError as exc:
        raise DescriptorError(f"Could not write package descriptor {descriptor.path}: {exc}") from exc
    return PackageDescriptor(path=descriptor.path, data=data)


__all__ = [
    "DescriptorError",
    "PackageDescriptor",
    "load_descriptor",
    "write_descriptor_version",
]
