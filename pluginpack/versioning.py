"""Calendar versioning (``YY.MM.PP``) and archive-name helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .logging import get_logger

logger = get_logger("versioning")

_SLUG_PATTERN = re.compile(r"\s*-\s*|\s+")


@dataclass(frozen=True, order=True)
class VersionTag:
    """A calendar version: two-digit year, month, and an unbounded patch counter."""

    year: int
    month: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "VersionTag":
        """Parse ``YY.MM.PP``; raise ``ValueError`` when the text is not a valid tag."""
        parts = str(text).strip().split(".")
        if len(parts) != 3:
            raise ValueError(f"expected three dot-separated segments, got {len(parts)}")
        numbers = []
        for part in parts:
            if not part.isdigit():
                raise ValueError(f"segment {part!r} is not a non-negative integer")
            numbers.append(int(part))
        year, month, patch = numbers
        if year > 99:
            raise ValueError(f"year {year} does not fit in two digits")
        if not 1 <= month <= 12:
            raise ValueError(f"month {month} is outside 1-12")
        return cls(year=year, month=month, patch=patch)

    @classmethod
    def first_of(cls, today: date) -> "VersionTag":
        return cls(year=today.year % 100, month=today.month, patch=1)

    def __str__(self) -> str:
        return f"{self.year:02d}.{self.month:02d}.{self.patch:02d}"


def next_version(current: str, today: date) -> str:
    """Return the version following ``current`` for a build made on ``today``.

    A new year resets month and patch, a new month resets the patch, and a
    second build within the same month increments the patch.
    """
    try:
        tag = VersionTag.parse(current)
    except ValueError as exc:
        fallback = VersionTag.first_of(today)
        logger.warning(
            "Could not parse current version %r (%s). Falling back to %s based on today's date.",
            current,
            exc,
            fallback,
        )
        return str(fallback)

    this_year = today.year % 100
    if tag.year != this_year:
        return str(VersionTag.first_of(today))
    if tag.month != today.month:
        return str(VersionTag(year=tag.year, month=today.month, patch=1))
    return str(VersionTag(year=tag.year, month=tag.month, patch=tag.patch + 1))


def slugify(text: str) -> str:
    """Collapse whitespace runs and spaced hyphens into single underscores."""
    return _SLUG_PATTERN.sub("_", text)


__all__ = ["VersionTag", "next_version", "slugify"]
