"""Merge per-overlay file lists into one table keyed by identifier."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from mcpkit.definitions.naming import to_identifier

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoadResult:
    """Deduplicated definition files for one kind."""

    files: list[Path] = field(default_factory=list)
    overridden_count: int = 0

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def identifiers(self) -> list[str]:
        return [to_identifier(path.name) for path in self.files]


def resolve_overrides(per_overlay_files: Iterable[Iterable[Path]]) -> LoadResult:
    """Resolve overrides across overlays.

    Lists must be ordered from lowest to highest precedence. A file whose
    identifier was already seen replaces the earlier one (last write wins),
    so a more specific overlay can override a definition it inherits
    without deleting anything.

    Args:
        per_overlay_files: One list of candidate files per overlay.

    Returns:
        LoadResult with one file per identifier and the override count.
    """
    entries: dict[str, Path] = {}
    overridden = 0

    for files in per_overlay_files:
        for path in files:
            identifier = to_identifier(path.name)
            previous = entries.get(identifier)
            if previous is not None:
                overridden += 1
                logger.debug(
                    f"Definition '{identifier}' at {previous} overridden by {path}"
                )
            entries[identifier] = path

    return LoadResult(files=list(entries.values()), overridden_count=overridden)
