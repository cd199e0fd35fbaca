"""Scan overlays for definition files.

Each overlay contributes files found directly inside its definition
sub-directories (``mcp/tools/*.py`` and so on). Scans are not recursive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

from mcpkit.definitions.base import CapabilityKind
from mcpkit.definitions.naming import DEFINITION_EXTENSIONS

logger = logging.getLogger(__name__)

# File recognized as the default handler override in the definitions dir
INDEX_STEM = "index"

# Package markers are never definitions
IGNORED_FILENAMES = frozenset({"__init__.py"})


@dataclass(frozen=True, slots=True)
class Overlay:
    """A root directory contributing definition files."""

    root: Path
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root).expanduser().resolve())
        if not self.name:
            object.__setattr__(self, "name", self.root.name)


@dataclass(frozen=True, slots=True)
class DefinitionPaths:
    """Sub-paths (relative to an overlay root) scanned for each kind."""

    tools: tuple[str, ...] = ("mcp/tools",)
    resources: tuple[str, ...] = ("mcp/resources",)
    prompts: tuple[str, ...] = ("mcp/prompts",)
    handlers: tuple[str, ...] = ("mcp",)
    extra: dict[CapabilityKind, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def for_dir(cls, base: str = "mcp") -> DefinitionPaths:
        base = base.strip("/") or "."
        return cls(
            tools=(f"{base}/tools",),
            resources=(f"{base}/resources",),
            prompts=(f"{base}/prompts",),
            handlers=(base,),
        )

    def for_kind(self, kind: CapabilityKind) -> tuple[str, ...]:
        paths = {
            CapabilityKind.TOOL: self.tools,
            CapabilityKind.RESOURCE: self.resources,
            CapabilityKind.PROMPT: self.prompts,
            CapabilityKind.HANDLER: self.handlers,
        }[kind]
        return paths + self.extra.get(kind, ())


def is_index_file(path: Path) -> bool:
    return path.stem == INDEX_STEM and path.suffix in DEFINITION_EXTENSIONS


def create_exclude_patterns(
    overlay: Overlay, paths: Iterable[str], subdirs: Iterable[str]
) -> list[str]:
    """Glob patterns excluding ``<path>/<subdir>/**`` inside one overlay."""
    subdirs = list(subdirs)
    return [
        f"{(overlay.root / path / subdir).as_posix()}/**"
        for path in paths
        for subdir in subdirs
    ]


def _is_excluded(path: Path, patterns: Sequence[str]) -> bool:
    posix = path.as_posix()
    for pattern in patterns:
        if fnmatch(posix, pattern):
            return True
        # "dir/**" also covers the directory itself
        if pattern.endswith("/**"):
            prefix = pattern[:-3]
            if posix == prefix or posix.startswith(prefix + "/"):
                return True
    return False


def scan_overlay(
    overlay: Overlay,
    paths: Iterable[str],
    *,
    extensions: Sequence[str] = DEFINITION_EXTENSIONS,
    exclude: Sequence[str] = (),
    filter: Callable[[Path], bool] | None = None,
) -> list[Path]:
    """Find definition files in one overlay.

    Args:
        overlay: Overlay to scan.
        paths: Sub-paths relative to the overlay root.
        extensions: File suffixes to accept.
        exclude: Glob patterns of absolute paths to skip. Excluded
            directories are not listed at all.
        filter: Optional predicate; files for which it returns False are
            dropped.

    Returns:
        Absolute file paths, sorted.
    """
    found: list[Path] = []
    for sub in paths:
        directory = overlay.root / sub
        if not directory.is_dir() or _is_excluded(directory, exclude):
            continue

        for entry in directory.iterdir():
            if not entry.is_file() or entry.suffix not in extensions:
                continue
            if entry.name in IGNORED_FILENAMES or _is_excluded(entry, exclude):
                continue
            if filter is not None and not filter(entry):
                continue
            found.append(entry)

    return sorted(found)


def scan_overlays(
    overlays: Sequence[Overlay],
    paths: Iterable[str],
    *,
    exclude_subdirs: Sequence[str] = (),
    filter: Callable[[Path], bool] | None = None,
) -> list[list[Path]]:
    """Scan each overlay separately, keeping the given overlay order."""
    paths = list(paths)
    results = []
    for overlay in overlays:
        exclude = create_exclude_patterns(overlay, paths, exclude_subdirs)
        files = scan_overlay(overlay, paths, exclude=exclude, filter=filter)
        logger.debug(f"Scanned {len(files)} files in overlay {overlay.name}")
        results.append(files)
    return results


def find_index_file(
    overlays: Sequence[Overlay], paths: Iterable[str]
) -> Path | None:
    """Find the default handler override file.

    Overlays are checked in declaration order and the first one containing an
    index file wins.
    """
    paths = list(paths)
    for overlay in overlays:
        for sub in paths:
            for ext in DEFINITION_EXTENSIONS:
                candidate = overlay.root / sub / f"{INDEX_STEM}{ext}"
                if candidate.is_file():
                    return candidate
    return None
