"""Generated registry module.

``mcpkit generate`` writes the resolved file lists to an importable module so
later boots can skip scanning overlays. Regenerating after files are added
or removed is up to the build tooling.
"""

from __future__ import annotations

import importlib.util
import logging
from pathlib import Path

from mcpkit.discovery.registry import DiscoveryResult, Registry, build_registry
from mcpkit.discovery.resolver import LoadResult
from mcpkit.errors import DiscoveryError

logger = logging.getLogger(__name__)

ARTIFACT_VARIABLE = "discovery"

_HEADER = '''"""Generated by mcpkit. Do not edit."""

from pathlib import Path

from mcpkit.discovery.registry import DiscoveryResult
from mcpkit.discovery.resolver import LoadResult

'''


def _render_load_result(result: LoadResult, indent: str) -> str:
    if not result.files:
        return f"LoadResult(overridden_count={result.overridden_count})"
    files = "".join(f"{indent}        Path({str(path)!r}),\n" for path in result.files)
    return (
        "LoadResult(\n"
        f"{indent}    files=[\n{files}{indent}    ],\n"
        f"{indent}    overridden_count={result.overridden_count},\n"
        f"{indent})"
    )


def render_registry_module(discovery: DiscoveryResult) -> str:
    """Render ``discovery`` as Python source."""
    indent = "    "
    lines = [_HEADER, f"{ARTIFACT_VARIABLE} = DiscoveryResult(\n"]
    for field_name in ("tools", "resources", "prompts", "handlers"):
        rendered = _render_load_result(getattr(discovery, field_name), indent)
        lines.append(f"{indent}{field_name}={rendered},\n")

    default = discovery.default_handler
    default_repr = f"Path({str(default)!r})" if default else "None"
    lines.append(f"{indent}default_handler={default_repr},\n)\n")
    return "".join(lines)


def write_registry_module(discovery: DiscoveryResult, path: Path) -> Path:
    """Write the generated module to ``path``, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_registry_module(discovery), encoding="utf-8")
    logger.info(f"Wrote registry module with {discovery.total} files to {path}")
    return path


def read_registry_module(path: Path) -> DiscoveryResult:
    """Import a generated module and return its discovery result.

    Raises:
        DiscoveryError: If the module is missing or malformed.
    """
    spec = importlib.util.spec_from_file_location("mcpkit_generated_registry", path)
    if spec is None or spec.loader is None or not path.is_file():
        raise DiscoveryError("registry", f"Registry module not found: {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise DiscoveryError("registry", f"Failed to import {path}: {e}") from e

    discovery = getattr(module, ARTIFACT_VARIABLE, None)
    if not isinstance(discovery, DiscoveryResult):
        raise DiscoveryError(
            "registry", f"{path} does not define '{ARTIFACT_VARIABLE}'"
        )
    return discovery


def load_registry_module(path: Path) -> Registry:
    """Build a registry from a generated module without rescanning overlays."""
    return build_registry(read_registry_module(path))
