"""Import definition modules and admit their exports by kind.

A definition module exports its definition as a module attribute named
``definition``. Modules that don't may instead hold exactly one module-level
instance of the expected type.
"""

from __future__ import annotations

import dataclasses
import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from mcpkit.definitions.base import CapabilityKind
from mcpkit.definitions.handlers import HandlerOverride
from mcpkit.definitions.naming import to_identifier
from mcpkit.definitions.prompts import PromptDefinition
from mcpkit.definitions.resources import ResourceDefinition
from mcpkit.definitions.tools import ToolDefinition
from mcpkit.discovery.validators import (
    ValidationError,
    validate_handler,
    validate_prompt,
    validate_resource,
    validate_tool,
)
from mcpkit.errors import DefinitionLoadError

logger = logging.getLogger(__name__)

EXPORT_NAME = "definition"

DEFINITION_TYPES: dict[CapabilityKind, type] = {
    CapabilityKind.TOOL: ToolDefinition,
    CapabilityKind.RESOURCE: ResourceDefinition,
    CapabilityKind.PROMPT: PromptDefinition,
    CapabilityKind.HANDLER: HandlerOverride,
}

_VALIDATORS = {
    CapabilityKind.TOOL: validate_tool,
    CapabilityKind.RESOURCE: validate_resource,
    CapabilityKind.PROMPT: validate_prompt,
    CapabilityKind.HANDLER: validate_handler,
}


def _module_name(path: Path, kind: CapabilityKind) -> str:
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:8]
    return f"mcpkit_definitions.{kind.plural}.{to_identifier(path.name)}_{digest}"


def import_definition_module(path: Path, kind: CapabilityKind) -> ModuleType:
    """Import a definition file as an isolated module.

    Raises:
        DefinitionLoadError: If the file cannot be read or raises on import.
    """
    module_name = _module_name(path, kind)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise DefinitionLoadError(path, "not an importable Python file")

    module = importlib.util.module_from_spec(spec)
    # Registered before exec so dataclasses and pickling can find the module
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise DefinitionLoadError(path, f"failed to import: {e}") from e
    return module


def select_export(module: ModuleType, path: Path, kind: CapabilityKind) -> Any:
    """Pick the definition object a module exports for ``kind``."""
    expected = DEFINITION_TYPES[kind]

    if hasattr(module, EXPORT_NAME):
        value = getattr(module, EXPORT_NAME)
        if not isinstance(value, expected):
            raise DefinitionLoadError(
                path,
                f"'{EXPORT_NAME}' must be a {expected.__name__}, "
                f"got {type(value).__name__}",
            )
        return value

    candidates = [
        value
        for name, value in vars(module).items()
        if not name.startswith("_") and isinstance(value, expected)
    ]
    if not candidates:
        raise DefinitionLoadError(
            path, f"no {expected.__name__} exported (define '{EXPORT_NAME}')"
        )
    if len(candidates) > 1:
        raise DefinitionLoadError(
            path,
            f"found {len(candidates)} {expected.__name__} objects; "
            f"export the one to register as '{EXPORT_NAME}'",
        )
    return candidates[0]


def load_definition(path: Path | str, kind: CapabilityKind | str) -> Any:
    """Load, validate and annotate the definition exported by ``path``.

    The returned object is a copy of the export with ``meta["filename"]``
    set, so names and titles can be derived later.

    Raises:
        DefinitionLoadError: If the module fails to import, exports nothing
            usable, or the export is malformed.
    """
    path = Path(path)
    kind = CapabilityKind(kind)

    module = import_definition_module(path, kind)
    definition = select_export(module, path, kind)

    errors: list[ValidationError] = _VALIDATORS[kind](definition)
    if errors:
        raise DefinitionLoadError(path, "; ".join(str(e) for e in errors))

    definition = dataclasses.replace(
        definition, meta={**definition.meta, "filename": path.name}
    )
    logger.debug(f"Loaded {kind.value} definition from {path}")
    return definition
