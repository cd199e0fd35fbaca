"""Resource definitions: static, templated and file-backed."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# MIME types for file-backed resources, keyed by suffix
_MIME_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".py": "text/x-python",
    ".ts": "text/typescript",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".html": "text/html",
    ".css": "text/css",
    ".xml": "text/xml",
    ".csv": "text/csv",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
    ".toml": "application/toml",
}

_TEMPLATE_VARIABLE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def guess_mime_type(path: Path | str) -> str:
    return _MIME_TYPES.get(Path(path).suffix.lower(), "text/plain")


@dataclass(frozen=True, slots=True)
class ResourceTemplate:
    """URI template with ``{name}`` placeholders, e.g. ``docs://{section}/{page}``.

    Each placeholder matches one path segment (no ``/``).
    """

    uri_template: str

    @property
    def variables(self) -> list[str]:
        return _TEMPLATE_VARIABLE.findall(self.uri_template)

    def _pattern(self) -> re.Pattern[str]:
        parts: list[str] = []
        last = 0
        for match in _TEMPLATE_VARIABLE.finditer(self.uri_template):
            parts.append(re.escape(self.uri_template[last : match.start()]))
            parts.append(f"(?P<{match.group(1)}>[^/]+)")
            last = match.end()
        parts.append(re.escape(self.uri_template[last:]))
        return re.compile("^" + "".join(parts) + "$")

    def match(self, uri: str) -> dict[str, str] | None:
        """Return the placeholder values if ``uri`` matches, else None."""
        found = self._pattern().match(uri)
        return found.groupdict() if found else None


@dataclass(kw_only=True)
class ResourceDefinition:
    """A readable data source.

    Exactly one of ``uri`` or ``file`` is normally given. File-backed
    resources get a ``file://`` URI and a reader generated for them.
    """

    handler: Callable[..., Any] | None = None
    name: str | None = None
    title: str | None = None
    description: str | None = None
    uri: str | ResourceTemplate | None = None
    # Path to a local file, relative to the working directory
    file: str | None = None
    mime_type: str | None = None
    annotations: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_template(self) -> bool:
        return isinstance(self.uri, ResourceTemplate)


def file_reader(file_path: Path, mime_type: str) -> Callable[..., Any]:
    """Build a handler that serves ``file_path`` as text."""

    async def read(uri: str) -> dict[str, Any]:
        try:
            content = await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except OSError as e:
            raise RuntimeError(f"Failed to read file {file_path}: {e}") from e
        return {"contents": [{"uri": uri, "mimeType": mime_type, "text": content}]}

    return read


def resolve_file_resource(
    resource: ResourceDefinition, cwd: Path | None = None
) -> tuple[str | ResourceTemplate | None, Callable[..., Any] | None]:
    """Fill in the URI and handler of a file-backed resource.

    Returns:
        Tuple of (uri, handler); unchanged for non-file resources.
    """
    uri = resource.uri
    handler = resource.handler
    if not resource.file:
        return uri, handler

    file_path = ((cwd or Path.cwd()) / resource.file).resolve()
    if uri is None:
        uri = file_path.as_uri()
    if handler is None:
        mime_type = resource.mime_type or guess_mime_type(file_path)
        handler = file_reader(file_path, mime_type)
    return uri, handler


def define_resource(
    handler: Callable[..., Any] | None = None, /, **options: Any
) -> Any:
    """Define a resource, directly or as a decorator.

    Examples:
        definition = define_resource(description="Project README", file="README.md")

        @define_resource(uri="config://app")
        def definition(uri):
            return {"contents": [{"uri": uri, "text": "..."}]}
    """
    if handler is None:
        handler = options.pop("handler", None)
    if handler is None and "file" not in options:

        def decorator(fn: Callable[..., Any]) -> ResourceDefinition:
            return ResourceDefinition(handler=fn, **options)

        return decorator
    return ResourceDefinition(handler=handler, **options)
