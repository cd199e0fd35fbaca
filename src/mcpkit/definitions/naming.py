"""Identifier, name and title derivation from definition filenames."""

from __future__ import annotations

import keyword
import re
from collections.abc import Mapping
from typing import Any

from mcpkit.errors import IdentifierError

# Extensions recognized as definition modules
DEFINITION_EXTENSIONS = (".py",)

_EXTENSION_PATTERN = re.compile(
    "(" + "|".join(re.escape(ext) for ext in DEFINITION_EXTENSIONS) + ")$"
)
_NON_WORD = re.compile(r"\W")
_SEPARATORS = re.compile(r"[\s_\-./]+")
# Split "getTime" -> get|Time and "HTMLParser" -> HTML|Parser
_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def strip_extension(filename: str) -> str:
    """Remove a definition file extension, leaving other dots intact."""
    return _EXTENSION_PATTERN.sub("", filename)


def to_identifier(filename: str) -> str:
    """Derive a safe Python identifier from a definition filename.

    Every non-word character becomes an underscore. Results that start with a
    digit or collide with a Python keyword get an underscore prefix.

    Args:
        filename: File base name, with or without extension.

    Returns:
        Identifier usable as a bare Python name.

    Raises:
        IdentifierError: If the filename has no usable stem.
    """
    stem = strip_extension(filename)
    if not stem:
        raise IdentifierError(f"Cannot derive an identifier from {filename!r}")

    identifier = _NON_WORD.sub("_", stem)
    if identifier[0].isdigit() or keyword.iskeyword(identifier):
        return f"_{identifier}"
    return identifier


def split_words(text: str) -> list[str]:
    words: list[str] = []
    for chunk in _SEPARATORS.split(text):
        if chunk:
            words.extend(part for part in _CASE_BOUNDARY.split(chunk) if part)
    return words


def kebab_case(text: str) -> str:
    """Convert ``list_documentation`` or ``listDocumentation`` to kebab-case."""
    return "-".join(word.lower() for word in split_words(text))


def title_case(text: str) -> str:
    """Convert ``list_documentation`` to ``List Documentation``."""
    return " ".join(word[:1].upper() + word[1:] for word in split_words(text))


def enrich_name_title(
    name: str | None,
    title: str | None,
    meta: Mapping[str, Any] | None,
    kind: str,
) -> tuple[str, str | None]:
    """Fill in a missing name and title from the source filename.

    Explicit values always win. The derivation reads ``meta["filename"]``
    (attached by the registry compiler), so applying it twice gives the same
    result.

    Args:
        name: Explicit name from the definition, if any.
        title: Explicit title from the definition, if any.
        meta: Provenance metadata attached at compile time.
        kind: Capability kind, used in the error message.

    Returns:
        Tuple of (name, title).

    Raises:
        IdentifierError: If no name is given and none can be derived.
    """
    filename = meta.get("filename") if meta else None

    if filename:
        stem = strip_extension(str(filename))
        if not name:
            name = kebab_case(stem)
        if not title:
            title = title_case(stem)

    if not name:
        raise IdentifierError(
            f"Failed to auto-generate {kind} name from filename. "
            "Please provide a name explicitly."
        )

    return name, title
