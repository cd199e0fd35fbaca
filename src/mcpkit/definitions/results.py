"""Helpers for building tool results."""

import json
from typing import Any


def text_result(text: str) -> dict[str, Any]:
    """Create a text result for a tool response."""
    return {"content": [{"type": "text", "text": text}]}


def json_result(data: Any, pretty: bool = True) -> dict[str, Any]:
    """Create a text result holding ``data`` serialized as JSON."""
    text = json.dumps(data, indent=2 if pretty else None, default=str)
    return {"content": [{"type": "text", "text": text}]}


def error_result(message: str) -> dict[str, Any]:
    """Create an error result; clients show it as a failed tool call."""
    return {"content": [{"type": "text", "text": message}], "isError": True}


def image_result(data: str, mime_type: str) -> dict[str, Any]:
    """Create an image result from base64-encoded ``data``."""
    return {"content": [{"type": "image", "data": data, "mimeType": mime_type}]}
