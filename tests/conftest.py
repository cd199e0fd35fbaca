"""Shared test fixtures and factories."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from mcpkit.cache import CacheStore
from mcpkit.config import McpConfig, OverlayConfig
from mcpkit.discovery import Overlay

# =============================================================================
# Definition sources
# =============================================================================

ECHO_TOOL = """
from mcpkit import define_tool

definition = define_tool(
    lambda args: {"content": [{"type": "text", "text": args["message"]}]},
    description="Echo a message",
    input_schema={"type": "object", "properties": {"message": {"type": "string"}}},
)
"""

REVERSE_ECHO_TOOL = """
from mcpkit import define_tool

definition = define_tool(
    lambda args: {"content": [{"type": "text", "text": args["message"][::-1]}]},
    description="Echo a message backwards",
    input_schema={"type": "object", "properties": {"message": {"type": "string"}}},
)
"""

README_RESOURCE = """
from mcpkit import define_resource

definition = define_resource(
    lambda uri: "# Project",
    uri="docs://readme",
    description="Project readme",
    mime_type="text/markdown",
)
"""

GREETING_PROMPT = """
from mcpkit import define_prompt

definition = define_prompt(
    lambda args: f"Say hello to {args['name']}",
    description="Greet someone",
    input_schema={
        "type": "object",
        "properties": {"name": {"type": "string", "description": "Who to greet"}},
        "required": ["name"],
    },
)
"""


# =============================================================================
# Overlay Fixtures
# =============================================================================


class OverlayBuilder:
    """Writes definition files into an overlay directory."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def overlay(self) -> Overlay:
        return Overlay(self.root)

    def write(self, relative: str, source: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip())
        return path

    def tool(self, filename: str, source: str = ECHO_TOOL) -> Path:
        return self.write(f"mcp/tools/{filename}", source)

    def resource(self, filename: str, source: str = README_RESOURCE) -> Path:
        return self.write(f"mcp/resources/{filename}", source)

    def prompt(self, filename: str, source: str = GREETING_PROMPT) -> Path:
        return self.write(f"mcp/prompts/{filename}", source)

    def handler(self, filename: str, source: str) -> Path:
        return self.write(f"mcp/{filename}", source)


@pytest.fixture
def make_overlay(tmp_path: Path) -> Callable[[str], OverlayBuilder]:
    """Factory for overlays rooted under tmp_path."""

    def factory(name: str) -> OverlayBuilder:
        return OverlayBuilder(tmp_path / name)

    return factory


@pytest.fixture
def app_overlay(make_overlay) -> OverlayBuilder:
    """Application overlay with one tool, resource and prompt."""
    builder = make_overlay("app")
    builder.tool("echo.py")
    builder.resource("readme.py")
    builder.prompt("greeting.py")
    return builder


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def mcp_config(tmp_path: Path) -> McpConfig:
    """Config with the app overlay only."""
    return McpConfig(
        name="Test Server",
        version="2.0.0",
        overlays=[OverlayConfig(root=Path("app"))],
        base_dir=tmp_path,
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Create a temporary config file pointing at the app overlay."""
    config_path = tmp_path / "mcpkit.toml"
    config_path.write_text(
        """
name = "Test Server"
version = "2.0.0"

[[overlays]]
root = "app"
"""
    )
    return config_path


# =============================================================================
# Cache Fixtures
# =============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_store(clock: FakeClock) -> CacheStore:
    return CacheStore(maxsize=100, clock=clock)


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})
