"""HTTP routes besides the MCP endpoints."""
