"""MCP tool modules for chuk-mcp-viewscout."""
