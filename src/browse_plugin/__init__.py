"""browse-plugin - browser automation tools for agents over MCP."""

__version__ = "2.0.0"
