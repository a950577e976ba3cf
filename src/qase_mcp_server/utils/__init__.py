"""Qase MCP Server Utilities

This package contains utility modules for the Qase MCP server.
"""

__all__ = [
    "errors",
    "result",
    "validation",
]
