"""Qase MCP Server

Exposes the Qase test management API as Model Context Protocol tools.
"""

__version__ = "1.0.0"
