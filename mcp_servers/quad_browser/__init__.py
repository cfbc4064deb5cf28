"""Quad Browser: drive several chat front ends at once from an MCP client."""

from __future__ import annotations

__version__ = "1.2.1"
