"""Tool schema definitions (tools/list catalog)."""

from __future__ import annotations

from typing import Any

MIN_PANE = 1
MAX_PANE = 4

_SCHEMA = "http://json-schema.org/draft-07/schema#"

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "get_responses",
        "description": """Read the latest answer from every pane (ChatGPT, Gemini, Claude, Grok).

Returns one item per pane in on-screen order:
{"items": [{"source": "ChatGPT", "url": "...", "content": "...", "error": null}], "timestamp": "..."}
A pane that could not be read has content "" and a non-null error; the others are unaffected.""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        },
    },
    {
        "name": "send_prompt",
        "description": """Type a prompt into the input field of every pane at once.

NOTE: only fills the fields. Nothing is sent; a human reviews and presses send.
Returns {"results": [{"source": "...", "success": true}], "prompt": "..."}.""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "prompt": {"type": "string", "description": "Prompt text to fill in"},
            },
            "required": ["prompt"],
            "additionalProperties": False,
        },
    },
    {
        "name": "export_json",
        "description": """Return the current answers of all panes as structured JSON.

{"context": "...", "timestamp": "...", "items": [{"source", "url", "content", "error", "note"}]}
Does not write a file unless save=true, in which case the shell saves it and reports the path.""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "context": {
                    "type": "string",
                    "description": "What this export is about (e.g. 'API design comparison')",
                },
                "save": {
                    "type": "boolean",
                    "default": False,
                    "description": "Also save the export through the shell (default: false)",
                },
            },
            "required": [],
            "additionalProperties": False,
        },
    },
    {
        "name": "navigate",
        "description": """Change the page shown in one pane.

Pane numbers: 1=ChatGPT, 2=Gemini, 3=Claude, 4=Grok (default layout).
A URL without a scheme gets https:// (e.g. "example.com" -> "https://example.com").""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {
                "pane": {
                    "type": "integer",
                    "minimum": MIN_PANE,
                    "maximum": MAX_PANE,
                    "description": "Pane number (1-4)",
                },
                "url": {"type": "string", "description": "Destination URL"},
            },
            "required": ["pane", "url"],
            "additionalProperties": False,
        },
    },
    {
        "name": "get_status",
        "description": """Report Quad Browser state: each pane's number, site and URL, the split mode
(how many panes are visible) and the control API port.""",
        "inputSchema": {
            "$schema": _SCHEMA,
            "type": "object",
            "properties": {},
            "required": [],
            "additionalProperties": False,
        },
    },
]
