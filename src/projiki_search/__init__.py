"""
projiki-search - search core for the Projiki project manager.

Indexes projects and their tasks, notes, snippets and ideas in memory and
serves ranked, filtered search over MCP.

Stack:
- Python + FastMCP
- In-memory index rebuilt from the JSON project files
- JSON files (source of truth)
"""

__version__ = "0.1.0"
