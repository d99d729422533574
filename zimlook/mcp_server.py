#!/usr/bin/env python3
"""
zimlook MCP Server -- Expose Kiwix lookups as MCP tools for AI agents and editors.

Provides archive listing, title suggestions, URL building and server control
over the Model Context Protocol (stdio transport). Tools return text; they
never open a browser.

Usage:
  python3 -m zimlook.mcp_server
  zimlook mcp

Configuration:
  Same as the CLI: config.json plus ZIMLOOK_* environment variables.

Claude Code config (local):
  {
    "mcpServers": {
      "zimlook": {
        "command": "python3",
        "args": ["-m", "zimlook.mcp_server"],
        "env": { "ZIMLOOK_SERVER_TYPE": "kiwix-serve-local", "ZIM_DIR": "/path/to/zims" }
      }
    }
  }
"""

from mcp.server.fastmcp import FastMCP

from zimlook import catalog, dispatch
from zimlook.errors import InvalidQuery
from zimlook.session import Session
from zimlook.suggest import suggest as _suggest

mcp = FastMCP("zimlook", instructions="Find articles in offline Kiwix ZIM archives served by kiwix-serve.")

_session = None


def get_session():
    global _session
    if _session is None:
        _session = Session(opener=lambda url: None)
    return _session


@mcp.tool()
def list_archives() -> str:
    """List the ZIM archives the configured kiwix server can search.

    Use the archive ids with suggest() and article_url().
    """
    entries = catalog.list_catalog(get_session().config)
    if not entries:
        return "No archives found."
    lines = [f"{len(entries)} archives:\n"]
    for e in entries:
        lines.append(f"- **{e.title}** ({e.archive})" if e.title != e.archive else f"- {e.archive}")
    return "\n".join(lines)


@mcp.tool()
def suggest(query: str, archive: str) -> str:
    """Title autocomplete within one archive.

    Args:
        query: Title prefix (e.g. "linu" → "Linux", "Linux kernel")
        archive: Archive id from list_archives()
    """
    session = get_session()
    try:
        results = _suggest(session, query, archive)
    finally:
        session.available = False
    if not results:
        return f"No suggestions for '{query}' in {archive}."
    return "\n".join(f"- {r}" for r in results)


@mcp.tool()
def article_url(query: str, archive: str) -> str:
    """URL of the article (or search results) for query in archive.

    Args:
        query: Article title or search terms
        archive: Archive id from list_archives()
    """
    session = get_session()
    try:
        return dispatch.open_query(session, query, archive)
    except InvalidQuery as e:
        return f"Error: {e}"


@mcp.tool()
def fulltext_url(query: str) -> str:
    """URL of a full-text search across every archive (slow on large libraries)."""
    session = get_session()
    try:
        return dispatch.open_fulltext(session, query)
    except InvalidQuery as e:
        return f"Error: {e}"


@mcp.tool()
def server_status() -> str:
    """Check whether the kiwix server answers."""
    session = get_session()
    up = session.ping()
    session.available = False
    return f"{session.config.server_root} is {'up' if up else 'down'}"


@mcp.tool()
def launch_server() -> str:
    """Start the kiwix server for the configured topology."""
    session = get_session()
    session.manager.launch()
    return f"Launch requested ({session.config.server_type}, {session.config.server_root})"


@mcp.tool()
def stop_server() -> str:
    """Stop the kiwix-serve process started by launch_server(), if any."""
    session = get_session()
    was_running = session.manager.running
    session.manager.stop()
    return "Stopped kiwix-serve." if was_running else "No local kiwix-serve process to stop."


def main():
    mcp.run()


if __name__ == "__main__":
    main()
