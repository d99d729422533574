"""zimlook -- look things up in Kiwix ZIM archives from your editor.

Talks to a kiwix-serve content server (remote container, local container or
native process), lists the archives it serves, fetches title suggestions and
opens article or search URLs in a browser.
"""

__version__ = "0.3.0"

from zimlook.catalog import CatalogEntry, derive_archive_id, list_archives, list_catalog  # noqa: E402
from zimlook.config import Config  # noqa: E402
from zimlook.dispatch import build_query_url, open_fulltext, open_query  # noqa: E402
from zimlook.errors import (  # noqa: E402
    ConfigError, DirectoryUnavailable, InvalidQuery, ParseError,
    ServerUnavailable, TransportError, ZimlookError,
)
from zimlook.lifecycle import ServerManager  # noqa: E402
from zimlook.session import Session  # noqa: E402

__all__ = [
    "CatalogEntry", "Config", "ConfigError", "DirectoryUnavailable", "InvalidQuery",
    "ParseError", "ServerManager", "ServerUnavailable", "Session", "TransportError",
    "ZimlookError", "build_query_url", "derive_archive_id", "list_archives",
    "list_catalog", "open_fulltext", "open_query",
]
