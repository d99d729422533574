"""Query dispatcher: turn (archive, query) into a kiwix-serve URL and open it."""

import logging
from urllib.parse import quote

from zimlook.errors import InvalidQuery

log = logging.getLogger("zimlook.dispatch")


def article_url(config, archive, query):
    """Direct article URL (API v2): spaces become underscores like MediaWiki titles."""
    return f"{config.server_root}/{archive}/A/{query.replace(' ', '_')}"


def search_url(config, archive, query):
    """Search inside one archive (API v1 and local servers)."""
    return f"{config.server_root}/search?content={quote(archive, safe='')}&pattern={quote(query, safe='')}"


def fulltext_url(config, query):
    """Search every archive the server knows. Slow on big libraries."""
    return f"{config.server_root}/search?pattern={quote(query, safe='')}"


def build_query_url(config, archive, query):
    from zimlook import strategy

    return strategy.select(config).build_url(config, archive, query)


def _require(value, what):
    if value is None or not str(value).strip():
        raise InvalidQuery(f"{what} must not be empty")
    return str(value).strip()


def open_query(session, query, archive):
    """Open query in archive with the session's browser. Returns the URL."""
    archive = _require(archive, "Archive")
    query = _require(query, "Query")
    url = build_query_url(session.config, archive, query)
    log.info("Opening %s", url)
    session.opener(url)
    return url


def open_fulltext(session, query):
    """Full-context search across all archives. Returns the URL."""
    query = _require(query, "Query")
    url = fulltext_url(session.config, query)
    log.info("Opening %s", url)
    session.opener(url)
    return url
