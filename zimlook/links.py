"""wikipedia: hyperlinks for notes and documents.

  wikipedia:Linux                  default archive
  wikipedia:(en):Linux kernel      first archive named wikipedia_en*
  wikipedia:(wikipedia_zh_all):禅宗  that archive exactly
"""

import html
import logging
import re

from zimlook import catalog, dispatch
from zimlook.errors import InvalidQuery

log = logging.getLogger("zimlook.links")

LINK_PREFIX = "wikipedia:"
_LINK_RE = re.compile(r"^(?:\((?P<library>[^)]*)\):)?(?P<query>[^\]\n\t\r]*)$")


def parse_link(link):
    """'wikipedia:(en):Linux' → ('en', 'Linux'). Prefix is optional."""
    if link.startswith(LINK_PREFIX):
        link = link[len(LINK_PREFIX):]
    m = _LINK_RE.match(link.strip())
    if not m or not m.group("query").strip():
        raise InvalidQuery(f"Malformed link: {link!r}")
    return (m.group("library") or "").strip() or None, m.group("query").strip()


def capitalize_first(query):
    """meta-circular interpreter → Meta-circular interpreter"""
    return query[:1].upper() + query[1:]


def resolve_library(session, library):
    """Archive id for a link's library abbreviation."""
    if library:
        archives = catalog.list_archives(session.config)
        if library in archives:
            return library
        prefix = f"wikipedia_{library}"
        for archive in archives:
            if archive.startswith(prefix):
                return archive
        log.warning("No archive matches %r, using the default", library)
    if session.config.default_archive:
        return session.config.default_archive
    raise InvalidQuery(f"No archive for library {library!r} and no default_archive configured")


def link_url(session, link):
    library, query = parse_link(link)
    archive = resolve_library(session, library)
    return dispatch.build_query_url(session.config, archive, capitalize_first(query))


def follow_link(session, link):
    url = link_url(session, link)
    session.opener(url)
    return url


def export_link(session, link, description=None, backend="html"):
    """Render the link for an export backend: html, markdown, or a bare URL."""
    url = link_url(session, link)
    desc = description or parse_link(link)[1]
    if backend == "html":
        return f'<a href="{html.escape(url, quote=True)}">{html.escape(desc)}</a>'
    if backend == "markdown":
        return f"[{desc}]({url})"
    return url
