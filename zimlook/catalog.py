"""Library catalog: which archives can we search?

Three sources, picked by the strategy table:
  - the OPDS feed of a remote kiwix-serve (API v2)
  - the HTML welcome page of a remote kiwix-serve (API v1)
  - *.zim files in the local archive directory (local topologies)

Every failure is logged and turns into an empty list; the picker just shows
nothing to choose from.
"""

import collections
import logging
import os
import xml.etree.ElementTree as ET
from html.parser import HTMLParser

from zimlook import transport
from zimlook.errors import DirectoryUnavailable, ParseError, TransportError

log = logging.getLogger("zimlook.catalog")

ZIM_EXT = ".zim"
THUMBNAIL_REL = "http://opds-spec.org/image/thumbnail"

CatalogEntry = collections.namedtuple("CatalogEntry", ["archive", "title", "thumbnail"], defaults=(None,))


def derive_archive_id(filename):
    """wikipedia_en_all_maxi_2021-03.zim → wikipedia_en_all_maxi_2021-03"""
    if not filename.endswith(ZIM_EXT) or len(filename) == len(ZIM_EXT):
        raise ValueError(f"Not a ZIM filename: {filename!r}")
    return filename[:-len(ZIM_EXT)]


def _archive_from_href(href):
    return href.lstrip("/") if href else ""


# ── Remote, API v2: OPDS feed ──

def opds_url(config):
    return f"{config.server_root}/catalog/search?start=0&count="


def parse_opds(xml_bytes, url=""):
    """Parse an OPDS (Atom) feed into CatalogEntry list. Raises ParseError.

    Thumbnail hrefs are returned in the thumbnail slot; the caller decides
    whether to download them.
    """
    try:
        root = ET.fromstring(xml_bytes)
    except ET.ParseError as e:
        raise ParseError(url, str(e)) from e

    entries = []
    # {*} matches the Atom namespace as well as un-namespaced feeds
    for entry in root.iterfind(".//{*}entry"):
        title = (entry.findtext("{*}title") or "").strip()
        archive = ""
        thumb_href = None
        for link in entry.findall("{*}link"):
            ltype = link.get("type", "")
            rel = link.get("rel", "")
            href = link.get("href", "")
            if ltype == "text/html" and not archive:
                archive = _archive_from_href(href)
            elif rel == THUMBNAIL_REL:
                thumb_href = href
        if not archive:
            continue
        entries.append(CatalogEntry(archive, title or archive, thumb_href))
    return entries


def _fetch_thumbnail(config, href):
    url = href if "://" in href else config.server_root + "/" + href.lstrip("/")
    try:
        return transport.fetch(url, timeout=config.timeout)
    except TransportError as e:
        log.debug("Thumbnail unavailable: %s", e)
        return None


def fetch_opds_catalog(config):
    url = opds_url(config)
    xml_bytes = transport.fetch(url, timeout=config.timeout)
    entries = parse_opds(xml_bytes, url)
    result = []
    for entry in entries:
        thumbnail = None
        if config.fetch_thumbnails and entry.thumbnail:
            thumbnail = _fetch_thumbnail(config, entry.thumbnail)
        result.append(entry._replace(thumbnail=thumbnail))
    return result


# ── Remote, API v1: HTML welcome page ──

# Elements that never get a closing tag
_VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})


class _BookListParser(HTMLParser):
    """Collect <a href> inside .kiwix .book__list."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.books = []
        self._stack = []  # [(tag, classes)]
        self._anchor = None  # [href, text parts] while inside a book anchor

    def _inside(self, cls):
        return any(cls in classes for _, classes in self._stack)

    def handle_starttag(self, tag, attrs):
        attrs = dict(attrs)
        classes = set((attrs.get("class") or "").split())
        if tag == "a" and self._inside("kiwix") and self._inside("book__list"):
            href = attrs.get("href")
            if href:
                self._anchor = [href, []]
        if tag not in _VOID_TAGS:
            self._stack.append((tag, classes))

    def handle_startendtag(self, tag, attrs):
        # <a/> has no body; never push self-closed tags
        pass

    def handle_endtag(self, tag):
        if tag == "a" and self._anchor is not None:
            href, parts = self._anchor
            self.books.append((href, " ".join("".join(parts).split())))
            self._anchor = None
        # Pop back to the matching open tag; tolerate sloppy markup
        for i in range(len(self._stack) - 1, -1, -1):
            if self._stack[i][0] == tag:
                del self._stack[i:]
                break

    def handle_data(self, data):
        if self._anchor is not None:
            self._anchor[1].append(data)


def parse_book_list(html_text):
    """Parse the kiwix-serve v1 welcome page into CatalogEntry list."""
    parser = _BookListParser()
    parser.feed(html_text)
    parser.close()
    entries = []
    for href, text in parser.books:
        archive = _archive_from_href(href)
        if archive:
            entries.append(CatalogEntry(archive, text or archive))
    return entries


def fetch_html_index(config):
    url = config.server_root + "/"
    body = transport.fetch(url, timeout=config.timeout)
    try:
        return parse_book_list(body.decode("utf-8", errors="replace"))
    except (AssertionError, ValueError) as e:
        raise ParseError(url, str(e)) from e


# ── Local: archive directory ──

def scan_local_archives(config):
    """List *.zim files in the configured directory. Raises DirectoryUnavailable."""
    zim_dir = config.zim_path
    if not os.path.isdir(zim_dir):
        raise DirectoryUnavailable(zim_dir, "not a directory")
    try:
        names = os.listdir(zim_dir)
    except OSError as e:
        raise DirectoryUnavailable(zim_dir, e.strerror or str(e)) from e
    entries = []
    for filename in sorted(names):
        if filename.endswith(ZIM_EXT) and len(filename) > len(ZIM_EXT):
            archive = derive_archive_id(filename)
            entries.append(CatalogEntry(archive, archive))
    return entries


# ── Public API ──

def list_catalog(config):
    """Catalog entries for the configured topology. Never raises on I/O trouble."""
    from zimlook import strategy

    fetcher = strategy.select(config).fetch_catalog
    try:
        return fetcher(config)
    except (TransportError, ParseError) as e:
        log.warning("Could not fetch library catalog from %s: %s", e.url, e.reason)
    except DirectoryUnavailable as e:
        log.warning("Archive directory unavailable: %s (%s)", e.path, e.reason)
    return []


def list_archives(config):
    """Archive identifiers for the configured topology, [] on failure."""
    return [entry.archive for entry in list_catalog(config)]
