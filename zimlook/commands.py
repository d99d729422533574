"""User-invocable commands: launch, stop, search, full-text search, search at point."""

import logging
import re
import time

from zimlook import catalog, dispatch
from zimlook.config import DOCKER_REMOTE
from zimlook.errors import InvalidQuery, ServerUnavailable
from zimlook.suggest import suggestion_source

log = logging.getLogger("zimlook.commands")

_WORD_CHARS = re.compile(r"[\w-]")


def launch_server(session):
    session.manager.launch()


def stop_server(session):
    session.manager.stop()


def thing_at_point(text, offset, selection=None):
    """The selection if there is one, else the word touching offset."""
    if selection and selection.strip():
        return selection.strip()
    if not text:
        return ""
    offset = max(0, min(offset, len(text)))
    start = offset
    while start > 0 and _WORD_CHARS.match(text[start - 1]):
        start -= 1
    end = offset
    while end < len(text) and _WORD_CHARS.match(text[end]):
        end += 1
    return text[start:end].strip("-")


def choose_archive(session, archive=None):
    if archive:
        return archive
    archives = catalog.list_archives(session.config)
    return session.picker.select("Archive: ", archives, default=session.config.default_archive)


def choose_query(session, archive, initial=""):
    return session.picker.complete("Search: ", suggestion_source(session, archive), initial=initial)


def search_archive(session, archive=None, query=None):
    """Prompt for archive, then query, then open the result. Returns the URL."""
    archive = choose_archive(session, archive)
    if not archive:
        raise InvalidQuery("No archive selected")
    if not query:
        query = choose_query(session, archive)
    return dispatch.open_query(session, query, archive)


def search_fulltext(session, query=None):
    """Search all archives at once. Returns the URL."""
    if not query:
        query = session.picker.complete("Search all archives: ", lambda text: [])
    return dispatch.open_fulltext(session, query)


def ensure_server(session, sleep=time.sleep):
    """Ping, launching the server once if needed. Raises ServerUnavailable."""
    if session.ping():
        return
    log.info("Kiwix server not answering, trying to start it")
    session.manager.launch()
    # Nothing was started for a remote server, so there is nothing to wait for
    if session.config.launch_wait and session.config.server_type != DOCKER_REMOTE:
        sleep(session.config.launch_wait)
    if not session.ping():
        raise ServerUnavailable(session.config.server_root)


def search_at_point(session, text, offset, selection=None, archive=None, sleep=time.sleep):
    """Search for the word at point (or the selection). Returns the URL."""
    try:
        thing = thing_at_point(text, offset, selection)
        ensure_server(session, sleep=sleep)
        archive = choose_archive(session, archive)
        if not archive:
            raise InvalidQuery("No archive selected")
        query = choose_query(session, archive, initial=thing)
        return dispatch.open_query(session, query, archive)
    finally:
        session.available = False
