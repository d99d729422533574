"""Title suggestions from kiwix-serve's /suggest endpoint."""

import logging
from urllib.parse import quote

from zimlook import transport
from zimlook.errors import ParseError, TransportError

log = logging.getLogger("zimlook.suggest")


def suggest_url(config, archive, text):
    return f"{config.server_root}/suggest?content={quote(archive, safe='')}&term={quote(text, safe='')}"


def parse_suggestions(payload, url=""):
    """[{"value": "linux", ...}, ...] or [["linux", ...], ...] → ["linux", ...]

    All-or-nothing: one malformed element rejects the whole payload.
    """
    if not isinstance(payload, list):
        raise ParseError(url, "expected a JSON array")
    results = []
    for item in payload:
        if isinstance(item, dict) and item:
            value = next(iter(item.values()))
        elif isinstance(item, list) and item:
            value = item[0]
        else:
            raise ParseError(url, f"unexpected suggestion item {item!r}")
        if not isinstance(value, str):
            raise ParseError(url, f"unexpected suggestion value {value!r}")
        results.append(value)
    return results


def suggest(session, text, archive):
    """Suggestions for text in archive, or [] if the server is down or misbehaves."""
    if not text or not archive:
        return []
    if not session.ping():
        return []
    url = suggest_url(session.config, archive, text)
    try:
        payload = transport.fetch_json(url, timeout=session.config.timeout)
        return parse_suggestions(payload, url)
    except (TransportError, ParseError) as e:
        log.warning("Suggestions failed for %s: %s", e.url, e.reason)
        return []


def suggestion_source(session, archive):
    """The (text) -> [str] callable pickers query on every input change."""
    return lambda text: suggest(session, text, archive)
