"""HTTP GET helpers used to talk to kiwix-serve."""

import json
import logging
import ssl
import urllib.error
import urllib.request

import certifi

from zimlook import __version__
from zimlook.errors import ParseError, TransportError

log = logging.getLogger("zimlook.transport")

# SSL context using certifi CA bundle (remote servers may sit behind https)
SSL_CTX = ssl.create_default_context(cafile=certifi.where())

USER_AGENT = f"zimlook/{__version__}"


def fetch(url, timeout=10):
    """GET url and return the body bytes. Raises TransportError on any failure.

    404, 500 and connection errors all land in the same bucket; callers
    only care whether they got a body.
    """
    log.debug("GET %s", url)
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout, context=SSL_CTX) as resp:
            return resp.read()
    except urllib.error.HTTPError as e:
        raise TransportError(url, f"HTTP {e.code}") from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        raise TransportError(url, str(getattr(e, "reason", e))) from e


def fetch_json(url, timeout=10):
    """GET url and decode the body as JSON. Raises TransportError or ParseError."""
    body = fetch(url, timeout=timeout)
    try:
        return json.loads(body.decode("utf-8", errors="replace"))
    except json.JSONDecodeError as e:
        raise ParseError(url, str(e)) from e
