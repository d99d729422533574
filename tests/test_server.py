#!/usr/bin/env python3
"""Integration tests -- start a fake kiwix-serve and talk to it over HTTP.

These tests verify the real request/response cycle: URL shapes the server
receives, OPDS and HTML catalog parsing, JSON suggestions, and how 4xx/5xx
and refused connections degrade. No ZIM files or kiwix-serve binary needed.

Usage:
    python3 -m pytest tests/test_server.py -v
"""

import json
import os
import socket
import sys
import threading
import unittest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

# Make zimlook importable from repo root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from zimlook.config import Config, DOCKER_REMOTE

NO_CONFIG_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "no-such-config.json")

CATALOG = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <title>Wikipedia</title>
    <link type="text/html" href="/wikipedia_en_all_maxi_2021-03"/>
    <link rel="http://opds-spec.org/image/thumbnail" href="/thumb/wikipedia.png" type="image/png"/>
  </entry>
  <entry>
    <title>Gutenberg</title>
    <link type="text/html" href="/gutenberg_en_all_2023-08"/>
  </entry>
</feed>
"""

WELCOME = b"""<html><body>
<div class="kiwix"><div class="book__list">
  <a href="/wikipedia_en_all_maxi_2021-03"><div class="book__title">Wikipedia</div></a>
</div></div>
</body></html>
"""

SUGGESTIONS = {
    "linu": [{"value": "Linux", "label": "Linux", "kind": "path", "path": "A/Linux"},
             {"value": "Linux kernel", "label": "Linux kernel", "kind": "path", "path": "A/Linux_kernel"}],
}


class FakeKiwixHandler(BaseHTTPRequestHandler):
    """Just enough of kiwix-serve for the client."""

    requests = []

    def do_GET(self):
        parsed = urlparse(self.path)
        params = parse_qs(parsed.query)
        FakeKiwixHandler.requests.append((parsed.path, params))

        if parsed.path == "/":
            self._send(200, WELCOME, "text/html")
        elif parsed.path == "/catalog/search":
            self._send(200, CATALOG, "application/atom+xml")
        elif parsed.path == "/thumb/wikipedia.png":
            self._send(200, b"\x89PNG fake", "image/png")
        elif parsed.path == "/suggest":
            content = params.get("content", [""])[0]
            term = params.get("term", [""])[0]
            if content == "broken":
                self._send(500, b"Internal Server Error", "text/plain")
            elif content == "garbled":
                self._send(200, b"[{not json", "application/json")
            else:
                body = json.dumps(SUGGESTIONS.get(term, [])).encode()
                self._send(200, body, "application/json")
        else:
            self._send(404, b"Not Found", "text/plain")

    def _send(self, code, body, content_type):
        self.send_response(code)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


def _start_server(port=0):
    """Start the fake server, return (server, actual_port)."""
    server = ThreadingHTTPServer(("127.0.0.1", port), FakeKiwixHandler)
    actual_port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, actual_port


def _closed_port():
    """A port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestAgainstFakeServer(unittest.TestCase):
    """Catalog, ping and suggestions over real HTTP."""

    @classmethod
    def setUpClass(cls):
        cls._server, cls._port = _start_server()

    @classmethod
    def tearDownClass(cls):
        cls._server.shutdown()
        cls._server.server_close()

    def setUp(self):
        FakeKiwixHandler.requests = []

    def _config(self, **overrides):
        overrides.setdefault("server_type", DOCKER_REMOTE)
        overrides.setdefault("port", self._port)
        return Config(path=NO_CONFIG_FILE, env={}, server_url="http://127.0.0.1", **overrides)

    def _session(self, **overrides):
        from zimlook.session import Session
        return Session(self._config(**overrides), opener=MagicMock(), picker=MagicMock())

    def test_ping(self):
        from zimlook.lifecycle import ServerManager
        self.assertTrue(ServerManager(self._config()).ping())

    def test_ping_refused(self):
        from zimlook.lifecycle import ServerManager
        manager = ServerManager(self._config(port=_closed_port(), ping_timeout=1.0))
        self.assertFalse(manager.ping())

    def test_opds_catalog(self):
        from zimlook.catalog import list_catalog
        entries = list_catalog(self._config(api_version="v2", fetch_thumbnails=True))
        self.assertEqual([e.archive for e in entries], ["wikipedia_en_all_maxi_2021-03", "gutenberg_en_all_2023-08"])
        self.assertEqual(entries[0].thumbnail, b"\x89PNG fake")
        self.assertEqual(FakeKiwixHandler.requests[0], ("/catalog/search", {"start": ["0"]}))

    def test_html_catalog(self):
        from zimlook.catalog import list_archives
        self.assertEqual(list_archives(self._config(api_version="v1")), ["wikipedia_en_all_maxi_2021-03"])

    def test_catalog_server_down(self):
        from zimlook.catalog import list_archives
        with self.assertLogs("zimlook.catalog", level="WARNING"):
            self.assertEqual(list_archives(self._config(port=_closed_port(), timeout=1.0)), [])

    def test_suggest(self):
        from zimlook.suggest import suggest
        session = self._session()
        self.assertEqual(suggest(session, "linu", "wikipedia_en_all_maxi_2021-03"), ["Linux", "Linux kernel"])
        self.assertTrue(session.available)
        path, params = FakeKiwixHandler.requests[-1]
        self.assertEqual(path, "/suggest")
        self.assertEqual(params, {"content": ["wikipedia_en_all_maxi_2021-03"], "term": ["linu"]})

    def test_suggest_encodes_term(self):
        from zimlook.suggest import suggest
        session = self._session()
        self.assertEqual(suggest(session, "c++ & co", "wiki"), [])
        self.assertEqual(FakeKiwixHandler.requests[-1][1]["term"], ["c++ & co"])

    def test_suggest_server_error(self):
        from zimlook.suggest import suggest
        with self.assertLogs("zimlook.suggest", level="WARNING") as logs:
            self.assertEqual(suggest(self._session(), "linu", "broken"), [])
        self.assertIn("HTTP 500", logs.output[0])

    def test_suggest_garbled_json(self):
        from zimlook.suggest import suggest
        with self.assertLogs("zimlook.suggest", level="WARNING"):
            self.assertEqual(suggest(self._session(), "linu", "garbled"), [])

    def test_suggest_server_down_makes_no_suggest_request(self):
        from zimlook.suggest import suggest
        session = self._session(port=_closed_port(), ping_timeout=1.0)
        self.assertEqual(suggest(session, "linu", "wiki"), [])
        self.assertFalse(session.available)
        self.assertEqual(FakeKiwixHandler.requests, [])

    def test_search_at_point_end_to_end(self):
        from zimlook.commands import search_at_point
        session = self._session(api_version="v2")
        session.picker.select.side_effect = lambda prompt, candidates, default=None: candidates[0]
        session.picker.complete.side_effect = lambda prompt, source, initial="": source("linu")[1]
        url = search_at_point(session, "see linu for details", 6)
        self.assertEqual(url, f"http://127.0.0.1:{self._port}/wikipedia_en_all_maxi_2021-03/A/Linux_kernel")
        session.opener.assert_called_once_with(url)
        self.assertFalse(session.available)


if __name__ == "__main__":
    unittest.main()
