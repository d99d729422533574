#!/usr/bin/env python3
"""
zimlook -- look things up in Kiwix ZIM archives from your editor

Usage:
  zimlook launch                         Start kiwix-serve (native: stays in the foreground)
  zimlook stop                           Stop the kiwix-serve this process owns
  zimlook ping                           Is the server up?
  zimlook list                           List archives
  zimlook suggest "linu" --zim wiki      Title suggestions
  zimlook search ["query"] [--zim wiki]  Open a search (prompts for what's missing)
  zimlook fulltext ["query"]             Search every archive (slow)
  zimlook at-point --text T --offset N   Search the word at point
  zimlook link "wikipedia:(en):Linux"    Follow or --export a wikipedia: link
  zimlook mcp                            Run the MCP server on stdio

Editors typically call it with --browser echo and read the URL from stdout.
"""

import argparse
import json
import logging
import signal
import sys

from zimlook import catalog, commands, links
from zimlook.config import API_VERSIONS, BROWSERS, COMPLETIONS, SERVER_TYPES, Config
from zimlook.errors import ConfigError, InvalidQuery, ServerUnavailable
from zimlook.session import Session
from zimlook.suggest import suggest

log = logging.getLogger("zimlook")


def _parser():
    parser = argparse.ArgumentParser(prog="zimlook", description="Search Kiwix ZIM archives from your editor")
    parser.add_argument("--config", help="Path to config.json")
    parser.add_argument("--server-type", choices=SERVER_TYPES)
    parser.add_argument("--api-version", choices=API_VERSIONS)
    parser.add_argument("--server-url")
    parser.add_argument("--port", type=int)
    parser.add_argument("--zim-dir")
    parser.add_argument("--browser", choices=BROWSERS)
    parser.add_argument("--completion", choices=COMPLETIONS)
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("launch", help="Start the kiwix server")
    sub.add_parser("stop", help="Stop the local kiwix-serve process")
    sub.add_parser("ping", help="Check that the server answers")

    p_list = sub.add_parser("list", help="List archives")
    p_list.add_argument("--json", action="store_true", help="Include titles as JSON")

    p_suggest = sub.add_parser("suggest", help="Title suggestions")
    p_suggest.add_argument("term")
    p_suggest.add_argument("--zim", required=True, help="Archive id")

    p_search = sub.add_parser("search", help="Search one archive")
    p_search.add_argument("query", nargs="?")
    p_search.add_argument("--zim", help="Archive id")

    p_full = sub.add_parser("fulltext", help="Search all archives")
    p_full.add_argument("query", nargs="?")

    p_point = sub.add_parser("at-point", help="Search the word at point")
    p_point.add_argument("--text", default="", help="Buffer text (or '-' for stdin)")
    p_point.add_argument("--offset", type=int, default=0, help="Cursor offset into --text")
    p_point.add_argument("--selection", help="Active selection, wins over the word at point")
    p_point.add_argument("--zim", help="Archive id")

    p_link = sub.add_parser("link", help="Follow or export a wikipedia: link")
    p_link.add_argument("link")
    p_link.add_argument("--export", choices=["html", "markdown", "url"], help="Print instead of opening")
    p_link.add_argument("--description")

    sub.add_parser("mcp", help="Run the MCP server (stdio)")
    return parser


def _config_from_args(args):
    return Config(
        path=args.config,
        server_type=args.server_type,
        api_version=args.api_version,
        server_url=args.server_url,
        port=args.port,
        zim_dir=args.zim_dir,
        browser=args.browser,
        completion=args.completion,
    )


def _hold_server(session):
    """Keep the native kiwix-serve in the foreground until it exits or we are interrupted.

    The process handle dies with this process, so ownership stays here: Ctrl-C
    or SIGTERM stops the server cleanly.
    """
    proc = session.manager.process
    print(f"kiwix-serve running (pid {proc.pid}) at {session.config.server_root}; Ctrl-C to stop",
          file=sys.stderr)

    def _interrupt(signum, frame):
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGTERM, _interrupt)
    try:
        code = proc.wait()
        session.manager.process = None
        log.warning("kiwix-serve exited with status %s", code)
        return 1 if code else 0
    except KeyboardInterrupt:
        session.manager.stop()
        return 0
    finally:
        signal.signal(signal.SIGTERM, previous)


def run(args, session):
    """Execute one parsed command. Returns the process exit status."""
    if args.command == "launch":
        commands.launch_server(session)
        if session.manager.process is not None:
            return _hold_server(session)

    elif args.command == "stop":
        if not session.manager.running:
            print("Warning: this process started no kiwix-serve. Interrupt the foreground "
                  "`zimlook launch` (Ctrl-C) or use the MCP server's stop_server tool.", file=sys.stderr)
            return 1
        commands.stop_server(session)

    elif args.command == "ping":
        up = session.ping()
        print(f"{session.config.server_root} is {'up' if up else 'down'}")
        return 0 if up else 1

    elif args.command == "list":
        if args.json:
            entries = catalog.list_catalog(session.config)
            print(json.dumps([{"archive": e.archive, "title": e.title} for e in entries],
                             indent=2, ensure_ascii=False))
        else:
            for archive in catalog.list_archives(session.config):
                print(archive)

    elif args.command == "suggest":
        for text in suggest(session, args.term, args.zim):
            print(text)

    elif args.command == "search":
        commands.search_archive(session, archive=args.zim, query=args.query)

    elif args.command == "fulltext":
        commands.search_fulltext(session, query=args.query)

    elif args.command == "at-point":
        text = sys.stdin.read() if args.text == "-" else args.text
        commands.search_at_point(session, text, args.offset, selection=args.selection, archive=args.zim)
        if session.manager.running:
            log.warning("kiwix-serve (pid %s) keeps running after zimlook exits; stop it with: kill %s",
                        session.manager.process.pid, session.manager.process.pid)

    elif args.command == "link":
        if args.export:
            print(links.export_link(session, args.link, args.description, backend=args.export))
        else:
            links.follow_link(session, args.link)

    return 0


def main(argv=None):
    parser = _parser()
    args = parser.parse_args(argv)
    logging.basicConfig(format="%(asctime)s %(message)s", datefmt="%H:%M:%S",
                        level=logging.DEBUG if args.verbose else logging.INFO, stream=sys.stderr)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "mcp":
        from zimlook import mcp_server
        mcp_server.main()
        return 0

    try:
        session = Session(_config_from_args(args))
        return run(args, session)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except InvalidQuery as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ServerUnavailable as e:
        print(f"Warning: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
