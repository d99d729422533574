"""Browser strategies: something that takes a URL and shows it to the user."""

import logging
import shlex
import subprocess
import sys
import webbrowser

log = logging.getLogger("zimlook.openers")


def open_default(url):
    webbrowser.open(url)


def open_webview(url):
    """Open url in a native window via pywebview. Blocks until the window closes."""
    import webview
    webview.create_window("zimlook", url, width=1200, height=800)
    webview.start()


def make_echo_opener(stream=None):
    """Print the URL. Editors that shell out to zimlook read it from stdout."""
    def _echo(url):
        out = stream or sys.stdout
        print(url, file=out, flush=True)
    return _echo


def make_command_opener(command, popen=subprocess.Popen):
    """Run command with the URL appended, e.g. "firefox --new-tab"."""
    argv = shlex.split(command)

    def _run(url):
        try:
            popen(argv + [url], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            log.warning("Could not run browser command %s: %s", argv[0], e)
    return _run


def make_opener(config):
    browser = config.browser
    if browser == "webview":
        return open_webview
    if browser == "echo":
        return make_echo_opener()
    if browser == "command":
        return make_command_opener(config.browser_command)
    return open_default
