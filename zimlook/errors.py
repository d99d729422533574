"""Exception types raised inside zimlook.

Discovery and suggestion failures (TransportError, ParseError,
DirectoryUnavailable) are caught close to where they happen and degrade to
empty results. InvalidQuery and ServerUnavailable reach the command layer and
are shown to the user.
"""


class ZimlookError(Exception):
    """Base class for all zimlook errors."""


class ConfigError(ZimlookError):
    """A configuration value is invalid."""


class TransportError(ZimlookError):
    """HTTP or network failure talking to the content server."""

    def __init__(self, url, reason):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class ParseError(ZimlookError):
    """A response body could not be parsed."""

    def __init__(self, url, reason):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class DirectoryUnavailable(ZimlookError):
    """The local archive directory is missing or unreadable."""

    def __init__(self, path, reason):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidQuery(ZimlookError):
    """Archive or query is empty at dispatch time."""


class ServerUnavailable(ZimlookError):
    """The content server did not answer, even after a launch attempt."""

    def __init__(self, url):
        super().__init__(f"Kiwix server at {url} is not available")
        self.url = url
