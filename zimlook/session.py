"""Per-invocation context shared by the commands."""

from zimlook.config import Config
from zimlook.lifecycle import ServerManager
from zimlook.openers import make_opener
from zimlook.pickers import make_picker


class Session:
    """Config, server manager, browser and picker, plus the availability flag.

    ``available`` is only as fresh as the last ping(); commands reset it
    when they finish so the next one checks again.
    """

    def __init__(self, config=None, manager=None, opener=None, picker=None):
        self.config = config or Config()
        self.manager = manager or ServerManager(self.config)
        self.opener = opener or make_opener(self.config)
        self.picker = picker or make_picker(self.config)
        self.available = False

    def ping(self):
        self.available = bool(self.manager.ping())
        return self.available
