"""Settings for zimlook.

Values are layered: DEFAULTS, then config.json in the platform config
directory, then ZIMLOOK_* environment variables (ZIM_DIR is honored too),
then keyword overrides.
"""

import json
import logging
import os
import platform

from zimlook.errors import ConfigError

log = logging.getLogger("zimlook.config")

# Server topologies
DOCKER_REMOTE = "docker-remote"        # someone else runs kiwix-serve in a container
DOCKER_LOCAL = "docker-local"          # we start kiwix-serve in a local container
KIWIX_SERVE_LOCAL = "kiwix-serve-local"  # we start a native kiwix-serve process
SERVER_TYPES = (DOCKER_REMOTE, DOCKER_LOCAL, KIWIX_SERVE_LOCAL)

API_VERSIONS = ("v1", "v2")
BROWSERS = ("default", "webview", "echo", "command")
COMPLETIONS = ("readline", "menu", "plain")


def _config_dir():
    """Platform-appropriate config directory."""
    system = platform.system()
    if system == "Darwin":
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support", "zimlook")
    elif system == "Windows":
        return os.path.join(os.environ.get("APPDATA", os.path.expanduser("~")), "zimlook")
    else:  # Linux / other
        xdg = os.environ.get("XDG_CONFIG_HOME", os.path.join(os.path.expanduser("~"), ".config"))
        return os.path.join(xdg, "zimlook")


def _coerce(key, raw, default):
    """Convert an environment string to the type of its default."""
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            raise ConfigError(f"{key} must be a number, got {raw!r}")
    return raw


class Config:
    """Read/write config.json with sensible defaults."""

    DEFAULTS = {
        "server_type": KIWIX_SERVE_LOCAL,
        "server_url": "http://127.0.0.1",
        "port": 8000,
        "api_version": "v2",
        "zim_dir": os.path.join(os.path.expanduser("~"), ".local", "share", "kiwix"),
        "library_file": "library.xml",
        "kiwix_serve_command": "kiwix-serve",
        "docker_command": "docker",
        "docker_image": "kiwix/kiwix-serve",
        "container_name": "kiwix-serve",
        "browser": "default",
        "browser_command": None,
        "completion": "readline",
        "default_archive": None,
        "fetch_thumbnails": False,
        "timeout": 10.0,
        "ping_timeout": 2.0,
        "launch_wait": 2.0,
    }

    def __init__(self, path=None, env=None, **overrides):
        env = os.environ if env is None else env
        self.path = path or env.get("ZIMLOOK_CONFIG") or os.path.join(_config_dir(), "config.json")
        self._data = dict(self.DEFAULTS)
        self._load()
        self._apply_env(env)
        for key, value in overrides.items():
            if key not in self.DEFAULTS:
                raise ConfigError(f"Unknown setting: {key}")
            if value is not None:
                self._data[key] = value
        self.validate()

    def _load(self):
        if os.path.exists(self.path):
            try:
                with open(self.path, "r") as f:
                    stored = json.load(f)
                self._data.update({k: v for k, v in stored.items() if k in self.DEFAULTS})
            except (json.JSONDecodeError, OSError, AttributeError) as e:
                log.warning("Ignoring unreadable config %s: %s", self.path, e)

    def _apply_env(self, env):
        if env.get("ZIM_DIR"):
            self._data["zim_dir"] = env["ZIM_DIR"]
        for key, default in self.DEFAULTS.items():
            raw = env.get("ZIMLOOK_" + key.upper())
            if raw is None or raw == "":
                continue
            self._data[key] = _coerce(key, raw, default)

    def validate(self):
        """Raise ConfigError if a setting is out of range."""
        checks = (
            ("server_type", SERVER_TYPES),
            ("api_version", API_VERSIONS),
            ("browser", BROWSERS),
            ("completion", COMPLETIONS),
        )
        for key, allowed in checks:
            if self._data[key] not in allowed:
                raise ConfigError(f"{key} must be one of {', '.join(allowed)}; got {self._data[key]!r}")
        port = self._data["port"]
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigError(f"port must be between 1 and 65535; got {port!r}")
        if self._data["browser"] == "command" and not self._data["browser_command"]:
            raise ConfigError("browser 'command' requires browser_command")

    def save(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)

    def get(self, key):
        return self._data.get(key, self.DEFAULTS.get(key))

    def set(self, key, value):
        if key not in self.DEFAULTS:
            raise ConfigError(f"Unknown setting: {key}")
        self._data[key] = value

    def __getattr__(self, name):
        # Only called for names not found normally, i.e. setting keys
        if name.startswith("_") or name not in self.DEFAULTS:
            raise AttributeError(name)
        return self.get(name)

    @property
    def server_root(self):
        """Base URL of the content server, e.g. http://127.0.0.1:8000"""
        return f"{self.get('server_url').rstrip('/')}:{self.get('port')}"

    @property
    def zim_path(self):
        return os.path.expanduser(self.get("zim_dir"))

    @property
    def library_path(self):
        return os.path.join(self.zim_path, self.get("library_file"))
