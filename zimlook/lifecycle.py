"""Start, stop and health-check the kiwix-serve content server."""

import logging
import subprocess
import threading

from zimlook import transport
from zimlook.config import DOCKER_LOCAL, DOCKER_REMOTE, KIWIX_SERVE_LOCAL
from zimlook.errors import TransportError

log = logging.getLogger("zimlook.lifecycle")

CONTAINER_PORT = 80
CONTAINER_DATA_DIR = "/data"


def docker_run_command(config):
    """docker argv that serves zim_dir read-only on the configured port."""
    return [
        config.docker_command, "container", "run", "-d", "--rm",
        "--name", config.container_name,
        "-v", f"{config.zim_path}:{CONTAINER_DATA_DIR}:ro",
        "-p", f"{config.port}:{CONTAINER_PORT}",
        config.docker_image,
        "--library", config.library_file,
    ]


def kiwix_serve_command(config):
    return [
        config.kiwix_serve_command,
        "--port", str(config.port),
        "--library", config.library_path,
    ]


class ServerManager:
    """Owns the local kiwix-serve process, if we started one.

    Only the native topology keeps a handle; containers are started
    detached and left to docker, remote servers are someone else's.
    """

    def __init__(self, config, popen=None, run=None):
        self.config = config
        self.process = None
        self._popen = popen or subprocess.Popen
        self._run = run or subprocess.run
        self._pull_started = False

    @property
    def running(self):
        return self.process is not None and self.process.poll() is None

    def launch(self):
        server_type = self.config.server_type
        if server_type == DOCKER_REMOTE:
            log.info("Server at %s is managed remotely; start it on that host", self.config.server_root)
        elif server_type == DOCKER_LOCAL:
            argv = docker_run_command(self.config)
            log.info("Starting kiwix-serve container: %s", " ".join(argv))
            self._spawn(argv)
        elif server_type == KIWIX_SERVE_LOCAL:
            if self.running:
                # Known limitation: the old process is orphaned, not stopped
                log.warning("kiwix-serve (pid %s) already running; starting another", self.process.pid)
            argv = kiwix_serve_command(self.config)
            log.info("Starting kiwix-serve: %s", " ".join(argv))
            self.process = self._spawn(argv)

    def _spawn(self, argv):
        try:
            return self._popen(argv, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            log.warning("Could not start %s: %s", argv[0], e)
            return None

    def stop(self):
        proc, self.process = self.process, None
        if proc is None:
            return
        log.info("Stopping kiwix-serve (pid %s)", proc.pid)
        try:
            proc.terminate()
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        except OSError as e:
            log.debug("kiwix-serve already gone: %s", e)

    def ping(self):
        """True if the server root answers."""
        url = self.config.server_root + "/"
        try:
            transport.fetch(url, timeout=self.config.ping_timeout)
            return True
        except TransportError as e:
            log.info("Kiwix server not reachable: %s", e)
        if self.config.server_type == DOCKER_LOCAL and not self._pull_started:
            self._pull_started = True
            threading.Thread(target=self._ensure_image, daemon=True).start()
        return False

    def _ensure_image(self):
        """Pull the kiwix-serve image if docker doesn't have it. Best effort."""
        docker, image = self.config.docker_command, self.config.docker_image
        try:
            found = self._run([docker, "image", "inspect", image],
                              stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            if found.returncode != 0:
                log.info("Pulling docker image %s", image)
                self._run([docker, "pull", image],
                          stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            log.warning("Could not check docker image %s: %s", image, e)
