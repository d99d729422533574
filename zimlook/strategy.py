"""(topology, API version) → how to list archives and how to build URLs.

The only place that branches on the server arrangement; catalog and
dispatch look their behavior up here instead of repeating the conditions.
"""

import collections

from zimlook import catalog, dispatch
from zimlook.config import DOCKER_LOCAL, DOCKER_REMOTE, KIWIX_SERVE_LOCAL
from zimlook.errors import ConfigError

Strategy = collections.namedtuple("Strategy", ["fetch_catalog", "build_url"])

_LOCAL = Strategy(catalog.scan_local_archives, dispatch.search_url)

STRATEGIES = {
    (DOCKER_REMOTE, "v2"): Strategy(catalog.fetch_opds_catalog, dispatch.article_url),
    (DOCKER_REMOTE, "v1"): Strategy(catalog.fetch_html_index, dispatch.search_url),
    (DOCKER_LOCAL, "v2"): _LOCAL,
    (DOCKER_LOCAL, "v1"): _LOCAL,
    (KIWIX_SERVE_LOCAL, "v2"): _LOCAL,
    (KIWIX_SERVE_LOCAL, "v1"): _LOCAL,
}


def select(config):
    key = (config.server_type, config.api_version)
    try:
        return STRATEGIES[key]
    except KeyError:
        raise ConfigError(f"Unsupported server_type/api_version: {key[0]}/{key[1]}") from None
