"""Route table assembly."""
from __future__ import annotations

import logging

from arena_api.api.handlers import ALL_GROUPS
from arena_api.core.routing import RouteTable

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "cust/rc"
# Deprecated root prefix kept for existing clients
ROOT_PREFIX = ""
BASE_PREFIXES = (CUSTOM_PREFIX, ROOT_PREFIX)


def build_route_table(groups=ALL_GROUPS, prefixes=BASE_PREFIXES) -> RouteTable:
    """Register every handler group under each base prefix, in order."""
    table = RouteTable()
    for prefix in prefixes:
        for group in groups:
            table.include(group, prefix)
    logger.info("Registered %d routes under %s", len(table), ", ".join(f"/{p}" for p in prefixes))
    return table
