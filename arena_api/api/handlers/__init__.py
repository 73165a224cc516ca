"""Endpoint handler groups.

Each module declares a module-level ``routes`` RouteGroup. ALL_GROUPS fixes
the registration order, which is also the resolution order.
"""
from arena_api.api.handlers import events, oauth, people, profiles, smallgroups, system

ALL_GROUPS = (
    system.routes,
    people.routes,
    profiles.routes,
    smallgroups.routes,
    events.routes,
    oauth.routes,
)

__all__ = ["ALL_GROUPS"]
