"""Entity-to-contract mappers.

Mappers are pure: they read an Arena entity and build a new contract. This
is the only layer that turns data-layer sentinels (``-1`` ids, 1900-01-01
dates) into absent values.
"""
from .common import refilter
from .person import PersonMapper

__all__ = ["PersonMapper", "refilter"]
