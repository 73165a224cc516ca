"""Arena data-layer access.

Architecture:
- entities.py: records as the Arena data layer returns them (sentinel ids/dates)
- store.py: ArenaStore interface consumed by the facade
- memory.py: in-memory store + demo seed data
- client.py / http_store.py: Arena data service over HTTP
- blobs.py: public blob URL construction
- exceptions.py: typed exceptions
"""
from .blobs import BlobUrlBuilder
from .client import ArenaClient, REQUEST_TIMEOUT
from .exceptions import ArenaAPIError, ArenaError
from .http_store import HttpArenaStore
from .memory import InMemoryArenaStore, build_demo_store
from .store import ArenaStore, is_missing

__all__ = [
    "ArenaAPIError",
    "ArenaClient",
    "ArenaError",
    "ArenaStore",
    "BlobUrlBuilder",
    "HttpArenaStore",
    "InMemoryArenaStore",
    "REQUEST_TIMEOUT",
    "build_demo_store",
    "is_missing",
]
