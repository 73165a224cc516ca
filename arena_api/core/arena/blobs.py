"""Blob (image) URL construction."""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode
from uuid import UUID


class BlobUrlBuilder:
    """Build public ``CachedBlob.aspx`` URLs for stored blobs."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/") + "/"

    def build(self, guid: Optional[UUID], width: int = -1, height: int = -1) -> Optional[str]:
        """Return the blob URL, or None when there is no blob."""
        if guid is None:
            return None
        params = {"guid": str(guid)}
        if width > 0:
            params["width"] = str(width)
        if height > 0:
            params["height"] = str(height)
        return f"{self.base_url}CachedBlob.aspx?{urlencode(params)}"
