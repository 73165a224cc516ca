"""Low-level HTTP client for the Arena data service.

Handles service-account authentication, token refresh and HTTP error mapping.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import requests

from .exceptions import ArenaAPIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5


class ArenaClient:
    """HTTP client for the Arena data service with automatic token management.

    Usage:
        client = ArenaClient("http://arena-data:8080")
        client.authenticate_service_account("arena-facade", "secret")
        response = client.get("/people/42")
    """

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_params: Dict[str, Any] = {}

    def authenticate_service_account(self, client_id: str, client_secret: str) -> str:
        """Authenticate with client credentials and keep them for auto-refresh.

        Args:
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_params = {"client_id": client_id, "client_secret": client_secret}
        return self._refresh_token()

    def _refresh_token(self) -> str:
        url = f"{self.base_url}/oauth/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self._auth_params["client_id"],
            "client_secret": self._auth_params["client_secret"],
        }
        resp = requests.post(url, data=data, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            raise ArenaAPIError(resp.status_code, resp.text, url)
        payload = resp.json()
        self._token = payload["access_token"]
        # Refresh a little before the server-side expiry
        lifetime = int(payload.get("expires_in", 60))
        self._token_expires_at = datetime.now() + timedelta(seconds=max(lifetime - 10, 1))
        return self._token

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._auth_params:
            raise ArenaAPIError(401, "Not authenticated - call authenticate_service_account first", "")
        if not self._token or not self._token_expires_at or datetime.now() >= self._token_expires_at:
            self._refresh_token()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = dict(extra or {})
        headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Raises:
            ArenaAPIError: On HTTP error
        """
        self._ensure_authenticated()
        headers = self._headers(kwargs.pop("headers", None))
        resp = requests.get(f"{self.base_url}{path}", params=params, headers=headers,
                            timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, data: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication.

        Raises:
            ArenaAPIError: On HTTP error
        """
        self._ensure_authenticated()
        headers = self._headers(kwargs.pop("headers", None))
        resp = requests.post(f"{self.base_url}{path}", json=json, data=data, headers=headers,
                             timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def put(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute PUT request with automatic authentication.

        Raises:
            ArenaAPIError: On HTTP error
        """
        self._ensure_authenticated()
        headers = self._headers(kwargs.pop("headers", None))
        resp = requests.put(f"{self.base_url}{path}", json=json, headers=headers,
                            timeout=REQUEST_TIMEOUT, **kwargs)
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Raise ArenaAPIError for any 4xx/5xx response."""
        if resp.status_code >= 400:
            logger.warning("Arena data service returned %s for %s", resp.status_code, resp.url)
            raise ArenaAPIError(resp.status_code, resp.text, resp.url)
