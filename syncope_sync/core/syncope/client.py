"""Low-level HTTP client for the Syncope REST API.

Handles basic authentication, the domain header, and HTTP operations.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any

import requests

from .exceptions import DirectoryAPIError, DirectoryUnavailableError

REQUEST_TIMEOUT = 5
DEFAULT_DOMAIN = "Master"


class SyncopeClient:
    """HTTP client for the Syncope REST API.

    Features:
    - HTTP basic authentication on every request
    - X-Syncope-Domain header for multi-domain deployments
    - Centralized error handling (transport failures vs HTTP errors)

    Usage:
        client = SyncopeClient("http://syncope:8080/syncope/rest", "admin", "password")
        response = client.get("/realms/sitea")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        username: str = "",
        password: str = "",
        domain: str = DEFAULT_DOMAIN,
    ):
        """Initialize Syncope client.

        Args:
            base_url: Syncope REST base URL (defaults to SYNCOPE_ENDPOINT env var)
            username: Service username
            password: Service password
            domain: Syncope domain sent with every request
        """
        self.base_url = (base_url or os.environ.get("SYNCOPE_ENDPOINT", "http://syncope:8080/syncope/rest")).rstrip("/")
        self.domain = domain
        self._auth = (username, password)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "X-Syncope-Domain": self.domain,
            "Accept": "application/json",
            "Prefer": "return-content",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Args:
            path: API endpoint path (e.g., "/anyObjects/<key>")
            params: Query parameters

        Returns:
            Response object

        Raises:
            DirectoryUnavailableError: On connection failure
            DirectoryAPIError: On HTTP error
        """
        return self._request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with a JSON payload."""
        return self._request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PUT request with a JSON payload."""
        return self._request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request."""
        return self._request("DELETE", path, **kwargs)

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))
        try:
            resp = requests.request(
                method,
                url,
                headers=headers,
                auth=self._auth,
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise DirectoryUnavailableError() from exc
        self._handle_error(resp, url)
        return resp

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            DirectoryAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise DirectoryAPIError(resp.status_code, _error_message(resp), url)


def _error_message(resp: requests.Response) -> str:
    """Extract the most useful error text from a Syncope error response."""
    # Syncope puts the error summary in X-Application-Error-Info.
    info = resp.headers.get("X-Application-Error-Info") if resp.headers else None
    if info:
        return info
    return resp.text or resp.reason or ""
