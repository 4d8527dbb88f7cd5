"""
HTTP transport for registry queries.

Plain unauthenticated GET requests with no retry: a failed request surfaces
immediately so the invoking build can be retried externally.
"""

import importlib.metadata
from typing import Any, Optional

import requests

from nethost_fetch.constants import HEADERS_JSON
from nethost_fetch.exceptions import (
    DownloadFailedError,
    InvalidRegistryResponseError,
    RegistryUnreachableError,
)
from nethost_fetch.log_utils import logger

_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `nethost-fetch/{version}`, where `{version}` is the installed package
        version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("nethost-fetch")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"nethost-fetch/{app_version}"

    return _USER_AGENT_CACHE


class RegistryClient:
    """
    Thin wrapper over a ``requests.Session`` for registry documents and archives.

    A session may be injected (tests pass a mock); otherwise one is created and
    owned by the client, and closed by ``close()`` or the context manager.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.request_count = 0

    def __enter__(self) -> "RegistryClient":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def _get(self, url: str, headers: Optional[dict] = None) -> requests.Response:
        request_headers = {"User-Agent": get_user_agent()}
        if headers:
            request_headers.update(headers)
        self.request_count += 1
        logger.debug(f"GET {url}")
        response = self.session.get(url, headers=request_headers, timeout=self.timeout)
        logger.debug(f"Received HTTP {response.status_code} for {url}")
        response.raise_for_status()
        return response

    def get_json(self, url: str) -> Any:
        """
        Fetch a registry document and decode it as JSON.

        Raises:
            RegistryUnreachableError: On connection failure or an HTTP error status.
            InvalidRegistryResponseError: If the body is not valid JSON.
        """
        try:
            response = self._get(url, HEADERS_JSON)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise RegistryUnreachableError(
                f"Registry returned HTTP {status}",
                url=url,
                status_code=status,
                details=str(e),
            ) from e
        except requests.RequestException as e:
            raise RegistryUnreachableError(
                "Failed to query the package registry. Are you connected to the internet?",
                url=url,
                details=str(e),
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise InvalidRegistryResponseError(
                "Failed to parse JSON response from the registry",
                url=url,
                details=str(e),
            ) from e

    def get_bytes(self, url: str) -> bytes:
        """
        Download a binary resource fully into memory.

        Raises:
            DownloadFailedError: On connection failure or an HTTP error status.
        """
        try:
            response = self._get(url)
            return response.content
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise DownloadFailedError(
                f"Package download returned HTTP {status}",
                url=url,
                status_code=status,
                details=str(e),
            ) from e
        except requests.RequestException as e:
            raise DownloadFailedError(
                "Failed to download package archive", url=url, details=str(e)
            ) from e
