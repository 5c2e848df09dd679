"""Pass-through fetcher for TMDb poster and backdrop images."""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True, slots=True)
class ProxiedImage:
    """An open upstream image response.

    The body has not been read yet. Callers must ``aclose()`` once the
    chunks are consumed (or abandoned) to release the connection.
    """

    response: httpx.Response

    @property
    def content_type(self) -> str:
        return self.response.headers.get("content-type", DEFAULT_CONTENT_TYPE)

    def iter_bytes(self) -> AsyncIterator[bytes]:
        return self.response.aiter_bytes()

    async def aclose(self) -> None:
        await self.response.aclose()


def is_safe_image_path(path: str) -> bool:
    """Image paths are relative, like ``w500/abc.jpg``."""
    return bool(path) and ".." not in path and not path.startswith("/")


class ImageProxy:
    """Fetches images from the TMDb image CDN for the web client."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the proxy.

        Args:
            base_url: CDN prefix, e.g. ``https://image.tmdb.org/t/p``.
            timeout: Upstream request timeout in seconds.
            transport: Optional transport override.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._http_client

    def url_for(self, path: str) -> str:
        return f"{self._base_url}/{path}"

    async def open(self, path: str) -> ProxiedImage:
        """Start downloading one image without buffering its body.

        Raises:
            ValueError: If the path is not a plain relative image path.
            httpx.HTTPError: On network errors or a non-2xx upstream status.
        """
        if not is_safe_image_path(path):
            raise ValueError(f"Invalid image path: {path!r}")
        client = self._get_http_client()
        request = client.build_request("GET", self.url_for(path))
        response = await client.send(request, stream=True)
        if response.is_error:
            await response.aclose()
        response.raise_for_status()
        return ProxiedImage(response)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
