"""Async HTTP wrapper shared by the Google API clients."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success response from a Google API. The body is kept verbatim."""

    def __init__(self, status_code: int, body: str, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Request failed with status code {status_code}: {body}")


def bearer_headers(token: str) -> dict[str, str]:
    """Headers for OAuth-authenticated Workspace APIs (Docs, Drive)."""
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
    }


def api_key_headers(api_key: str) -> dict[str, str]:
    """Headers for the Generative Language API."""
    return {"x-goog-api-key": api_key}


def _redirect_location(response: httpx.Response) -> str | None:
    if 300 <= response.status_code < 400 and "location" in response.headers:
        return str(response.url.join(response.headers["location"]))
    return None


class GoogleApiClient:
    """Thin async client around httpx with manual redirect following.

    Redirects are followed by hand so the same headers (including the
    bearer token) are re-sent to the new location, up to ``max_redirects``
    hops. Use as an async context manager; the underlying
    ``httpx.AsyncClient`` is closed on exit.
    """

    def __init__(
        self,
        headers: dict[str, str],
        *,
        timeout: float = 60.0,
        max_redirects: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_redirects = max_redirects
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def __aenter__(self) -> GoogleApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded body.

        JSON bodies are parsed; anything else comes back as text. Non-2xx
        responses raise ApiError with the response body as detail.
        """
        for _ in range(self.max_redirects + 1):
            response = await self._client.request(
                method, url, params=params, json=json, content=content, headers=headers
            )
            location = _redirect_location(response)
            if location is None:
                break
            logger.debug("%s %s redirected to %s", method, url, location)
            url, params = location, None
        else:
            raise ApiError(
                response.status_code,
                f"Too many redirects (limit {self.max_redirects})",
                url,
            )

        if not response.is_success:
            raise ApiError(response.status_code, response.text, str(response.url))
        try:
            return response.json()
        except ValueError:
            return response.text

    async def request_json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """``request()`` for endpoints that answer with a JSON object.

        A 2xx body that is not an object (an HTML proxy page, a bare string)
        raises ValueError instead of leaking through to ``.get()`` callers.
        """
        data = await self.request(method, url, **kwargs)
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response from {url}: {str(data)[:200]!r}")
        return data

    async def download(
        self,
        url: str,
        destination: str | Path,
        *,
        params: dict[str, Any] | None = None,
    ) -> Path:
        """Stream a GET response body to ``destination``.

        The file is only created once a 200 arrives. If the transfer or the
        write fails midway the partial file is removed before re-raising.
        """
        dest = Path(destination)
        for _ in range(self.max_redirects + 1):
            async with self._client.stream("GET", url, params=params) as response:
                location = _redirect_location(response)
                if location is None:
                    if response.status_code != 200:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ApiError(response.status_code, body, str(response.url))
                    await _write_stream(response, dest)
                    return dest
            logger.debug("download %s redirected to %s", url, location)
            url, params = location, None

        raise ApiError(
            response.status_code,
            f"Too many redirects (limit {self.max_redirects})",
            url,
        )


async def _write_stream(response: httpx.Response, dest: Path) -> None:
    written = 0
    try:
        with open(dest, "wb") as f:
            async for chunk in response.aiter_bytes():
                f.write(chunk)
                written += len(chunk)
    except Exception:
        dest.unlink(missing_ok=True)
        raise
    logger.debug("wrote %s (%d bytes)", dest, written)
