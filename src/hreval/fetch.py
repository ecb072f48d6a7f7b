"""HTTP retrieval of applicant artifacts (audio, résumés, profile pages)."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from .errors import FetchError

_USER_AGENT = "Mozilla/5.0 (compatible; hreval/0.1)"


@dataclass(slots=True, frozen=True)
class FetchedResource:
    url: str
    content: bytes
    content_type: str

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class HttpFetcher:
    """Downloads resources, raising FetchError for any failure."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = timeout
        self._http_client = http_client
        self._logger = structlog.get_logger(__name__)

    async def fetch(self, url: str, *, accept: str = "*/*") -> FetchedResource:
        headers = {"Accept": accept, "User-Agent": _USER_AGENT}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, headers=headers, follow_redirects=True)
            else:
                async with httpx.AsyncClient(
                    timeout=self._timeout, follow_redirects=True
                ) as client:
                    response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.warning("fetch.unreachable", url=url, error=str(exc))
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

        if not response.is_success:
            self._logger.warning("fetch.bad_status", url=url, status=response.status_code)
            raise FetchError(
                f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        return FetchedResource(url=url, content=response.content, content_type=content_type)
