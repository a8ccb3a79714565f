import logging
import httpx
from typing import Any, Dict, Optional
from fake_useragent import UserAgent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

class HTTPClient:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.ua = UserAgent()
        self.client = httpx.AsyncClient(
            http2=False,
            follow_redirects=True,
            timeout=timeout,
            transport=transport,
        )

    def _get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.ua.random,
            "Accept": "application/json, application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def get_text(self, url: str) -> str:
        """
        Fetches a URL and returns the body as text.
        Raises httpx.HTTPStatusError on non-success status and
        httpx.RequestError on network failure; callers decide what to absorb.
        """
        response = await self.client.get(url, headers=self._get_headers())
        response.raise_for_status()
        logger.debug(f"Fetched {url} ({response.status_code})")
        return response.text

    async def get_json(self, url: str) -> Any:
        response = await self.client.get(url, headers=self._get_headers())
        response.raise_for_status()
        return response.json()

    async def post_json(self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """POST a JSON body. Returns the raw response; status is not checked."""
        merged = {"Content-Type": "application/json"}
        merged.update(headers or {})
        return await self.client.post(url, json=payload, headers=merged)

    async def close(self):
        await self.client.aclose()
