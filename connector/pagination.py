"""Lazy iteration over the paged episode listing"""

import logging
from typing import Any, AsyncIterator, Dict, Optional

from .executor import RequestDescriptor, RequestExecutor

logger = logging.getLogger(__name__)


class PaginatedStream:
    """Async iterable over every item of a paged listing endpoint

    A page is only requested once the consumer has used up the previous
    one, so breaking out of an ``async for`` early leaves later pages
    unfetched. Each ``async for`` starts over at ``start_page``.

    Example:
        async for episode in connector.episodes(start=date(2024, 1, 1)):
            print(episode["name"])
    """

    def __init__(
        self,
        executor: RequestExecutor,
        url: str,
        params: Optional[Dict[str, str]] = None,
        start_page: int = 1,
        page_size: int = 50,
        items_key: str = "episodes",
    ):
        self.executor = executor
        self.url = url
        self.params = dict(params or {})
        self.start_page = start_page
        self.page_size = page_size
        self.items_key = items_key

    async def fetch_page(self, page: int) -> Dict[str, Any]:
        """Fetch a single page through the retrying executor"""
        params = {
            **self.params,
            "page": str(page),
            "size": str(self.page_size),
        }
        logger.debug(f"Fetching page {page} of {self.url}")
        return await self.executor.execute(RequestDescriptor(self.url, params))

    async def pages(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield raw page payloads, one request per page"""
        current_page = self.start_page
        while True:
            response = await self.fetch_page(current_page) or {}
            yield response

            total_pages = response.get("totalPages")
            items = response.get(self.items_key) or []
            if total_pages is None or not items or current_page >= total_pages:
                break
            current_page += 1

    async def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        async for response in self.pages():
            for item in response.get(self.items_key) or []:
                yield item
