"""Spotify for Podcasters connector - low-level API client

Every method maps onto one endpoint of the private analytics API and
returns the decoded payload untouched.
"""

import asyncio
import datetime
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from podcaster_auth import AuthenticationSession, Credentials
from settings import BASE_URL, CONNECT_TIMEOUT, REQUEST_TIMEOUT
from utils.dates import DateLike, add_years, as_date, date_params, format_date
from .executor import RequestDescriptor, RequestExecutor
from .pagination import PaginatedStream

logger = logging.getLogger(__name__)

IMPRESSIONS_DAYS_DIFF = 29
IMPRESSION_KINDS = ("total", "daily", "faceted")


def create_http_client() -> httpx.AsyncClient:
    """HTTP client with the configured timeouts"""
    return httpx.AsyncClient(timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT))


class SpotifyConnector:
    """Low-level client bound to one podcast

    Owns the authentication session, so all concurrent calls made through
    one connector share a single bearer token.
    """

    def __init__(
        self,
        podcast_id: str,
        credentials: Credentials,
        base_url: str = BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the connector

        Args:
            podcast_id: Show id used by the show-level endpoints
            credentials: Session cookies and client id
            base_url: API root, without trailing slash
            http_client: Shared client; when omitted the connector creates
                and closes its own
            sleep: Coroutine used for backoff waits
        """
        self.podcast_id = podcast_id
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.client = http_client or create_http_client()
        self.session = AuthenticationSession(credentials, self.client)
        self.executor = RequestExecutor(self.session, self.client, sleep=sleep)

    async def __aenter__(self) -> "SpotifyConnector":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the HTTP client if the connector created it"""
        if self._owns_client:
            await self.client.aclose()

    def build_url(self, *paths: str) -> str:
        return "/".join([self.base_url, *paths])

    def _scoped_url(self, operation: str, episode_id: Optional[str] = None) -> str:
        """Episode-level URL when an episode id is given, show-level otherwise"""
        if episode_id:
            return self.build_url("episodes", episode_id, operation)
        return self.build_url("shows", self.podcast_id, operation)

    async def _request(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        return await self.executor.execute(RequestDescriptor(url, params or {}))

    async def metadata(self, episode_id: Optional[str] = None) -> Dict[str, Any]:
        """Show metadata, or episode metadata when episode_id is given"""
        return await self._request(self._scoped_url("metadata", episode_id))

    async def streams(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Daily starts and streams"""
        return await self._request(
            self._scoped_url("detailedStreams", episode_id),
            date_params(start, end or start),
        )

    async def listeners(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Daily unique listeners"""
        return await self._request(
            self._scoped_url("listeners", episode_id),
            date_params(start, end or start),
        )

    async def followers(self, start: DateLike, end: Optional[DateLike] = None) -> Dict[str, Any]:
        """Daily follower counts of the show"""
        return await self._request(
            self.build_url("shows", self.podcast_id, "followers"),
            date_params(start, end or start),
        )

    async def aggregate(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Demographic aggregate (age, gender, country)"""
        return await self._request(
            self._scoped_url("aggregate", episode_id),
            date_params(start, end or start),
        )

    def impression_date_range(
        self,
        kind: str,
        start: datetime.date,
        end: datetime.date
    ) -> Tuple[datetime.date, datetime.date]:
        """Adjust a date range to what the impressions endpoint accepts

        total and faceted impressions always cover IMPRESSIONS_DAYS_DIFF
        days from start; daily impressions only need end >= start.
        """
        if kind in ("total", "faceted"):
            new_end = start + datetime.timedelta(days=IMPRESSIONS_DAYS_DIFF)
            if new_end != end:
                logger.warning(
                    f"kind is {kind}, overriding end date to be {IMPRESSIONS_DAYS_DIFF} days "
                    f"after start date ({format_date(start)}). New end date: {format_date(new_end)}"
                )
            return start, new_end

        if end < start:
            logger.warning(
                f"End date {format_date(end)} is before start date {format_date(start)}, "
                "setting end date to start date."
            )
            return start, start

        return start, end

    async def impressions(
        self,
        kind: str = "total",
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> Dict[str, Any]:
        """Impressions of the show on Spotify surfaces

        Args:
            kind: One of total, daily or faceted
            start: Defaults to IMPRESSIONS_DAYS_DIFF days ago
            end: Defaults to IMPRESSIONS_DAYS_DIFF days after start
        """
        if kind not in IMPRESSION_KINDS:
            raise ValueError(f"Unknown impressions kind {kind!r}, expected one of {IMPRESSION_KINDS}")

        days = datetime.timedelta(days=IMPRESSIONS_DAYS_DIFF)
        start_date = as_date(start) if start else datetime.date.today() - days
        end_date = as_date(end) if end else start_date + days
        start_date, end_date = self.impression_date_range(kind, start_date, end_date)

        return await self._request(
            self.build_url("shows", self.podcast_id, "impressions", kind),
            date_params(start_date, end_date),
        )

    def episodes(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        page: int = 1,
        size: int = 50,
        sort_by: str = "releaseDate",
        sort_order: str = "descending",
        filter_by: str = "",
    ) -> PaginatedStream:
        """Episodes of the show, fetched page by page as they are consumed"""
        params = {
            **date_params(start, end or start),
            "sortBy": sort_by,
            "sortOrder": sort_order,
            "filter": filter_by,
        }
        return PaginatedStream(
            self.executor,
            self.build_url("shows", self.podcast_id, "episodes"),
            params,
            start_page=page,
            page_size=size,
        )

    async def catalog(self) -> Dict[str, Any]:
        """Shows the logged-in user has access to"""
        today = datetime.date.today()
        return await self._request(
            self.build_url("user", "shows"),
            {
                "page": "1",
                "size": "200",
                "sortBy": "name",
                "sortOrder": "ascending",
                # Wide range so that every show is included
                **date_params(add_years(today, -10), add_years(today, 1)),
            },
        )

    async def performance(self, episode_id: str) -> Dict[str, Any]:
        """Listen-through performance of an episode"""
        return await self._request(self.build_url("episodes", episode_id, "performance"))

    async def me(self) -> Dict[str, Any]:
        """Identity of the logged-in user"""
        return await self._request(self.build_url("user", "me"))
