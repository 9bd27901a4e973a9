"""Spotify Analytics - high-level API client

Wraps SpotifyConnector and turns the raw payloads, which come in more than
one shape depending on show/episode level, into flat records.
"""

import datetime
import logging
import re
import statistics
import time
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from config import ConfigurationError
from connector import SpotifyConnector, create_http_client
from podcaster_auth import Credentials
from settings import BASE_URL
from utils.dates import DateLike, format_date
from .exporters import CSVExporter, JSONExporter
from .models import (
    DemographicData,
    Demographics,
    Episode,
    ExportResult,
    ExportSummary,
    FollowerData,
    ListenerData,
    PerformanceData,
    Podcast,
    StreamData,
)

logger = logging.getLogger(__name__)

DATA_TYPES = ("episodes", "streams", "listeners", "followers", "demographics")
EXPORT_FORMATS = ("csv", "json", "both")
FACETS = ("age", "gender", "country")

# Samples above this listen-through percentage count as completed
COMPLETION_THRESHOLD = 90

# Placeholder show id for a connector used only for account-level calls
ACCOUNT_CONNECTOR_ID = "me"


def convert_demographics(raw: Optional[Dict[str, float]]) -> Dict[str, DemographicData]:
    """Turn category counts into counts plus percentage of the total"""
    if not raw:
        return {}

    total = sum(raw.values())
    return {
        key: DemographicData(
            percentage=(value / total) * 100 if total > 0 else 0,
            listenerCount=value,
        )
        for key, value in raw.items()
    }


def slugify(name: Optional[str]) -> str:
    if not name:
        return "podcast"
    return re.sub(r"[^a-z0-9]", "_", name, flags=re.IGNORECASE).lower()


def flatten_demographics(demographics: Demographics) -> List[Dict[str, Any]]:
    """One row per facet/category pair, for CSV export"""
    rows = []
    for facet, categories in demographics.items():
        for category, data in categories.items():
            rows.append({
                "facet": facet,
                "category": category,
                "percentage": data.percentage,
                "listenerCount": data.listenerCount,
                "countryName": data.countryName or "",
            })
    return rows


class SpotifyAnalytics:
    """High-level client for one Spotify for Podcasters account"""

    def __init__(
        self,
        credentials: Credentials,
        podcast_id: Optional[str] = None,
        base_url: str = BASE_URL,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the analytics client

        Args:
            credentials: Session cookies and client id
            podcast_id: Default show for per-show operations
            base_url: API root
            http_client: Shared HTTP client; created and owned when omitted
        """
        self.credentials = credentials
        self.default_podcast_id = podcast_id
        self.base_url = base_url
        self._owns_client = http_client is None
        self.client = http_client or create_http_client()
        self._connectors: Dict[str, SpotifyConnector] = {}

    async def __aenter__(self) -> "SpotifyAnalytics":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    def get_connector(self, podcast_id: Optional[str] = None) -> SpotifyConnector:
        """Connector for a show, cached so its bearer token is reused

        Raises:
            ConfigurationError: If no podcast id is given or configured
        """
        podcast_id = podcast_id or self.default_podcast_id
        if not podcast_id:
            raise ConfigurationError(
                "Podcast ID is required. Provide it in the constructor or method arguments."
            )

        if podcast_id not in self._connectors:
            self._connectors[podcast_id] = SpotifyConnector(
                podcast_id,
                self.credentials,
                base_url=self.base_url,
                http_client=self.client,
            )
        return self._connectors[podcast_id]

    def _account_connector(self) -> SpotifyConnector:
        """Connector for endpoints that do not use the show id"""
        podcast_id = self.default_podcast_id or next(iter(self._connectors), ACCOUNT_CONNECTOR_ID)
        return self.get_connector(podcast_id)

    async def get_catalog(self) -> List[Podcast]:
        """Shows of the logged-in user"""
        response = await self._account_connector().catalog()
        return [
            Podcast(
                id=show["id"],
                name=show["name"],
                publisher=show.get("publisher") or "",
                coverArt=show.get("coverArt"),
            )
            for show in response.get("shows", [])
        ]

    async def get_episodes(
        self,
        podcast_id: Optional[str] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        sort_by: str = "releaseDate",
        sort_order: str = "descending",
        limit: Optional[int] = None,
    ) -> List[Episode]:
        """Episodes of a show, stopping after `limit` items

        start defaults to a year ago and end to today.
        """
        connector = self.get_connector(podcast_id)
        today = datetime.date.today()
        start = start or today - datetime.timedelta(days=365)
        end = end or today

        episodes: List[Episode] = []
        if limit is not None and limit <= 0:
            return episodes

        stream = connector.episodes(start, end, sort_by=sort_by, sort_order=sort_order)
        async for item in stream:
            episodes.append(Episode.model_validate(item))
            if limit is not None and len(episodes) >= limit:
                break
        return episodes

    async def get_streams(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None,
        podcast_id: Optional[str] = None,
    ) -> List[StreamData]:
        """Daily streams/starts as one row per date (and episode)

        Raises:
            ValueError: If the payload has neither known shape
        """
        response = await self.get_connector(podcast_id).streams(start, end or start, episode_id)

        # Show-level shape
        detailed = response.get("detailedStreams")
        if isinstance(detailed, list):
            return [
                StreamData(
                    date=row["date"],
                    episodeId=row.get("episodeId") or "",
                    episodeName=row.get("episodeName") or "",
                    starts=row.get("starts") or 0,
                    streams=row.get("streams") or 0,
                )
                for row in detailed
            ]

        # Episode-level shape: parallel arrays indexed by date
        dates = response.get("dates")
        per_episode = response.get("streams")
        if isinstance(per_episode, list) and dates:
            rows = []
            for episode in per_episode:
                streams = episode.get("streams") or []
                starts = episode.get("starts") or []
                for i, date in enumerate(dates):
                    rows.append(StreamData(
                        date=date,
                        episodeId=episode.get("episodeId") or "",
                        episodeName=episode.get("episodeName") or "",
                        streams=streams[i] if i < len(streams) else 0,
                        starts=starts[i] if i < len(starts) else 0,
                    ))
            return rows

        raise ValueError(f"Invalid streams response format: {response}")

    async def get_listeners(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None,
        podcast_id: Optional[str] = None,
    ) -> List[ListenerData]:
        """Daily unique listeners; empty when the payload has no data"""
        response = await self.get_connector(podcast_id).listeners(start, end or start, episode_id)

        counts = response.get("counts")
        if isinstance(counts, list):
            return [
                ListenerData(
                    date=row["date"],
                    episodeId=episode_id or "",
                    listeners=row.get("count") or 0,
                )
                for row in counts
            ]

        dates = response.get("dates")
        per_episode = response.get("listeners")
        if isinstance(per_episode, list) and dates:
            rows = []
            for episode in per_episode:
                values = episode.get("count") or []
                for i, date in enumerate(dates):
                    rows.append(ListenerData(
                        date=date,
                        episodeId=episode.get("episodeId") or "",
                        episodeName=episode.get("episodeName") or "",
                        listeners=values[i] if i < len(values) else 0,
                    ))
            return rows

        return []

    async def get_followers(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        podcast_id: Optional[str] = None,
    ) -> List[FollowerData]:
        """Daily follower totals with day-over-day change

        Raises:
            ValueError: If the payload has neither known shape
        """
        response = await self.get_connector(podcast_id).followers(start, end or start)

        counts = response.get("counts")
        if isinstance(counts, list):
            dates = [row["date"] for row in counts]
            values = [row.get("count") or 0 for row in counts]
        elif response.get("dates") is not None and response.get("followers") is not None:
            dates = response["dates"]
            values = [value or 0 for value in response["followers"]]
        else:
            raise ValueError(f"Invalid followers response format: {response}")

        rows = []
        for i, (date, value) in enumerate(zip(dates, values)):
            rows.append(FollowerData(
                date=date,
                followers=value,
                netChange=0 if i == 0 else value - values[i - 1],
            ))
        return rows

    async def get_demographics(
        self,
        start: DateLike,
        end: Optional[DateLike] = None,
        episode_id: Optional[str] = None,
        facet: str = "all",
        podcast_id: Optional[str] = None,
    ) -> Demographics:
        """Age, gender and country breakdown of listeners

        Args:
            facet: age, gender, country or all
        """
        if facet != "all" and facet not in FACETS:
            raise ValueError(f"Unknown facet {facet!r}")
        response = await self.get_connector(podcast_id).aggregate(start, end or start, episode_id)
        wanted = FACETS if facet == "all" else (facet,)

        if any(key in response for key in ("ageFacetedCounts", "genderedCounts", "countryCounts")):
            raw: Dict[str, Optional[Dict[str, float]]] = {
                "age": {
                    age_range: sum((data.get("counts") or {}).values())
                    for age_range, data in (response.get("ageFacetedCounts") or {}).items()
                } or None,
                "gender": (response.get("genderedCounts") or {}).get("counts"),
                "country": response.get("countryCounts"),
            }
        else:
            raw = {name: response.get(name) for name in FACETS}

        return {
            name: convert_demographics(raw[name])
            for name in wanted
            if raw.get(name)
        }

    async def get_performance(self, episode_id: str, podcast_id: Optional[str] = None) -> PerformanceData:
        """Listen-through statistics of an episode

        When the payload carries raw samples the statistics are computed
        from them instead of the precomputed fields.
        """
        connector = self.get_connector(podcast_id) if podcast_id else self._account_connector()
        response = await connector.performance(episode_id)
        metadata = await connector.metadata(episode_id)

        average = response.get("averageListenPercentage") or 0
        median = response.get("medianListenPercentage") or 0
        completion = response.get("completionRate") or 0

        samples = response.get("samples")
        if isinstance(samples, list) and samples:
            average = statistics.fmean(samples)
            median = statistics.median(samples)
            completed = sum(1 for sample in samples if sample > COMPLETION_THRESHOLD)
            completion = completed / len(samples) * 100

        episode_name = metadata.get("name") or (metadata.get("episode") or {}).get("name") or "Unknown"
        return PerformanceData(
            episodeId=response.get("episodeId") or episode_id,
            episodeName=episode_name,
            averageListenPercentage=average,
            medianListenPercentage=median,
            completionRate=completion,
        )

    async def _fetch(self, data_type: str, podcast_id: str, start: DateLike, end: DateLike) -> Any:
        if data_type == "episodes":
            return await self.get_episodes(podcast_id=podcast_id, start=start, end=end)
        if data_type == "streams":
            return await self.get_streams(start, end, podcast_id=podcast_id)
        if data_type == "listeners":
            return await self.get_listeners(start, end, podcast_id=podcast_id)
        if data_type == "followers":
            return await self.get_followers(start, end, podcast_id=podcast_id)
        if data_type == "demographics":
            return await self.get_demographics(start, end, podcast_id=podcast_id)
        raise ValueError(f"Unknown data type {data_type!r}")

    async def export_all(
        self,
        output_dir: str,
        start: DateLike,
        end: Optional[DateLike] = None,
        fmt: str = "csv",
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        podcast_id: Optional[str] = None,
        on_progress: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> ExportResult:
        """Export every data type of a show to output_dir

        Args:
            output_dir: Created if missing
            start: First day of the range
            end: Last day of the range, defaults to start
            fmt: csv, json or both
            include: Data types to export, defaults to all of DATA_TYPES
            exclude: Data types to skip
            podcast_id: Show to export, defaults to the configured one
            on_progress: Called with type/current/total/percentage before each type
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format {fmt!r}, expected one of {EXPORT_FORMATS}")

        started = time.monotonic()
        end = end or start
        connector = self.get_connector(podcast_id)
        podcast_id = connector.podcast_id

        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        metadata = await connector.metadata()
        show_name = (metadata.get("show") or {}).get("name") or metadata.get("name")
        slug = slugify(show_name)

        excluded = set(exclude or [])
        data_types = [t for t in (include or DATA_TYPES) if t not in excluded]
        result = ExportResult()

        for index, data_type in enumerate(data_types, start=1):
            if on_progress:
                on_progress({
                    "type": data_type,
                    "current": index,
                    "total": len(data_types),
                    "percentage": round(index / len(data_types) * 100),
                })

            data = await self._fetch(data_type, podcast_id, start, end)
            record_count = len(data) if isinstance(data, list) else 1
            base_name = f"{slug}_{data_type}_{format_date(start)}_{format_date(end)}"

            if fmt in ("csv", "both"):
                rows = flatten_demographics(data) if data_type == "demographics" else data
                csv_path = CSVExporter().write_file(rows, out / f"{base_name}.csv")
                result.files.append(str(csv_path))
                result.summary[data_type] = ExportSummary(
                    recordCount=record_count, fileSize=csv_path.stat().st_size
                )

            if fmt in ("json", "both"):
                json_path = JSONExporter().write_file(data, out / f"{base_name}.json")
                result.files.append(str(json_path))
                if fmt == "json":
                    result.summary[data_type] = ExportSummary(
                        recordCount=record_count, fileSize=json_path.stat().st_size
                    )

            logger.info(f"Exported {record_count} {data_type} record(s)")

        result.duration_ms = int((time.monotonic() - started) * 1000)
        return result
