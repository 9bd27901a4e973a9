"""High-level analytics client, record models and exporters"""

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
from .exporters import CSVExporter, JSONExporter
from .client import DATA_TYPES, EXPORT_FORMATS, SpotifyAnalytics

__all__ = [
    "DemographicData",
    "Demographics",
    "Episode",
    "ExportResult",
    "ExportSummary",
    "FollowerData",
    "ListenerData",
    "PerformanceData",
    "Podcast",
    "StreamData",
    "CSVExporter",
    "JSONExporter",
    "DATA_TYPES",
    "EXPORT_FORMATS",
    "SpotifyAnalytics",
]
