"""Resilient connector for the Spotify for Podcasters analytics API"""

from .executor import RETRYABLE_STATUS_CODES, RequestDescriptor, RequestExecutor
from .pagination import PaginatedStream
from .client import IMPRESSIONS_DAYS_DIFF, SpotifyConnector, create_http_client

__all__ = [
    "RETRYABLE_STATUS_CODES",
    "RequestDescriptor",
    "RequestExecutor",
    "PaginatedStream",
    "IMPRESSIONS_DAYS_DIFF",
    "SpotifyConnector",
    "create_http_client",
]
