"""
Pydantic models for normalized analytics records.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Podcast(BaseModel):
    """Show from the user's catalog"""
    id: str
    name: str
    publisher: str = ""
    coverArt: Optional[str] = None


class Episode(BaseModel):
    """Episode row of the paged listing"""
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: str = ""
    releaseDate: Optional[str] = None
    duration: Optional[float] = None
    starts: Optional[int] = None
    streams: Optional[int] = None
    listeners: Optional[int] = None


class StreamData(BaseModel):
    date: str
    episodeId: str = ""
    episodeName: str = ""
    streams: int = 0
    starts: int = 0


class ListenerData(BaseModel):
    date: str
    episodeId: str = ""
    episodeName: str = ""
    listeners: int = 0


class FollowerData(BaseModel):
    date: str
    followers: int = 0
    netChange: int = 0  # Change against the previous day


class DemographicData(BaseModel):
    percentage: float
    listenerCount: float
    countryName: Optional[str] = None


# facet (age, gender, country) -> category -> share
Demographics = Dict[str, Dict[str, DemographicData]]


class PerformanceData(BaseModel):
    episodeId: str
    episodeName: str
    averageListenPercentage: float = 0
    medianListenPercentage: float = 0
    completionRate: float = 0


class ExportSummary(BaseModel):
    recordCount: int
    fileSize: int


class ExportResult(BaseModel):
    """Outcome of SpotifyAnalytics.export_all"""
    files: List[str] = Field(default_factory=list)
    duration_ms: int = 0
    summary: Dict[str, ExportSummary] = Field(default_factory=dict)
