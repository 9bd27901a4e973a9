"""Tests for the high-level SpotifyAnalytics client"""

import datetime
import json

import pytest

from analytics import SpotifyAnalytics
from analytics.client import convert_demographics, flatten_demographics, slugify
from config import ConfigurationError
from tests.conftest import API_BASE, json_response

START = datetime.date(2024, 1, 1)
END = datetime.date(2024, 1, 3)


def route(responses):
    """api_handler answering by the last path segment"""
    def handler(request):
        return json_response(responses.get(request.url.path.rsplit("/", 1)[-1], {}))
    return handler


@pytest.fixture
def analytics(credentials, http_client):
    return SpotifyAnalytics(credentials, podcast_id="show-1", base_url=API_BASE, http_client=http_client)


def test_convert_demographics_percentages():
    result = convert_demographics({"a": 1, "b": 3})

    assert result["a"].percentage == 25
    assert result["b"].percentage == 75
    assert result["b"].listenerCount == 3


def test_convert_demographics_empty_and_zero():
    assert convert_demographics(None) == {}
    assert convert_demographics({"a": 0})["a"].percentage == 0


def test_slugify():
    assert slugify("My Show: Episode 1!") == "my_show__episode_1_"
    assert slugify(None) == "podcast"


async def test_missing_podcast_id(credentials, http_client):
    client = SpotifyAnalytics(credentials, http_client=http_client)
    with pytest.raises(ConfigurationError):
        await client.get_streams(START)


async def test_connectors_are_cached_per_show(analytics):
    assert analytics.get_connector() is analytics.get_connector("show-1")
    assert analytics.get_connector("show-2") is not analytics.get_connector("show-1")


async def test_catalog(analytics, spotify):
    spotify.api_handler = route({"shows": {"shows": [
        {"id": "s1", "name": "First", "publisher": "Pub"},
        {"id": "s2", "name": "Second"},
    ]}})

    podcasts = await analytics.get_catalog()

    assert [p.id for p in podcasts] == ["s1", "s2"]
    assert podcasts[1].publisher == ""


async def test_catalog_without_podcast_id(credentials, http_client, spotify):
    spotify.api_handler = route({"shows": {"shows": [{"id": "s1", "name": "First"}]}})

    async with SpotifyAnalytics(credentials, base_url=API_BASE, http_client=http_client) as client:
        podcasts = await client.get_catalog()

    assert podcasts[0].name == "First"


async def test_episodes_respects_limit(analytics, spotify):
    def handler(request):
        page = int(request.url.params["page"])
        return json_response({
            "episodes": [{"id": f"{page}-{i}", "name": "Ep"} for i in range(50)],
            "totalPages": 10,
        })
    spotify.api_handler = handler

    episodes = await analytics.get_episodes(start=START, end=END, limit=60)

    assert len(episodes) == 60
    assert len(spotify.api_requests) == 2


async def test_show_level_streams(analytics, spotify):
    spotify.api_handler = route({"detailedStreams": {"detailedStreams": [
        {"date": "2024-01-01", "starts": 5, "streams": 3},
        {"date": "2024-01-02", "starts": None, "streams": 7},
    ]}})

    rows = await analytics.get_streams(START, END)

    assert [(r.date, r.starts, r.streams) for r in rows] == [
        ("2024-01-01", 5, 3),
        ("2024-01-02", 0, 7),
    ]


async def test_episode_level_streams(analytics, spotify):
    spotify.api_handler = route({"detailedStreams": {
        "dates": ["2024-01-01", "2024-01-02"],
        "streams": [{"episodeId": "e1", "episodeName": "One", "streams": [1, 2], "starts": [3]}],
    }})

    rows = await analytics.get_streams(START, END, episode_id="e1")

    assert [(r.date, r.streams, r.starts) for r in rows] == [
        ("2024-01-01", 1, 3),
        ("2024-01-02", 2, 0),
    ]
    assert rows[0].episodeName == "One"


async def test_unknown_streams_shape(analytics, spotify):
    spotify.api_handler = route({"detailedStreams": {"unexpected": True}})
    with pytest.raises(ValueError):
        await analytics.get_streams(START)


async def test_listeners(analytics, spotify):
    spotify.api_handler = route({"listeners": {"counts": [{"date": "2024-01-01", "count": 4}]}})

    rows = await analytics.get_listeners(START)

    assert rows[0].listeners == 4


async def test_listeners_unknown_shape_is_empty(analytics, spotify):
    spotify.api_handler = route({"listeners": {}})
    assert await analytics.get_listeners(START) == []


async def test_followers_net_change(analytics, spotify):
    spotify.api_handler = route({"followers": {"counts": [
        {"date": "2024-01-01", "count": 10},
        {"date": "2024-01-02", "count": 15},
        {"date": "2024-01-03", "count": 12},
    ]}})

    rows = await analytics.get_followers(START, END)

    assert [r.netChange for r in rows] == [0, 5, -3]


async def test_followers_parallel_arrays(analytics, spotify):
    spotify.api_handler = route({"followers": {"dates": ["2024-01-01", "2024-01-02"], "followers": [1, 3]}})

    rows = await analytics.get_followers(START, END)

    assert [(r.date, r.followers, r.netChange) for r in rows] == [("2024-01-01", 1, 0), ("2024-01-02", 3, 2)]


async def test_faceted_demographics(analytics, spotify):
    spotify.api_handler = route({"aggregate": {
        "ageFacetedCounts": {"18-22": {"counts": {"male": 2, "female": 2}}, "23-27": {"counts": {"male": 4}}},
        "genderedCounts": {"counts": {"male": 6, "female": 2}},
        "countryCounts": {"US": 8},
    }})

    demographics = await analytics.get_demographics(START, END)

    assert demographics["age"]["18-22"].percentage == 50
    assert demographics["gender"]["male"].percentage == 75
    assert demographics["country"]["US"].percentage == 100


async def test_single_facet(analytics, spotify):
    spotify.api_handler = route({"aggregate": {"age": {"a": 1}, "gender": {"m": 1}}})

    demographics = await analytics.get_demographics(START, facet="gender")

    assert list(demographics) == ["gender"]


async def test_unknown_facet(analytics):
    with pytest.raises(ValueError):
        await analytics.get_demographics(START, facet="income")


async def test_performance_from_samples(analytics, spotify):
    spotify.api_handler = route({
        "performance": {"samples": [100, 95, 50, 10]},
        "metadata": {"name": "Episode One"},
    })

    performance = await analytics.get_performance("ep-1")

    assert performance.episodeName == "Episode One"
    assert performance.averageListenPercentage == 63.75
    assert performance.medianListenPercentage == 72.5
    assert performance.completionRate == 50


async def test_export_all_writes_files(analytics, spotify, tmp_path):
    spotify.api_handler = route({
        "metadata": {"name": "My Show"},
        "episodes": {"episodes": [{"id": "e1", "name": "Ep 1"}], "totalPages": 1},
        "detailedStreams": {"detailedStreams": [{"date": "2024-01-01", "starts": 1, "streams": 1}]},
        "listeners": {"counts": [{"date": "2024-01-01", "count": 1}]},
        "followers": {"counts": [{"date": "2024-01-01", "count": 9}]},
        "aggregate": {"age": {"18-22": 1}},
    })
    progress = []

    result = await analytics.export_all(
        str(tmp_path / "out"), START, END, fmt="both", on_progress=progress.append
    )

    assert len(result.files) == 10
    assert [p["type"] for p in progress] == ["episodes", "streams", "listeners", "followers", "demographics"]
    assert progress[-1]["percentage"] == 100
    assert result.summary["followers"].recordCount == 1

    csv_file = tmp_path / "out" / "my_show_demographics_2024-01-01_2024-01-03.csv"
    assert csv_file.read_text().splitlines()[0] == "facet,category,percentage,listenerCount,countryName"
    streams_json = tmp_path / "out" / "my_show_streams_2024-01-01_2024-01-03.json"
    assert json.loads(streams_json.read_text())[0]["streams"] == 1


async def test_export_all_include_exclude(analytics, spotify, tmp_path):
    spotify.api_handler = route({"followers": {"counts": []}, "listeners": {"counts": []}})

    result = await analytics.export_all(
        str(tmp_path), START, fmt="json", include=["listeners", "followers"], exclude=["listeners"]
    )

    assert list(result.summary) == ["followers"]
    assert result.files[0].endswith("podcast_followers_2024-01-01_2024-01-01.json")


async def test_export_all_rejects_unknown_format(analytics, tmp_path):
    with pytest.raises(ValueError):
        await analytics.export_all(str(tmp_path), START, fmt="xml")


def test_flatten_demographics():
    rows = flatten_demographics({"age": convert_demographics({"18-22": 2})})
    assert rows == [{
        "facet": "age", "category": "18-22", "percentage": 100.0, "listenerCount": 2, "countryName": "",
    }]
