"""Shared fixtures: a fake Spotify backend served through httpx.MockTransport"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from podcaster_auth import AuthenticationSession, Credentials
from connector import RequestExecutor

API_BASE = "https://api.test/podcasters/v0"


def authorize_page(state: str, code: str = "auth-code") -> str:
    """HTML returned by a successful silent authorize request"""
    return (
        "<html><head><script>"
        f'const authorizationResponse = {{type: "authorization_response", '
        f'response: {{code: "{code}", state: "{state}"}}}};'
        "</script></head></html>"
    )


LOGIN_REQUIRED_PAGE = (
    "<html><script>"
    'const authorizationResponse = {type: "authorization_response", '
    'response: {error: "login_required"}};'
    "</script></html>"
)


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every requested delay"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


class FakeSpotify:
    """Routes accounts.spotify.com and API requests to canned responses

    Data requests are answered by `api_handler`, or from `api_responses`
    in order when that queue is not empty.
    """

    def __init__(self):
        self.authorize_requests: List[httpx.Request] = []
        self.token_requests: List[httpx.Request] = []
        self.api_requests: List[httpx.Request] = []
        self.api_responses: List[object] = []
        self.api_handler: Optional[Callable[[httpx.Request], httpx.Response]] = None
        self.login_required = False
        self.expires_in = 3600

    @property
    def handshakes(self) -> int:
        return len(self.token_requests)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.url.host == "accounts.spotify.com" and path == "/oauth2/v2/auth":
            self.authorize_requests.append(request)
            if self.login_required:
                return httpx.Response(200, text=LOGIN_REQUIRED_PAGE)
            return httpx.Response(200, text=authorize_page(request.url.params["state"]))

        if request.url.host == "accounts.spotify.com" and path == "/api/token":
            self.token_requests.append(request)
            return httpx.Response(200, json={
                "access_token": f"token-{len(self.token_requests)}",
                "expires_in": self.expires_in,
            })

        self.api_requests.append(request)
        if self.api_responses:
            outcome = self.api_responses.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            if isinstance(outcome, int):
                return httpx.Response(outcome, json={"error": outcome})
            return outcome
        if self.api_handler:
            return self.api_handler(request)
        return httpx.Response(200, json={})

    def queue(self, *outcomes):
        """Queue status codes, httpx.Response objects or exceptions"""
        self.api_responses.extend(outcomes)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(sp_dc="dc-cookie", sp_key="key-cookie", client_id="test-client")


@pytest.fixture
def spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest_asyncio.fixture
async def http_client(spotify):
    async with httpx.AsyncClient(transport=httpx.MockTransport(spotify.handle)) as client:
        yield client


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def session(credentials, http_client) -> AuthenticationSession:
    return AuthenticationSession(credentials, http_client)


@pytest.fixture
def executor(session, http_client, sleep) -> RequestExecutor:
    return RequestExecutor(session, http_client, max_attempts=6, delay_base=2.0, sleep=sleep)


def json_response(payload: Dict, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload)


RELOADED_SETTINGS = (
    "config", "LOG_LEVEL", "DEBUG_LOG_FILE", "BASE_URL", "CLIENT_ID", "CONNECT_TIMEOUT", "REQUEST_TIMEOUT",
)
ENV_FILE_KEYS = ("SPOTIFY_SP_DC", "SPOTIFY_SP_KEY", "SPOTIFY_CLIENT_ID", "SPOTIFY_BASE_URL", "LOG_LEVEL")


@pytest.fixture
def env_workdir(tmp_path, monkeypatch):
    """Empty working directory with a fresh global config loader

    Settings and variables loaded from .env files are restored afterwards.
    """
    import settings
    from config import loader

    monkeypatch.chdir(tmp_path)
    for name in RELOADED_SETTINGS:
        monkeypatch.setattr(settings, name, getattr(settings, name))
    monkeypatch.setattr(loader, "_config_loader", None)
    for key in ENV_FILE_KEYS:
        monkeypatch.delenv(key, raising=False)

    yield tmp_path

    if loader._config_loader is not None:
        loader._config_loader.unload()


class InterleavingTransport(httpx.AsyncBaseTransport):
    """Like httpx.MockTransport, but yields to the event loop before answering

    Concurrent requests therefore overlap the way they do on a real network.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        await asyncio.sleep(0)
        return self.handler(request)


@pytest_asyncio.fixture
async def interleaving_client(spotify):
    async with httpx.AsyncClient(transport=InterleavingTransport(spotify.handle)) as client:
        yield client
