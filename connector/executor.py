"""Request execution with retry, backoff and re-authentication

The Spotify for Podcasters API rate limits aggressively and regularly
answers with 502/503/504. A logical request is retried up to
MAX_REQUEST_ATTEMPTS times; the delay between attempts starts at DELAY_BASE
seconds and doubles after every transient failure. A 401 triggers a new
handshake and an immediate retry.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from podcaster_auth import AuthenticationSession, MaxRetriesExceededError
from settings import DELAY_BASE, MAX_REQUEST_ATTEMPTS

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})

# Attempts before retry logging escalates from INFO to WARNING
QUIET_ATTEMPTS = 3


@dataclass(frozen=True)
class RequestDescriptor:
    """URL and query parameters of one logical request"""
    url: str
    params: Dict[str, str] = field(default_factory=dict)


class RetryableStatus(Exception):
    """An attempt got a rate limit or gateway error"""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class TokenRejected(Exception):
    """An attempt got a 401 for the token it sent"""

    status_code = 401

    def __init__(self, token: Optional[str]):
        super().__init__("HTTP 401")
        self.token = token


@dataclass
class RetryState:
    """Bookkeeping for one logical request"""
    delay: float
    rejected_token: Optional[str] = None
    network_failure: bool = False

    def next_wait(self, retry_state: RetryCallState) -> float:
        """Wait before the next attempt: none after a 401, else the doubling delay"""
        if isinstance(retry_state.outcome.exception(), TokenRejected):
            return 0
        delay = self.delay
        self.delay *= 2
        return delay


def _retry_log_level(attempt_number: int) -> int:
    return logging.INFO if attempt_number <= QUIET_ATTEMPTS else logging.WARNING


class RequestExecutor:
    """Executes authenticated GET requests to completion"""

    def __init__(
        self,
        session: AuthenticationSession,
        client: httpx.AsyncClient,
        max_attempts: int = MAX_REQUEST_ATTEMPTS,
        delay_base: float = DELAY_BASE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the executor

        Args:
            session: Supplies and refreshes the bearer token
            client: HTTP client used for the data requests
            max_attempts: Attempts per logical request
            delay_base: Delay before the first retry, in seconds
            sleep: Coroutine used to wait between attempts
        """
        self.session = session
        self.client = client
        self.max_attempts = max_attempts
        self.delay_base = delay_base
        self.sleep = sleep

    async def _wait(self, seconds: float):
        if seconds:
            await self.sleep(seconds)

    async def execute(self, descriptor: RequestDescriptor) -> Any:
        """Run a request, retrying transient failures

        Args:
            descriptor: What to fetch

        Returns:
            Decoded JSON body of the successful response, None when it is empty

        Raises:
            CredentialsExpiredError: If the login session is gone
            AuthenticationError: If the handshake response is malformed
            MaxRetriesExceededError: If every attempt got a retryable status
            httpx.HTTPStatusError: On a non-retryable error status
            httpx.TransportError: If the final attempt failed at network level
        """
        state = RetryState(delay=self.delay_base)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception_type((httpx.TransportError, RetryableStatus, TokenRejected)),
            wait=state.next_wait,
            sleep=self._wait,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(descriptor, state, attempt.retry_state.attempt_number)
        except (RetryableStatus, TokenRejected) as e:
            raise MaxRetriesExceededError(descriptor.url, e.status_code, self.max_attempts) from None

    async def _attempt(self, descriptor: RequestDescriptor, state: RetryState, attempt_number: int) -> Any:
        url = descriptor.url

        try:
            if state.rejected_token is not None:
                await self.session.force_refresh(state.rejected_token)
                state.rejected_token = None
            # After a pure network failure the token was not the problem
            elif not state.network_failure or self.session.token is None:
                await self.session.ensure_valid()
            token = self.session.token

            response = await self.client.get(
                url,
                params=descriptor.params or None,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TransportError as e:
            state.network_failure = True
            logger.log(
                _retry_log_level(attempt_number),
                f'Network error for URL "{url}": {e!r} '
                f"(attempt {attempt_number}/{self.max_attempts}), next delay: {state.delay}s"
            )
            raise

        state.network_failure = False
        status = response.status_code

        if status in RETRYABLE_STATUS_CODES:
            logger.log(
                _retry_log_level(attempt_number),
                f'Got {status} for URL "{url}" '
                f"(attempt {attempt_number}/{self.max_attempts}), next delay: {state.delay}s"
            )
            raise RetryableStatus(status)

        if status == 401:
            logger.info(f'Got 401 for URL "{url}", re-authenticating')
            state.rejected_token = token
            raise TokenRejected(token)

        if not response.is_success:
            logger.error(
                f'Error in API for URL "{url}": status {status}, '
                f"headers {dict(response.headers)}, body {response.text}"
            )
            response.raise_for_status()

        # 204 and other empty success bodies carry no payload
        if not response.content:
            return None
        return response.json()
