"""Bearer token session for the Spotify for Podcasters API

One AuthenticationSession is owned by each connector. Every request issued
through that connector asks it for a token; handshakes are serialized by an
asyncio.Lock so concurrent callers with a stale token cause a single
handshake.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from settings import TOKEN_EXPIRY_MARGIN
from .authorization import request_authorization_code
from .errors import CredentialsExpiredError
from .models import AuthState, Credentials
from .pkce import generate_challenge
from .token_exchange import exchange_code_for_token

logger = logging.getLogger(__name__)

POISONED_MESSAGE = "Authentication has failed, not retrying. Check credentials and try again."


class AuthenticationSession:
    """Owns the cookie-to-bearer handshake and the resulting token"""

    def __init__(
        self,
        credentials: Credentials,
        client: httpx.AsyncClient,
        expiry_margin: float = TOKEN_EXPIRY_MARGIN,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the session

        Args:
            credentials: Session cookies and client id
            client: HTTP client shared with the request executor
            expiry_margin: Re-authenticate when the token expires sooner than this
            clock: Source of the current unix time
        """
        self.credentials = credentials
        self.client = client
        self.expiry_margin = expiry_margin
        self.clock = clock
        self.state = AuthState()
        self._lock = asyncio.Lock()
        self.handshake_count = 0

    @property
    def token(self) -> Optional[str]:
        """Current bearer token, which may be stale"""
        return self.state.token

    @property
    def poisoned(self) -> bool:
        return self.state.poisoned

    def _needs_handshake(self) -> bool:
        return not self.state.is_valid(self.expiry_margin, now=self.clock())

    def _check_poisoned(self):
        if self.state.poisoned:
            raise CredentialsExpiredError(POISONED_MESSAGE)

    async def ensure_valid(self) -> str:
        """Return a token valid for at least the expiry margin

        Raises:
            CredentialsExpiredError: If the session is poisoned
            AuthenticationError: If the handshake response is malformed
        """
        self._check_poisoned()
        if not self._needs_handshake():
            return self.state.token

        async with self._lock:
            # Whoever held the lock before us may already have refreshed
            self._check_poisoned()
            if self._needs_handshake():
                await self._handshake()
            return self.state.token

    async def force_refresh(self, rejected_token: Optional[str] = None) -> str:
        """Re-run the handshake after the API rejected a token

        Args:
            rejected_token: Token that got the 401. When the current token
                already differs, another caller refreshed it and no new
                handshake is made.

        Returns:
            The new bearer token
        """
        self._check_poisoned()
        async with self._lock:
            self._check_poisoned()
            if rejected_token is None or self.state.token == rejected_token:
                await self._handshake()
            else:
                logger.debug("Token already refreshed by a concurrent request")
            return self.state.token

    async def _handshake(self):
        """Authorize with the cookies and exchange the code for a token

        Caller must hold the lock.
        """
        self.handshake_count += 1
        challenge = generate_challenge()
        logger.info("Authenticating with Spotify")

        try:
            code = await request_authorization_code(self.client, self.credentials, challenge)
        except CredentialsExpiredError:
            # Permanent: no further handshakes for this session
            self.state.poisoned = True
            self.state.token = None
            self.state.expires_at = None
            logger.error("Spotify login session expired; refresh the sp_dc/sp_key cookies")
            raise

        token_data = await exchange_code_for_token(self.client, self.credentials, code, challenge)
        self.state.store(token_data["access_token"], token_data["expires_in"], now=self.clock())
        logger.info(f"Obtained bearer token valid for {token_data['expires_in']}s")
