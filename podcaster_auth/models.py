"""Data models for Spotify cookie-based OAuth authentication"""

import time
from dataclasses import dataclass
from typing import Optional

from settings import CLIENT_ID


@dataclass(frozen=True)
class Credentials:
    """Browser session cookies used to authorize silently

    Attributes:
        sp_dc: Value of the sp_dc cookie from an open.spotify.com session
        sp_key: Value of the sp_key cookie from the same session
        client_id: OAuth client id of the creators web app
    """
    sp_dc: str
    sp_key: str
    client_id: str = CLIENT_ID

    def cookie_header(self) -> str:
        """Render the Cookie header sent to the authorize endpoint"""
        return f"sp_dc={self.sp_dc}; sp_key={self.sp_key}"

    def __repr__(self) -> str:
        return f"Credentials(client_id={self.client_id!r}, sp_dc=<redacted>, sp_key=<redacted>)"


@dataclass(frozen=True)
class PkceChallenge:
    """Single-use parameters for one authorization handshake

    Attributes:
        state: Anti-forgery token echoed back by the authorize step
        code_verifier: Secret sent only to the token endpoint
        code_challenge: base64url(SHA-256(code_verifier)) without padding
    """
    state: str
    code_verifier: str
    code_challenge: str


@dataclass
class AuthState:
    """Bearer token state shared by every request of one connector

    Only mutated while the owning session holds its lock.
    """
    token: Optional[str] = None
    expires_at: Optional[float] = None
    poisoned: bool = False

    def is_valid(self, margin: float = 0.0, now: Optional[float] = None) -> bool:
        """Check there is a token that stays valid for at least `margin` seconds"""
        if not self.token or self.expires_at is None:
            return False
        now = time.time() if now is None else now
        return self.expires_at > now + margin

    def store(self, token: str, expires_in: float, now: Optional[float] = None):
        """Record a freshly minted token"""
        now = time.time() if now is None else now
        self.token = token
        self.expires_at = now + expires_in
