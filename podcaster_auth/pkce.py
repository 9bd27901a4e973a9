"""PKCE (Proof Key for Code Exchange) generation for the Spotify handshake"""

import base64
import hashlib
import secrets
import string

from .models import PkceChallenge

_ALPHABET = string.ascii_letters + string.digits

STATE_LENGTH = 32
VERIFIER_LENGTH = 64


def random_string(length: int) -> str:
    """Generate a random alphanumeric string from a CSPRNG"""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def code_challenge_for(code_verifier: str) -> str:
    """Derive the S256 code challenge for a verifier

    Returns:
        base64url-encoded SHA-256 digest without padding
    """
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_challenge() -> PkceChallenge:
    """Generate a fresh state, code verifier and code challenge

    Must be called once per handshake attempt; values are never reused.
    """
    code_verifier = random_string(VERIFIER_LENGTH)
    return PkceChallenge(
        state=random_string(STATE_LENGTH),
        code_verifier=code_verifier,
        code_challenge=code_challenge_for(code_verifier),
    )
