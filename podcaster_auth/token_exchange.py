"""OAuth token exchange for the Spotify handshake"""

import logging
from typing import Any, Dict

import httpx

from settings import AUTH_BASE, REDIRECT_URI
from .errors import AuthenticationError
from .models import Credentials, PkceChallenge

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = f"{AUTH_BASE}/api/token"

DEFAULT_EXPIRES_IN = 3600


async def exchange_code_for_token(
    client: httpx.AsyncClient,
    credentials: Credentials,
    code: str,
    challenge: PkceChallenge
) -> Dict[str, Any]:
    """Exchange an authorization code for a bearer token

    Args:
        client: HTTP client to send the request with
        credentials: Supplies the client id
        code: Code returned by the authorize step
        challenge: Challenge whose verifier proves we started the flow

    Returns:
        Dict with access_token and expires_in (seconds)

    Raises:
        httpx.HTTPStatusError: If the token endpoint rejects the exchange
        AuthenticationError: If the response carries no access token
    """
    data = {
        "grant_type": "authorization_code",
        "client_id": credentials.client_id,
        "code": code,
        "redirect_uri": REDIRECT_URI,
        "code_verifier": challenge.code_verifier,
    }

    logger.debug(f"Exchanging authorization code at {TOKEN_ENDPOINT}")
    response = await client.post(TOKEN_ENDPOINT, data=data)

    if not response.is_success:
        logger.error(f"Token exchange failed with status {response.status_code}: {response.text}")
        response.raise_for_status()

    payload = response.json()
    access_token = payload.get("access_token")
    if not access_token:
        raise AuthenticationError("Token response missing access_token")

    return {
        "access_token": access_token,
        "expires_in": payload.get("expires_in", DEFAULT_EXPIRES_IN),
    }
