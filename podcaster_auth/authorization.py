"""Silent OAuth authorization against accounts.spotify.com

The authorize endpoint is called with the browser session cookies and
prompt=none. Instead of redirecting, it answers with an HTML page whose
script assigns the result to a JavaScript object literal:

    const authorizationResponse = {type: "authorization_response", response: {...}};

That literal is not valid JSON (keys are unquoted), so it is read with a
YAML loader, which accepts this flow-mapping style.
"""

import logging
import re
from typing import Any, Dict

import httpx
import yaml

from settings import AUTH_BASE, REDIRECT_URI, SCOPES
from .errors import AuthenticationError, CredentialsExpiredError
from .models import Credentials, PkceChallenge

logger = logging.getLogger(__name__)

AUTHORIZE_ENDPOINT = f"{AUTH_BASE}/oauth2/v2/auth"
LOGIN_REQUIRED_MARKER = "login_required"

_RESPONSE_PATTERN = re.compile(r"const authorizationResponse = (.*?);", re.DOTALL)


def build_authorize_params(credentials: Credentials, challenge: PkceChallenge) -> Dict[str, str]:
    """Query parameters for a silent, web_message mode authorize request"""
    return {
        "response_type": "code",
        "client_id": credentials.client_id,
        "scope": SCOPES,
        "redirect_uri": REDIRECT_URI,
        "code_challenge": challenge.code_challenge,
        "code_challenge_method": "S256",
        "state": challenge.state,
        "response_mode": "web_message",
        "prompt": "none",
    }


def extract_authorization_response(html: str) -> Dict[str, Any]:
    """Pull the embedded authorizationResponse literal out of the page

    Raises:
        AuthenticationError: If the literal is missing or cannot be parsed
    """
    match = _RESPONSE_PATTERN.search(html)
    if not match:
        raise AuthenticationError("Could not extract authorization response")

    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise AuthenticationError(f"Could not parse authorization response: {e}") from e

    if not isinstance(data, dict):
        raise AuthenticationError(
            f"Authorization response is not an object: {type(data).__name__}"
        )
    return data


def parse_authorization_code(html: str, challenge: PkceChallenge) -> str:
    """Validate the authorize page and return the one-time code

    Args:
        html: Body of the authorize response
        challenge: Challenge generated for this handshake

    Returns:
        Authorization code to exchange for a bearer token

    Raises:
        CredentialsExpiredError: If the page reports login_required
        AuthenticationError: If the response is malformed or the state differs
    """
    if LOGIN_REQUIRED_MARKER in html:
        raise CredentialsExpiredError("Login required (credentials cookie expired?)")

    data = extract_authorization_response(html)

    if data.get("type") != "authorization_response":
        raise AuthenticationError(
            f"Expected authorization_response, got {data.get('type')}"
        )

    response = data.get("response")
    if not isinstance(response, dict):
        raise AuthenticationError("Authorization response has no response object")

    # A different state means this page answers another handshake
    if response.get("state") != challenge.state:
        raise AuthenticationError("State parameter mismatch")

    code = response.get("code")
    if not code:
        error = response.get("error")
        raise AuthenticationError(
            f"Authorization response carries no code{f' (error: {error})' if error else ''}"
        )
    return str(code)


async def request_authorization_code(
    client: httpx.AsyncClient,
    credentials: Credentials,
    challenge: PkceChallenge
) -> str:
    """Run the authorize step of the handshake

    Args:
        client: HTTP client to send the request with
        credentials: Session cookies
        challenge: Fresh challenge for this handshake

    Returns:
        Authorization code

    Raises:
        CredentialsExpiredError: If the cookies no longer hold a login
        AuthenticationError: If the page does not match the handshake
        httpx.HTTPStatusError: If the endpoint answers with an error status
    """
    logger.debug("Requesting authorization code")
    response = await client.get(
        AUTHORIZE_ENDPOINT,
        params=build_authorize_params(credentials, challenge),
        headers={"Cookie": credentials.cookie_header()},
    )
    html = response.text

    # login_required pages take precedence over the status code
    if not response.is_success and LOGIN_REQUIRED_MARKER not in html:
        logger.error(f"Authorization request failed with status {response.status_code}")
        response.raise_for_status()

    return parse_authorization_code(html, challenge)
