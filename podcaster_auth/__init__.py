"""Cookie-based OAuth authentication package for Spotify for Podcasters"""

from .errors import (
    AuthenticationError,
    CredentialsExpiredError,
    MaxRetriesExceededError,
    SpotifyAnalyticsError,
)
from .models import AuthState, Credentials, PkceChallenge
from .pkce import code_challenge_for, generate_challenge
from .authorization import (
    AUTHORIZE_ENDPOINT,
    build_authorize_params,
    extract_authorization_response,
    parse_authorization_code,
    request_authorization_code,
)
from .token_exchange import TOKEN_ENDPOINT, exchange_code_for_token
from .session import AuthenticationSession

__all__ = [
    "AuthenticationError",
    "CredentialsExpiredError",
    "MaxRetriesExceededError",
    "SpotifyAnalyticsError",
    "AuthState",
    "Credentials",
    "PkceChallenge",
    "code_challenge_for",
    "generate_challenge",
    "AUTHORIZE_ENDPOINT",
    "build_authorize_params",
    "extract_authorization_response",
    "parse_authorization_code",
    "request_authorization_code",
    "TOKEN_ENDPOINT",
    "exchange_code_for_token",
    "AuthenticationSession",
]
