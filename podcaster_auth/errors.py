"""Exception types raised by the Spotify authentication and request layers"""

from typing import Optional


class SpotifyAnalyticsError(Exception):
    """Base class for errors raised by this project"""


class CredentialsExpiredError(SpotifyAnalyticsError):
    """The sp_dc/sp_key login session is no longer valid

    Terminal for the session that raised it: every later call fails the
    same way without touching the network.
    """


class AuthenticationError(SpotifyAnalyticsError):
    """The authorization handshake returned something we did not expect"""


class MaxRetriesExceededError(SpotifyAnalyticsError):
    """All request attempts were used up without a successful response

    Attributes:
        url: Request URL (without query string)
        last_status_code: Status of the final attempt, if it got a response
        attempts: Number of attempts that were made
    """

    def __init__(self, url: str, last_status_code: Optional[int], attempts: int):
        self.url = url
        self.last_status_code = last_status_code
        self.attempts = attempts
        super().__init__(
            f"All retries failed for URL {url}. "
            f"Last status code: {last_status_code}. "
            f"Attempts: {attempts}"
        )
