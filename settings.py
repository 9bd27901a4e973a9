from config.loader import get_config_loader

# OAuth configuration (hardcoded - not user configurable except the client id)
# The creators web app authorizes silently with the sp_dc/sp_key cookies
AUTH_BASE = "https://accounts.spotify.com"
REDIRECT_URI = "https://creators.spotify.com"
SCOPES = "streaming ugc-image-upload user-read-email user-read-private"

DEFAULT_CLIENT_ID = "05a1371ee5194c27860b3ff3ff3979d2"
DEFAULT_BASE_URL = "https://generic.wg.spotify.com/podcasters/v0"

# Retry configuration
MAX_REQUEST_ATTEMPTS = 6
DELAY_BASE = 2.0

# Re-authenticate when the bearer token expires within this many seconds
TOKEN_EXPIRY_MARGIN = 5 * 60


def load_settings(env_path=None):
    """Read the environment-configurable settings

    Runs once at import with the default .env lookup. The CLI calls it
    again with --env-file, which replaces the values loaded from the
    default file. Code that must see the replaced values reads them as
    attributes of this module at call time.
    """
    global config, LOG_LEVEL, DEBUG_LOG_FILE, BASE_URL, CLIENT_ID, CONNECT_TIMEOUT, REQUEST_TIMEOUT

    config = get_config_loader(env_path)

    # Logging
    LOG_LEVEL = config.get("LOG_LEVEL", "info")
    DEBUG_LOG_FILE = config.get("DEBUG_LOG_FILE", "podcast_analytics_debug.log")

    # Spotify for Podcasters API
    BASE_URL = config.get("SPOTIFY_BASE_URL", DEFAULT_BASE_URL)
    CLIENT_ID = config.get("SPOTIFY_CLIENT_ID", DEFAULT_CLIENT_ID)

    # Timeout configuration
    # Connection timeout: Time to establish TCP connection
    CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
    # Request timeout: Total timeout for a single request
    REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 60.0)
    return config


load_settings()
