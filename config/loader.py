"""Configuration loader for Spotify Podcast Analytics

Loads configuration from multiple sources with the following priority:
1. Environment variables (highest priority)
2. .env file in the current directory
3. ~/.spotify-analytics.env
4. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import dotenv_values, load_dotenv

# Set up logger for config loader
logger = logging.getLogger(__name__)

ENV_FILENAMES = [
    Path(".env"),
    Path.home() / ".spotify-analytics.env",
]


class ConfigurationError(Exception):
    """Raised when required configuration (credentials, podcast id) is missing"""


def find_env_file(custom_path: Optional[str] = None) -> Optional[Path]:
    """Locate the .env file to load

    Args:
        custom_path: Explicit path; when given, no other location is searched

    Returns:
        Path of the first existing candidate, or None
    """
    if custom_path:
        path = Path(custom_path).expanduser()
        return path if path.exists() else None

    for path in ENV_FILENAMES:
        if path.exists():
            return path
    return None


class ConfigLoader:
    """Handles loading configuration from various sources"""

    def __init__(self, env_path: Optional[str] = None):
        """Initialize the config loader

        Args:
            env_path: Optional path to .env file.
                     Defaults to the first of ENV_FILENAMES that exists.
        """
        self.env_path = find_env_file(env_path)
        # Keys this loader put into os.environ, removed again by unload()
        self.loaded_values: Dict[str, str] = {}
        self._load_env_file()

    def _load_env_file(self):
        """Load environment variables from .env file if it exists"""
        if self.env_path:
            self.loaded_values = {
                key: value
                for key, value in dotenv_values(self.env_path).items()
                if value is not None and key not in os.environ
            }
            # Real environment variables keep priority over the file
            load_dotenv(dotenv_path=self.env_path, override=False)
            logger.debug(f"Loaded environment variables from {self.env_path}")
        else:
            logger.debug(".env file not found, using environment variables and defaults only")

    def unload(self):
        """Remove the variables this loader added, unless changed since"""
        for key, value in self.loaded_values.items():
            if os.environ.get(key) == value:
                del os.environ[key]
        self.loaded_values = {}

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value with priority: env > default

        Args:
            env_var: Environment variable name to check
            default: Default value if not found in environment

        Returns:
            The configuration value from environment or default
        """
        env_value = os.getenv(env_var)
        if env_value is not None:
            # Try to parse as appropriate type
            if isinstance(default, bool):
                return env_value.lower() in ('true', '1', 'yes')
            elif isinstance(default, int):
                try:
                    return int(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as int, using default: {default}")
                    return default
            elif isinstance(default, float):
                try:
                    return float(env_value)
                except ValueError:
                    logger.warning(f"Failed to parse {env_var}={env_value} as float, using default: {default}")
                    return default
            return env_value

        if isinstance(default, str) and default.startswith("~/"):
            return str(Path(default).expanduser())
        return default


# Create a global instance
_config_loader = None

def get_config_loader(env_path: Optional[str] = None) -> ConfigLoader:
    """Get or create the global ConfigLoader instance

    Passing env_path replaces the global instance, which the CLI does for
    its --env-file option. Values the previous instance loaded from its file
    are dropped first, so only the chosen file applies.
    """
    global _config_loader
    if _config_loader is None or env_path is not None:
        if _config_loader is not None:
            _config_loader.unload()
        _config_loader = ConfigLoader(env_path)
    return _config_loader


def get_credentials() -> Optional[Dict[str, str]]:
    """Read Spotify cookie credentials from the environment

    Returns:
        Dict with sp_dc, sp_key and (when set) client_id, or None when
        either cookie is missing
    """
    sp_dc = os.getenv("SPOTIFY_SP_DC")
    sp_key = os.getenv("SPOTIFY_SP_KEY")
    if not sp_dc or not sp_key:
        return None

    credentials = {"sp_dc": sp_dc, "sp_key": sp_key}
    client_id = os.getenv("SPOTIFY_CLIENT_ID")
    if client_id:
        credentials["client_id"] = client_id
    return credentials


def save_env(credentials: Dict[str, str], file_path: Optional[str] = None) -> Path:
    """Write credentials to a .env file

    Args:
        credentials: Dict with sp_dc, sp_key and optional client_id
        file_path: Target path, defaults to .env in the current directory

    Returns:
        Path that was written
    """
    path = Path(file_path) if file_path else ENV_FILENAMES[0]
    lines: List[str] = [
        f"SPOTIFY_SP_DC={credentials['sp_dc']}",
        f"SPOTIFY_SP_KEY={credentials['sp_key']}",
    ]
    if credentials.get("client_id"):
        lines.append(f"SPOTIFY_CLIENT_ID={credentials['client_id']}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    # Session cookies are account credentials
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        logger.warning(f"Could not restrict permissions on {path}: {e}")

    logger.info(f"Saved credentials to {path}")
    return path
