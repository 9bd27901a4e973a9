"""Configuration management package for spotify-podcast-analytics"""

from .loader import (
    ConfigLoader,
    ConfigurationError,
    find_env_file,
    get_config_loader,
    get_credentials,
    save_env,
)

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "find_env_file",
    "get_config_loader",
    "get_credentials",
    "save_env",
]
