"""
BGP Config Errors

Every failure the loader, watcher or reload loop can report derives
from ConfigError so callers can catch the whole family at one boundary.
"""

from typing import Optional


class ConfigError(Exception):
    """Base class for configuration errors"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ConfigNotFoundError(ConfigError):
    """Raised when the config file does not exist"""
    pass


class ConfigParseError(ConfigError):
    """Raised for malformed content, duplicate or unknown keys, schema violations"""
    pass


class ConfigDefaultsError(ConfigError):
    """Raised when default value population fails"""
    pass


class ConfigWatchError(ConfigError):
    """Raised when the file change notification mechanism cannot be set up"""
    pass


class ConfigFatalError(ConfigError):
    """Raised when the initial configuration can never be loaded"""
    pass
