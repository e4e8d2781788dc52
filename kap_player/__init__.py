"""
kap-player - Folder music player.

Plays the audio files of a folder in order or shuffled, with a serialized
playback session driving tag reading and local audio output.
"""

__version__ = "0.1.0"

from .app import KapPlayer
from .config import Config, ConfigError, load_config

__all__ = [
    "__version__",
    "KapPlayer",
    "Config",
    "ConfigError",
    "load_config",
]
