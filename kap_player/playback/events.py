"""
Session events consumed by the console/UI layer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from .ordering import Track


class ErrorKind(Enum):
    """Error kinds surfaced through events."""

    EMPTY_SOURCE = "empty_source"
    EMPTY_PLAYLIST = "empty_playlist"
    NOT_READABLE = "not_readable"
    DEVICE_ERROR = "device_error"


@dataclass(frozen=True)
class NowPlaying:
    """A track became current and its metadata was read."""

    title: str
    artist: str
    track: Optional[Track] = None


@dataclass(frozen=True)
class PlaybackError:
    """Soft failure while starting the current track."""

    kind: ErrorKind
    track_id: str
    message: str = ""


@dataclass(frozen=True)
class ShuffleStateChanged:
    """Shuffle flag was toggled."""

    enabled: bool


@dataclass(frozen=True)
class LoadError:
    """A folder load was rejected."""

    kind: ErrorKind
    message: str = ""


SessionEvent = Union[NowPlaying, PlaybackError, ShuffleStateChanged, LoadError]

EventListener = Callable[[SessionEvent], None]
