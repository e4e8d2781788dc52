"""Playback session and playlist ordering module."""

from .ordering import Playlist, PlaylistOrdering, Track
from .events import (
    ErrorKind,
    EventListener,
    LoadError,
    NowPlaying,
    PlaybackError,
    SessionEvent,
    ShuffleStateChanged,
)
from .lyrics import ConsoleLyricsProvider, LyricsProvider, NullLyricsProvider
from .session import NOT_STARTED, PlaybackSession, SessionPhase, SessionState
from .command_handler import (
    Advance,
    Command,
    Load,
    SessionCommandHandler,
    Stop,
    ToggleShuffle,
)

__all__ = [
    # Ordering
    "Playlist",
    "PlaylistOrdering",
    "Track",
    # Events
    "ErrorKind",
    "EventListener",
    "LoadError",
    "NowPlaying",
    "PlaybackError",
    "SessionEvent",
    "ShuffleStateChanged",
    # Lyrics
    "ConsoleLyricsProvider",
    "LyricsProvider",
    "NullLyricsProvider",
    # Session
    "NOT_STARTED",
    "PlaybackSession",
    "SessionPhase",
    "SessionState",
    # Commands
    "Advance",
    "Command",
    "Load",
    "SessionCommandHandler",
    "Stop",
    "ToggleShuffle",
]
