"""
Playback session.

The state machine that owns the playlist ordering, tracks the current
position and shuffle mode, and drives the metadata reader and audio sink.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

from kap_player.errors import DeviceError, EmptyPlaylist, EmptySource, NotReadable

from .events import (
    ErrorKind,
    EventListener,
    LoadError,
    NowPlaying,
    PlaybackError,
    SessionEvent,
    ShuffleStateChanged,
)
from .lyrics import LyricsProvider, NullLyricsProvider
from .ordering import PlaylistOrdering, Track

if TYPE_CHECKING:
    from kap_player.backends.base import AudioSink
    from kap_player.library.metadata import TrackMetadataReader

logger = logging.getLogger(__name__)

# Index value meaning no track has been played since the last load
NOT_STARTED = -1


class SessionPhase(Enum):
    """Coarse session state."""

    EMPTY = "empty"  # No playlist loaded
    IDLE = "idle"  # Playlist loaded, nothing played yet
    PLAYING = "playing"  # A track is current


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of the session."""

    current_track: Optional[Track]
    current_index: int
    shuffle_enabled: bool
    track_count: int

    @property
    def phase(self) -> SessionPhase:
        if self.track_count == 0:
            return SessionPhase.EMPTY
        if self.current_index == NOT_STARTED:
            return SessionPhase.IDLE
        return SessionPhase.PLAYING


class PlaybackSession:
    """
    Playback session state machine.

    State machine:
        EMPTY -> IDLE (on load_folder)
        IDLE/PLAYING -> IDLE (on load_folder, position reset)
        IDLE -> PLAYING(0) (on advance)
        PLAYING(i) -> PLAYING(i+1), or PLAYING(0) past the end (on advance)
        any -> same (on toggle_shuffle)

    While shuffle is on, every advance reshuffles the whole playlist, played
    tracks included, before stepping to the next index. A track heard
    recently can therefore come up again sooner than with a shuffle of the
    unplayed tail only.

    All mutating operations hold one lock, so concurrent callers never see
    a half-applied transition.
    """

    def __init__(
        self,
        metadata_reader: "TrackMetadataReader",
        sink: "AudioSink",
        ordering: Optional[PlaylistOrdering] = None,
        lyrics: Optional[LyricsProvider] = None,
    ):
        """Initialize an empty session."""
        self.metadata_reader = metadata_reader
        self.sink = sink
        self.ordering = ordering or PlaylistOrdering()
        self.lyrics = lyrics or NullLyricsProvider()

        self._current_index: int = NOT_STARTED
        self._current_track: Optional[Track] = None
        self._shuffle_enabled: bool = False

        self._listeners: list[EventListener] = []
        self._lock = asyncio.Lock()

    # =========================================================================
    # Event Listeners
    # =========================================================================

    def add_listener(self, listener: EventListener) -> None:
        """Register a callback for session events."""
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        """Unregister a previously added callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: SessionEvent) -> None:
        """Deliver an event to every listener."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Session listener error for {type(event).__name__}: {e}")

    # =========================================================================
    # Commands
    # =========================================================================

    async def load_folder(self, tracks: Iterable[Track]) -> SessionState:
        """
        Install a new playlist and reset the position.

        Raises:
            EmptySource: If no tracks were given. Session state is unchanged.
        """
        async with self._lock:
            try:
                playlist = self.ordering.load(tracks)
            except EmptySource as e:
                logger.warning(f"Load rejected: {e}")
                self._emit(LoadError(kind=ErrorKind.EMPTY_SOURCE, message=str(e)))
                raise

            self._current_index = NOT_STARTED
            self._current_track = None
            logger.info(f"Session loaded {len(playlist)} tracks")
            return self._snapshot()

    async def toggle_shuffle(self) -> bool:
        """Flip shuffle mode. Returns the new value."""
        async with self._lock:
            self._shuffle_enabled = not self._shuffle_enabled
            enabled = self._shuffle_enabled

        logger.info(f"Shuffle is now {'on' if enabled else 'off'}")
        self._emit(ShuffleStateChanged(enabled=enabled))
        return enabled

    async def advance(self) -> SessionState:
        """
        Move to the next track and start it.

        Metadata and audio failures are reported as PlaybackError events;
        the new position stays committed either way.

        Raises:
            EmptyPlaylist: If no playlist is loaded. Session state is unchanged.
        """
        async with self._lock:
            playlist = self.ordering.playlist
            if not playlist:
                raise EmptyPlaylist("No tracks loaded")

            if self._shuffle_enabled:
                playlist = self.ordering.reshuffle()

            if self._current_index >= len(playlist) - 1:
                next_index = 0
                if self._current_index != NOT_STARTED:
                    logger.info("Playlist wrapped to beginning")
            else:
                next_index = self._current_index + 1

            track = playlist[next_index]
            self._current_track = track
            self._current_index = next_index
            logger.debug(f"Advanced to {track.name} at index {next_index}")

            await self._announce(track)
            await self._start_sink(track)

            return self._snapshot()

    async def stop_output(self) -> None:
        """Stop the audio sink. Position and current track are kept."""
        async with self._lock:
            await self.sink.stop()
        logger.info("Playback stopped")

    def current_state(self) -> SessionState:
        """Get a snapshot of the session."""
        return self._snapshot()

    # =========================================================================
    # Internal
    # =========================================================================

    def _snapshot(self) -> SessionState:
        return SessionState(
            current_track=self._current_track,
            current_index=self._current_index,
            shuffle_enabled=self._shuffle_enabled,
            track_count=len(self.ordering.playlist),
        )

    async def _announce(self, track: Track) -> None:
        """Read metadata and emit NowPlaying, or a NOT_READABLE error."""
        try:
            info = await self.metadata_reader.read(track)
        except NotReadable as e:
            logger.warning(f"Metadata not readable for {track.name}: {e}")
            self._emit(
                PlaybackError(kind=ErrorKind.NOT_READABLE, track_id=track.track_id, message=str(e))
            )
            return

        logger.info(f"Now playing: {info.title} - {info.artist}")
        self._emit(NowPlaying(title=info.title, artist=info.artist, track=track))

        try:
            await self.lyrics.fetch(info.title, info.artist)
        except Exception as e:
            logger.warning(f"Lyrics lookup failed for {info.title}: {e}")

    async def _start_sink(self, track: Track) -> None:
        """Start rendering, reporting device failures as events."""
        try:
            await self.sink.play(track)
        except DeviceError as e:
            logger.error(f"Audio output failed for {track.name}: {e}")
            self._emit(
                PlaybackError(kind=ErrorKind.DEVICE_ERROR, track_id=track.track_id, message=str(e))
            )
