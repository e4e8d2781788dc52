"""
Abstract audio sink interface.

Defines the contract that all audio sinks must implement.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from kap_player.playback.ordering import Track

from .types import SinkInfo, SinkState

logger = logging.getLogger(__name__)

# Event callback types
StateChangeCallback = Callable[[SinkState], None]
TrackEndedCallback = Callable[[], None]
PlaybackErrorCallback = Callable[[str], None]  # error_message


class AudioSink(ABC):
    """
    Abstract base class for audio output sinks.

    A sink renders at most one track at a time. Starting a new track
    supersedes the previous render; stop() releases the output device.
    """

    def __init__(self, name: str = "AudioSink"):
        """Initialize sink."""
        self.name = name
        self._state: SinkState = SinkState.STOPPED
        self._is_connected: bool = False

        # Event callbacks
        self._on_state_change: Optional[StateChangeCallback] = None
        self._on_track_ended: Optional[TrackEndedCallback] = None
        self._on_playback_error: Optional[PlaybackErrorCallback] = None

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def play(self, track: Track) -> None:
        """
        Start rendering a track, stopping any prior render first.

        Raises:
            DeviceError: If rendering could not start
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop rendering and release the output stream."""
        pass

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> bool:
        """Prepare the output device. Returns True if successful."""
        self._is_connected = True
        return True

    async def disconnect(self) -> None:
        """Stop playback and release all resources."""
        await self.stop()
        self._is_connected = False

    def is_connected(self) -> bool:
        """Check if sink is connected."""
        return self._is_connected

    @property
    def state(self) -> SinkState:
        """Current render state."""
        return self._state

    @property
    def position_ms(self) -> Optional[int]:
        """Position within the rendering track, or None if not tracked."""
        return None

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_state_change(self, callback: Optional[StateChangeCallback]) -> None:
        """Register callback for state changes."""
        self._on_state_change = callback

    def on_track_ended(self, callback: Optional[TrackEndedCallback]) -> None:
        """Register callback for natural track end (not stop command)."""
        self._on_track_ended = callback

    def on_playback_error(self, callback: Optional[PlaybackErrorCallback]) -> None:
        """Register callback for errors after rendering started."""
        self._on_playback_error = callback

    # =========================================================================
    # Event Notification Helpers
    # =========================================================================

    def _notify_state_change(self, state: SinkState) -> None:
        """Notify listeners of state change."""
        old_state = self._state
        self._state = state
        if old_state != state and self._on_state_change:
            try:
                self._on_state_change(state)
            except Exception as e:
                logger.error(f"State change callback error: {e}")

    def _notify_track_ended(self) -> None:
        """Notify listeners that track ended naturally."""
        if self._on_track_ended:
            try:
                self._on_track_ended()
            except Exception as e:
                logger.error(f"Track ended callback error: {e}")

    def _notify_playback_error(self, message: str) -> None:
        """Notify listeners of playback error."""
        if self._on_playback_error:
            try:
                self._on_playback_error(message)
            except Exception as e:
                logger.error(f"Playback error callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> SinkInfo:
        """Get information about this sink."""
        return SinkInfo(
            sink_type="unknown",
            name=self.name,
            device_id="",
        )
