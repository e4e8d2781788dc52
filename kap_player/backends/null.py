"""
Null audio sink.

Accepts every track without touching audio hardware. Useful for headless
machines and for exercising the session without a sound card.
"""

import logging
from typing import Optional

from kap_player.playback.ordering import Track

from .base import AudioSink
from .types import SinkInfo, SinkState

logger = logging.getLogger(__name__)


class NullAudioSink(AudioSink):
    """Sink that only logs what it would play."""

    def __init__(self, name: str = "Null Output"):
        super().__init__(name)
        self.current_track: Optional[Track] = None

    async def play(self, track: Track) -> None:
        if self.current_track is not None:
            await self.stop()
        self.current_track = track
        self._notify_state_change(SinkState.PLAYING)
        logger.info(f"Null sink playing: {track.name}")

    async def stop(self) -> None:
        self.current_track = None
        self._notify_state_change(SinkState.STOPPED)

    def get_info(self) -> SinkInfo:
        return SinkInfo(sink_type="null", name=self.name, device_id="null")
