"""
Local audio sink.

Decodes a track file to float32 samples with soundfile and plays it on a
local output device through PortAudio.
"""

import asyncio
import logging
from typing import Optional

import numpy as np
import soundfile as sf

from kap_player.backends.base import AudioSink
from kap_player.backends.types import SinkInfo, SinkState
from kap_player.errors import DeviceError
from kap_player.playback.ordering import Track

from .device import OutputDevice, resolve_device
from .stream import PcmOutputStream

logger = logging.getLogger(__name__)

END_POLL_INTERVAL = 0.1  # Seconds between end-of-track checks


class LocalAudioSink(AudioSink):
    """Local audio output sink using soundfile and sounddevice."""

    def __init__(
        self,
        device: str = "default",
        buffer_size: int = 2048,
        name: str = "Local Audio",
    ):
        super().__init__(name)
        self._device_config = device
        self._buffer_size = buffer_size

        self._device: Optional[OutputDevice] = None
        self._stream: Optional[PcmOutputStream] = None
        self._current_track: Optional[Track] = None
        self._watch_task: Optional[asyncio.Task] = None

    async def play(self, track: Track) -> None:
        """Decode the track and start rendering it, replacing any prior render."""
        if self._device is None:
            raise DeviceError("Local audio sink is not connected")

        await self.stop()
        self._notify_state_change(SinkState.LOADING)

        stream: Optional[PcmOutputStream] = None
        try:
            samples, sample_rate = await asyncio.to_thread(self._decode, track.track_id)
            stream = PcmOutputStream(
                device_index=self._device.index,
                samples=samples,
                sample_rate=sample_rate,
                blocksize=self._buffer_size,
            )
            stream.start()
        except Exception as e:
            if stream is not None:
                stream.close()
            logger.error(f"Playback error for {track.name}: {e}")
            self._notify_state_change(SinkState.ERROR)
            raise DeviceError(f"Cannot play {track.track_id}: {e}") from e

        self._stream = stream
        self._current_track = track
        self._watch_task = asyncio.create_task(self._watch_for_end(stream))
        self._notify_state_change(SinkState.PLAYING)

        logger.info(
            f"Rendering {track.name} on {self._device.name} "
            f"({sample_rate}Hz, {stream.total_frames} frames)"
        )

    @staticmethod
    def _decode(path: str) -> tuple[np.ndarray, int]:
        """Decode an audio file to a float32 (frames, channels) array."""
        samples, sample_rate = sf.read(path, dtype="float32", always_2d=True)
        logger.debug(f"Decoded {path}: {len(samples)} frames, {samples.shape[1]}ch, {sample_rate}Hz")
        return samples, sample_rate

    async def _watch_for_end(self, stream: PcmOutputStream) -> None:
        """Wait for the stream to deliver its last frame, then report track end."""
        try:
            while not stream.finished and stream.is_active:
                await asyncio.sleep(END_POLL_INTERVAL)
        except asyncio.CancelledError:
            return

        if stream is not self._stream:
            return

        track = self._current_track
        stream.close()
        self._stream = None
        self._current_track = None

        if not stream.finished:
            # Device went away mid-track
            message = f"Output stream stopped before the end of {track.name if track else 'track'}"
            logger.error(message)
            self._notify_state_change(SinkState.ERROR)
            self._notify_playback_error(message)
            return

        logger.debug(f"Track finished: {track}")
        self._notify_state_change(SinkState.STOPPED)
        self._notify_track_ended()

    async def _cancel_watch(self) -> None:
        """Cancel the end-of-track watcher if running."""
        if self._watch_task and not self._watch_task.done():
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
        self._watch_task = None

    async def stop(self) -> None:
        await self._cancel_watch()
        if self._stream:
            self._stream.close()
            self._stream = None
        self._current_track = None
        self._notify_state_change(SinkState.STOPPED)

    @property
    def current_track(self) -> Optional[Track]:
        return self._current_track

    @property
    def position_ms(self) -> Optional[int]:
        return self._stream.position_ms if self._stream else None

    async def connect(self) -> bool:
        """Resolve the configured output device."""
        try:
            self._device = resolve_device(self._device_config)
        except (ValueError, ImportError) as e:
            logger.error(f"Failed to initialize audio device: {e}")
            return False

        self.name = f"Local: {self._device.name}"
        self._is_connected = True
        logger.info(
            f"Audio output device: {self._device.name} "
            f"({int(self._device.default_samplerate)} Hz, {self._device.channels}ch)"
        )
        return True

    async def disconnect(self) -> None:
        await self.stop()
        self._device = None
        self._is_connected = False

    def get_info(self) -> SinkInfo:
        return SinkInfo(
            sink_type="local",
            name=self.name,
            device_id=f"local-{self._device_config}",
            sample_rate=self._stream.sample_rate if self._stream else None,
            channels=self._stream.channels if self._stream else None,
        )
