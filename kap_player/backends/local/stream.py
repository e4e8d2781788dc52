"""
PCM output stream.

Plays one decoded track held in memory through a sounddevice OutputStream.
The PortAudio callback copies frames from the track buffer and stops the
stream once the last frame has been delivered.
"""

import logging
import threading
from typing import Optional

import numpy as np

from .device import _import_sounddevice

logger = logging.getLogger(__name__)


class PcmOutputStream:
    """
    One-shot output stream for a decoded track.

    A new instance is created per track; close() releases the device.
    """

    def __init__(
        self,
        device_index: int,
        samples: np.ndarray,
        sample_rate: int,
        blocksize: int = 2048,
    ):
        """
        Args:
            device_index: PortAudio output device index
            samples: float32 array of shape (frames, channels)
            sample_rate: Sample rate of the decoded data
            blocksize: Frames per PortAudio callback
        """
        self._device_index = device_index
        self._samples = samples
        self._sample_rate = sample_rate
        self._blocksize = blocksize
        self._position = 0
        self._reached_end = threading.Event()
        self._lock = threading.Lock()
        self._stream = None  # sd.OutputStream

    @property
    def channels(self) -> int:
        return self._samples.shape[1]

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def total_frames(self) -> int:
        return len(self._samples)

    @property
    def position_ms(self) -> int:
        """Playback position derived from frames delivered."""
        with self._lock:
            return int(self._position / self._sample_rate * 1000) if self._sample_rate else 0

    @property
    def finished(self) -> bool:
        """True once every frame has been handed to the device."""
        return self._reached_end.is_set()

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def is_active(self) -> bool:
        """True while PortAudio is still pulling frames."""
        return self._stream is not None and bool(self._stream.active)

    def start(self) -> None:
        """Open the device and begin rendering."""
        sd = _import_sounddevice()

        self._stream = sd.OutputStream(
            device=self._device_index,
            samplerate=self._sample_rate,
            channels=self.channels,
            dtype="float32",
            blocksize=self._blocksize,
            callback=self._audio_callback,
        )
        try:
            self._stream.start()
        except Exception:
            self.close()
            raise
        logger.debug(
            f"Output stream started: {self._sample_rate}Hz, {self.channels}ch, "
            f"{self.total_frames} frames, blocksize={self._blocksize}"
        )

    def close(self) -> None:
        """Stop rendering and release the device."""
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.warning(f"Error closing output stream: {e}")
        self._stream = None

    def _audio_callback(self, outdata: np.ndarray, frames: int, time_info, status) -> None:
        """PortAudio callback, runs on the audio thread."""
        if status:
            logger.warning(f"Audio callback status: {status}")

        with self._lock:
            start = self._position
            end = min(start + frames, len(self._samples))
            count = end - start
            outdata[:count] = self._samples[start:end]
            if count < frames:
                outdata[count:] = 0
            self._position = end

        if end >= len(self._samples):
            self._reached_end.set()
            raise _import_sounddevice().CallbackStop()
