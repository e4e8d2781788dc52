"""
Audio sink types and enumerations.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class SinkState(IntEnum):
    """Render state of an audio sink."""

    STOPPED = 1  # Nothing rendering, device released
    PLAYING = 2  # Rendering a track
    LOADING = 3  # Decoding before rendering starts
    ERROR = 4  # Last play attempt failed


@dataclass
class SinkInfo:
    """
    Information about an audio sink.

    Used for logging and display purposes.
    """

    sink_type: str  # 'local', 'null'
    name: str  # Display name
    device_id: str  # Unique identifier
    sample_rate: Optional[int] = None
    channels: Optional[int] = None

    def __str__(self) -> str:
        if self.sample_rate:
            return f"{self.name} ({self.sink_type}, {self.sample_rate}Hz/{self.channels}ch)"
        return f"{self.name} ({self.sink_type})"
