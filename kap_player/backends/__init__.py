"""
Audio sinks module.

Provides the abstract sink interface and factory for audio outputs.
"""

from .base import (
    AudioSink,
    PlaybackErrorCallback,
    StateChangeCallback,
    TrackEndedCallback,
)
from .factory import (
    SinkFactory,
    SinkNotFoundError,
    SinkRegistry,
)
from .local import LocalAudioSink
from .null import NullAudioSink
from .types import SinkInfo, SinkState

__all__ = [
    # Types
    "SinkInfo",
    "SinkState",
    # Base class
    "AudioSink",
    # Callback types
    "PlaybackErrorCallback",
    "StateChangeCallback",
    "TrackEndedCallback",
    # Factory
    "SinkFactory",
    "SinkNotFoundError",
    "SinkRegistry",
    # Implementations
    "LocalAudioSink",
    "NullAudioSink",
]
