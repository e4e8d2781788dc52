"""
Sink factory and registry.

Provides factory methods to instantiate audio sinks by type name.
"""

import logging
from typing import Optional

from kap_player.config import Config

from .base import AudioSink
from .local import LocalAudioSink
from .null import NullAudioSink

logger = logging.getLogger(__name__)


class SinkNotFoundError(Exception):
    """Raised when the requested sink type is unavailable or cannot connect."""

    pass


class SinkRegistry:
    """
    Registry of available sink types.

    Sinks register here with their type name; the factory looks them up.
    """

    _sinks: dict[str, type[AudioSink]] = {}

    @classmethod
    def register(cls, type_name: str, sink_class: type[AudioSink]) -> None:
        """Register a sink class."""
        cls._sinks[type_name] = sink_class
        logger.debug(f"Registered sink type: {type_name}")

    @classmethod
    def get(cls, type_name: str) -> Optional[type[AudioSink]]:
        """Get sink class by type name."""
        return cls._sinks.get(type_name)

    @classmethod
    def available_types(cls) -> list[str]:
        """Get list of registered sink type names."""
        return list(cls._sinks.keys())


class SinkFactory:
    """
    Factory for creating connected audio sinks.

    Usage:
        sink = await SinkFactory.create_from_config(config)
    """

    @classmethod
    async def create_from_config(cls, config: Config) -> AudioSink:
        """Create and connect a sink based on configuration."""
        sink_type = config.backend.type

        sink_class = SinkRegistry.get(sink_type)
        if not sink_class:
            available = SinkRegistry.available_types()
            raise SinkNotFoundError(
                f"Sink type '{sink_type}' not available. Available types: {available}"
            )

        if sink_type == "local":
            sink: AudioSink = LocalAudioSink(
                device=config.backend.local.device,
                buffer_size=config.backend.local.buffer_size,
            )
        else:
            sink = sink_class()

        if not await sink.connect():
            raise SinkNotFoundError(f"Failed to open audio output '{sink_type}'")
        return sink

    @classmethod
    def list_available_sinks(cls) -> list[str]:
        """List available sink types."""
        return SinkRegistry.available_types()


# Register sinks
SinkRegistry.register("local", LocalAudioSink)
SinkRegistry.register("null", NullAudioSink)
