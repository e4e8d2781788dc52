"""
Track metadata extraction.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from mutagen import File as MutagenFile
from mutagen import MutagenError

from kap_player.errors import NotReadable
from kap_player.playback.ordering import Track

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackInfo:
    """Display metadata for a track."""

    title: str
    artist: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"title": self.title, "artist": self.artist}


class TrackMetadataReader(ABC):
    """Reads display metadata for a track."""

    @abstractmethod
    async def read(self, track: Track) -> TrackInfo:
        """
        Read title and artist for a track.

        Raises:
            NotReadable: If metadata cannot be extracted
        """
        pass


def _first_tag(tags: Any, key: str) -> str:
    """Get the first value of an easy tag, or an empty string."""
    values = tags.get(key) if tags else None
    if not values:
        return ""
    return str(values[0]).strip()


class MutagenMetadataReader(TrackMetadataReader):
    """Reads easy tags (ID3, Vorbis comments, MP4 atoms) via mutagen."""

    async def read(self, track: Track) -> TrackInfo:
        try:
            audio = await asyncio.to_thread(MutagenFile, track.track_id, easy=True)
        except (MutagenError, OSError) as e:
            raise NotReadable(f"Cannot read tags from {track.track_id}: {e}") from e

        if audio is None:
            raise NotReadable(f"Unrecognized audio format: {track.track_id}")

        title = _first_tag(audio.tags, "title")
        if not title:
            raise NotReadable(f"No title found in: {track.track_id}")

        artist = _first_tag(audio.tags, "artist")
        logger.debug(f"Read metadata for {track.name}: {artist} - {title}")
        return TrackInfo(title=title, artist=artist)
