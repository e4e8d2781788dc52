"""
Playlist ordering for kap-player.

Holds the loaded track sequence and produces natural or shuffled orderings.
"""

import logging
import os
import random
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from kap_player.errors import EmptySource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Track:
    """
    A playable audio item.

    Attributes:
        track_id: Opaque handle, usually the file path
    """

    track_id: str

    @property
    def name(self) -> str:
        """File name portion of the track handle."""
        return os.path.basename(self.track_id)

    def __str__(self) -> str:
        return self.track_id


@dataclass(frozen=True)
class Playlist:
    """Immutable ordered sequence of tracks."""

    tracks: tuple[Track, ...] = ()

    def __len__(self) -> int:
        return len(self.tracks)

    def __getitem__(self, index: int) -> Track:
        return self.tracks[index]

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)


class PlaylistOrdering:
    """
    Owns the current playlist and its ordering.

    Loading replaces the contents entirely. Shuffling produces a new
    uniformly random permutation; the source playlist is never mutated.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        """
        Initialize an empty ordering.

        Args:
            rng: Random source for shuffling. Defaults to a Random seeded
                from OS entropy, so orderings differ between runs.
        """
        self._rng = rng or random.Random()
        self._playlist = Playlist()

    @property
    def playlist(self) -> Playlist:
        """Currently held playlist."""
        return self._playlist

    def load(self, tracks: Iterable[Track]) -> Playlist:
        """
        Replace the current contents with a new playlist.

        Raises:
            EmptySource: If no tracks were supplied. Prior contents are kept.
        """
        playlist = Playlist(tuple(tracks))
        if not playlist:
            raise EmptySource("No eligible tracks to load")

        self._playlist = playlist
        logger.info(f"Loaded playlist: {len(playlist)} tracks")
        return playlist

    def shuffle(self, playlist: Playlist) -> Playlist:
        """Return a uniformly random permutation of the given playlist."""
        if len(playlist) <= 1:
            return playlist

        tracks = list(playlist.tracks)
        self._rng.shuffle(tracks)
        return Playlist(tuple(tracks))

    def reshuffle(self) -> Playlist:
        """Shuffle the held playlist and install the result."""
        self._playlist = self.shuffle(self._playlist)
        logger.debug(f"Playlist reshuffled: {[t.name for t in self._playlist.tracks[:10]]}...")
        return self._playlist
