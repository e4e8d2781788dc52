"""
Lyrics lookup.

No network provider ships. The null provider only logs the lookup and the
console provider announces it on screen; both return no lyrics.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)


class LyricsProvider(ABC):
    """Looks up lyrics for the track that just started."""

    @abstractmethod
    async def fetch(self, title: str, artist: str) -> Optional[str]:
        """Return lyrics text, or None when unavailable."""
        pass


class NullLyricsProvider(LyricsProvider):
    """Logs the lookup and returns nothing."""

    async def fetch(self, title: str, artist: str) -> Optional[str]:
        logger.debug(f"Fetching lyrics for {title} by {artist}...")
        return None


class ConsoleLyricsProvider(LyricsProvider):
    """Announces the lookup on the console and returns nothing."""

    def __init__(self, console: Console):
        self.console = console

    async def fetch(self, title: str, artist: str) -> Optional[str]:
        self.console.print(f"[yellow]Fetching lyrics for {escape(title)} by {escape(artist)}...[/yellow]")
        return None
