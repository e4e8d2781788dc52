"""
Music folder scanning.

Produces the track list handed to the playback session.
"""

import logging
from pathlib import Path
from typing import Iterable, Union

from kap_player.errors import ScanError
from kap_player.playback.ordering import Track

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".mp3",)


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and ensure it starts with a dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def scan_folder(
    folder: Union[str, Path],
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> list[Track]:
    """
    List audio files directly inside a folder.

    Args:
        folder: Directory to scan (not recursive)
        extensions: Accepted file suffixes, case-insensitive

    Returns:
        Tracks sorted by file name

    Raises:
        ScanError: If the folder does not exist or cannot be read
    """
    path = Path(folder)
    accepted = {normalize_extension(e) for e in extensions if e.strip()}

    if not path.is_dir():
        raise ScanError(f"Music folder not found: {path}")

    try:
        entries = sorted(path.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ScanError(f"Error reading music folder {path}: {e}") from e

    tracks = [
        Track(track_id=str(entry))
        for entry in entries
        if entry.is_file() and entry.suffix.lower() in accepted
    ]
    logger.info(f"Scanned {path}: {len(tracks)} tracks ({', '.join(sorted(accepted))})")
    return tracks
