"""Music library: folder scanning and metadata reading."""

from .metadata import MutagenMetadataReader, TrackInfo, TrackMetadataReader
from .scanner import DEFAULT_EXTENSIONS, normalize_extension, scan_folder

__all__ = [
    "DEFAULT_EXTENSIONS",
    "MutagenMetadataReader",
    "TrackInfo",
    "TrackMetadataReader",
    "normalize_extension",
    "scan_folder",
]
