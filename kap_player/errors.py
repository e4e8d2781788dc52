"""
Exception hierarchy for kap-player.

Hard failures (EmptySource, EmptyPlaylist) abort the requested operation
without touching session state. Soft failures (NotReadable, DeviceError)
are raised by collaborators and turned into events by the session.
"""


class KapPlayerError(Exception):
    """Base class for all kap-player errors."""

    pass


class EmptySource(KapPlayerError):
    """Load was called with zero eligible tracks."""

    pass


class EmptyPlaylist(KapPlayerError):
    """Advance was called with no playlist loaded."""

    pass


class NotReadable(KapPlayerError):
    """Track metadata could not be extracted."""

    pass


class DeviceError(KapPlayerError):
    """Audio sink failed to start rendering a track."""

    pass


class ScanError(KapPlayerError):
    """Music folder could not be enumerated."""

    pass
