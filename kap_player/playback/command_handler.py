"""
Serialized session command handling.

Front-ends post command messages; a single consumer task applies them to
the session one at a time and resolves each command's future with the
result or the hard failure it raised.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from .ordering import Track

if TYPE_CHECKING:
    from .session import PlaybackSession

logger = logging.getLogger(__name__)


@dataclass
class Load:
    """Replace the playlist with the given tracks."""

    tracks: list[Track] = field(default_factory=list)


@dataclass
class Advance:
    """Move to the next track."""

    pass


@dataclass
class ToggleShuffle:
    """Flip shuffle mode."""

    pass


@dataclass
class Stop:
    """Silence the audio sink, keeping the current position."""

    pass


Command = Union[Load, Advance, ToggleShuffle, Stop]


class SessionCommandHandler:
    """
    Single-consumer command queue in front of a PlaybackSession.

    Usage:
        handler = SessionCommandHandler(session)
        await handler.start()
        state = await handler.submit(Advance())
    """

    def __init__(self, session: "PlaybackSession"):
        """Initialize handler."""
        self.session = session
        self._queue: asyncio.Queue[tuple[Command, asyncio.Future]] = asyncio.Queue()
        self._consumer_task: Optional[asyncio.Task] = None
        self._is_running = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the consumer task."""
        if self._is_running:
            return
        self._is_running = True
        self._consumer_task = asyncio.create_task(self._consume_loop())
        logger.debug("Command handler started")

    async def stop(self) -> None:
        """Stop consuming and cancel any commands still waiting."""
        self._is_running = False
        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass
            self._consumer_task = None

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if not future.done():
                future.cancel()
        logger.debug("Command handler stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    # =========================================================================
    # Submission
    # =========================================================================

    def post(self, command: Command) -> asyncio.Future:
        """Queue a command without waiting. Returns the result future."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((command, future))
        return future

    async def submit(self, command: Command) -> Any:
        """
        Queue a command and wait for its result.

        Raises:
            Whatever hard failure the session raised for this command
        """
        return await self.post(command)

    # =========================================================================
    # Consumer
    # =========================================================================

    async def _consume_loop(self) -> None:
        """Apply queued commands in arrival order."""
        while self._is_running:
            command, future = await self._queue.get()
            if future.cancelled():
                continue
            try:
                result = await self._dispatch(command)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.debug(f"{type(command).__name__} failed: {e}")
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)

    async def _dispatch(self, command: Command) -> Any:
        """Route a command to the session operation."""
        if isinstance(command, Advance):
            return await self.session.advance()
        if isinstance(command, ToggleShuffle):
            return await self.session.toggle_shuffle()
        if isinstance(command, Load):
            return await self.session.load_folder(command.tracks)
        if isinstance(command, Stop):
            await self.session.stop_output()
            return self.session.current_state()
        raise TypeError(f"Unknown command: {command!r}")
