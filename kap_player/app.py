"""
kap-player Application.

Main orchestrator that wires together all components and manages lifecycle.
"""

import asyncio
import logging
import signal
import sys
import threading
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from kap_player.backends import AudioSink, SinkFactory
from kap_player.config import Config
from kap_player.errors import EmptyPlaylist, EmptySource, ScanError
from kap_player.library import MutagenMetadataReader, TrackMetadataReader, scan_folder
from kap_player.playback import (
    Advance,
    ConsoleLyricsProvider,
    ErrorKind,
    Load,
    LoadError,
    NowPlaying,
    PlaybackError,
    PlaybackSession,
    SessionCommandHandler,
    SessionEvent,
    SessionState,
    ShuffleStateChanged,
    Stop,
    ToggleShuffle,
)

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  n, next          play next track
  s, shuffle       toggle shuffle
  l, load FOLDER   load a new music folder
  i, status        show current track and mode
  x, stop          stop audio output
  h, help          show this help
  q, quit          exit"""


class KapPlayer:
    """
    Main kap-player application.

    Orchestrates all components:
    - Library (folder scanner, MutagenMetadataReader)
    - Audio sink (LocalAudioSink or NullAudioSink)
    - Playback (PlaybackSession behind a SessionCommandHandler)
    - Console (rich output of session events, stdin command loop)

    Usage:
        config = load_config(...)
        app = KapPlayer(config)
        await app.run()
    """

    def __init__(
        self,
        config: Config,
        console: Optional[Console] = None,
        sink: Optional[AudioSink] = None,
        metadata_reader: Optional[TrackMetadataReader] = None,
        input_stream: Optional[TextIO] = None,
    ):
        """
        Initialize kap-player.

        Args:
            config: Validated configuration
            console: Output console (defaults to stdout)
            sink: Pre-built audio sink (created from config if omitted)
            metadata_reader: Metadata reader (mutagen if omitted)
            input_stream: Command source for run() (defaults to stdin)
        """
        self._config = config
        self._console = console or Console(highlight=False)
        self._sink = sink
        self._metadata_reader = metadata_reader or MutagenMetadataReader()
        self._input_stream = input_stream or sys.stdin

        self._is_running = False
        self._shutdown_event = asyncio.Event()

        # Components (initialized in start())
        self._session: Optional[PlaybackSession] = None
        self._handler: Optional[SessionCommandHandler] = None

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    @property
    def is_running(self) -> bool:
        """Check if the application is running."""
        return self._is_running

    async def start(self) -> None:
        """
        Start kap-player and all components.

        Startup order:
        1. Audio sink
        2. Session and command handler
        3. Initial shuffle mode
        4. Load configured music folder
        5. Autoplay first track

        Raises:
            SinkNotFoundError: If the audio output cannot be opened
            ScanError: If the music folder cannot be read
        """
        logger.info("Starting kap-player...")

        # 1. Audio sink
        if self._sink is None:
            self._sink = await SinkFactory.create_from_config(self._config)
        elif not self._sink.is_connected():
            await self._sink.connect()
        logger.info(f"Audio output: {self._sink.get_info()}")

        # 2. Session and command handler
        self._session = PlaybackSession(
            metadata_reader=self._metadata_reader,
            sink=self._sink,
            lyrics=ConsoleLyricsProvider(self._console),
        )
        self._session.add_listener(self._print_event)
        self._handler = SessionCommandHandler(self._session)
        await self._handler.start()
        self._is_running = True

        self._sink.on_playback_error(self._on_playback_error)
        if self._config.playback.auto_advance:
            self._sink.on_track_ended(self._on_track_ended)

        # 3. Initial shuffle mode
        if self._config.playback.shuffle:
            await self._handler.submit(ToggleShuffle())

        # 4. Load music folder
        loaded = await self.load(self._config.library.folder)

        # 5. Autoplay
        if loaded and self._config.playback.autoplay:
            await self.next_track()

        logger.info("kap-player started")

    async def stop(self) -> None:
        """
        Stop kap-player and all components.

        Shutdown order (reverse of startup):
        1. Stop command handler
        2. Disconnect audio sink
        """
        if not self._is_running:
            return

        logger.info("Stopping kap-player...")
        self._is_running = False

        if self._handler:
            try:
                await self._handler.stop()
            except Exception as e:
                logger.warning(f"Error stopping command handler: {e}")

        if self._sink:
            try:
                await self._sink.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting audio sink: {e}")

        logger.info("kap-player stopped")

    async def run(self) -> None:
        """
        Run kap-player until quit or interrupted.

        Sets up signal handlers for graceful shutdown on SIGINT/SIGTERM.
        """
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Shutdown signal received")
            self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, handle_signal)

        try:
            await self.start()
            self._console.print("Type 'h' for help.")
            await self._command_loop()
        finally:
            await self.stop()

    # =========================================================================
    # Commands
    # =========================================================================

    async def load(self, folder: str) -> bool:
        """
        Scan a folder and load it into the session.

        Returns:
            True if a playlist was installed, False if the folder had no tracks
        """
        tracks = scan_folder(folder, self._config.library.extensions)
        try:
            await self._handler.submit(Load(tracks=tracks))
        except EmptySource:
            return False
        self._console.print(f"Loaded {len(tracks)} tracks from {escape(str(folder))}")
        return True

    async def next_track(self) -> Optional[SessionState]:
        """Advance to the next track. Returns None if nothing is loaded."""
        try:
            return await self._handler.submit(Advance())
        except EmptyPlaylist:
            self._console.print("[red]No songs loaded![/red]")
            return None

    async def toggle_shuffle(self) -> bool:
        return await self._handler.submit(ToggleShuffle())

    async def stop_output(self) -> None:
        await self._handler.submit(Stop())

    async def handle_line(self, line: str) -> bool:
        """
        Execute one console command.

        Returns:
            False when the user asked to quit
        """
        parts = line.strip().split(maxsplit=1)
        if not parts:
            return True

        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd in ("q", "quit", "exit"):
            return False
        elif cmd in ("n", "next"):
            await self.next_track()
        elif cmd in ("s", "shuffle"):
            await self.toggle_shuffle()
        elif cmd in ("l", "load"):
            if not arg:
                self._console.print("[red]Usage: load FOLDER[/red]")
            else:
                await self._load_from_console(arg)
        elif cmd in ("i", "status"):
            self._print_status(self._session.current_state())
        elif cmd in ("x", "stop"):
            await self.stop_output()
        elif cmd in ("h", "help", "?"):
            self._console.print(HELP_TEXT)
        else:
            self._console.print(f"[red]Unknown command: {escape(cmd)}[/red] (type 'h' for help)")
        return True

    async def _load_from_console(self, folder: str) -> None:
        """Load a folder typed at the console, reporting scan failures."""
        try:
            await self.load(folder)
        except ScanError as e:
            self._console.print(f"[red]{escape(str(e))}[/red]")

    # =========================================================================
    # Console I/O
    # =========================================================================

    async def _command_loop(self) -> None:
        """Read console lines until quit, EOF or shutdown signal."""
        lines: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._start_reader_thread(lines)

        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        try:
            while not self._shutdown_event.is_set():
                line_task = asyncio.create_task(lines.get())
                done, _ = await asyncio.wait(
                    {line_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED
                )
                if line_task not in done:
                    line_task.cancel()
                    break

                line = line_task.result()
                if line is None or not await self.handle_line(line):
                    break
        finally:
            shutdown_task.cancel()

    def _start_reader_thread(self, lines: "asyncio.Queue[Optional[str]]") -> None:
        """Read the input stream on a daemon thread so shutdown never waits on it."""
        loop = asyncio.get_running_loop()
        stream = self._input_stream

        def reader() -> None:
            for line in stream:
                loop.call_soon_threadsafe(lines.put_nowait, line)
            loop.call_soon_threadsafe(lines.put_nowait, None)

        threading.Thread(target=reader, name="kap-console-input", daemon=True).start()

    def _print_event(self, event: SessionEvent) -> None:
        """Render a session event on the console."""
        if isinstance(event, NowPlaying):
            self._console.print(
                f"[green]Now playing: {escape(event.title)} - {escape(event.artist)}[/green]"
            )
        elif isinstance(event, ShuffleStateChanged):
            self._console.print(f"[cyan]Shuffle is now {'on' if event.enabled else 'off'}[/cyan]")
        elif isinstance(event, PlaybackError):
            reason = "metadata not readable" if event.kind == ErrorKind.NOT_READABLE else "audio device error"
            self._console.print(f"[red]Error playing {escape(event.track_id)}: {reason}[/red]")
        elif isinstance(event, LoadError):
            self._console.print("[red]No songs loaded![/red]")

    def _print_status(self, state: SessionState) -> None:
        track = state.current_track.name if state.current_track else "-"
        position = f"{state.current_index + 1}/{state.track_count}" if state.current_track else "-"
        line = (
            f"State: {state.phase.value}  Track: {escape(track)} ({position})  "
            f"Shuffle: {'on' if state.shuffle_enabled else 'off'}"
        )
        elapsed_ms = self._sink.position_ms if self._sink else None
        if elapsed_ms is not None:
            minutes, seconds = divmod(elapsed_ms // 1000, 60)
            line += f"  Elapsed: {minutes}:{seconds:02d}"
        self._console.print(line)

    # =========================================================================
    # Sink Callbacks
    # =========================================================================

    def _on_track_ended(self) -> None:
        """Queue an advance when the sink finishes a track on its own."""
        if not self._is_running or not self._handler:
            return
        logger.debug("Track ended, advancing")
        future = self._handler.post(Advance())
        future.add_done_callback(self._log_auto_advance_result)

    def _on_playback_error(self, message: str) -> None:
        self._console.print(f"[red]{escape(message)}[/red]")

    @staticmethod
    def _log_auto_advance_result(future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error:
            logger.warning(f"Auto-advance failed: {error}")
