"""Tests for the playback session state machine."""

import random
from collections import Counter
from typing import Optional

import pytest

from kap_player.backends.base import AudioSink
from kap_player.errors import DeviceError, EmptyPlaylist, EmptySource, NotReadable
from kap_player.library.metadata import TrackInfo, TrackMetadataReader
from kap_player.playback.events import (
    ErrorKind,
    LoadError,
    NowPlaying,
    PlaybackError,
    SessionEvent,
    ShuffleStateChanged,
)
from kap_player.playback.lyrics import LyricsProvider
from kap_player.playback.ordering import PlaylistOrdering, Track
from kap_player.playback.session import NOT_STARTED, PlaybackSession, SessionPhase


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeReader(TrackMetadataReader):
    """Returns title/artist derived from the file name; fails for chosen tracks."""

    def __init__(self, unreadable: Optional[set[str]] = None):
        self.unreadable = unreadable or set()
        self.calls: list[Track] = []

    async def read(self, track: Track) -> TrackInfo:
        self.calls.append(track)
        if track.track_id in self.unreadable:
            raise NotReadable(f"bad tags: {track.track_id}")
        return TrackInfo(title=f"Title {track.name}", artist="Artist")


class RecordingSink(AudioSink):
    """Records play/stop calls; optionally fails to play."""

    def __init__(self, fail: bool = False):
        super().__init__("Recording")
        self.fail = fail
        self.played: list[Track] = []
        self.stops = 0

    async def play(self, track: Track) -> None:
        if self.fail:
            raise DeviceError("device busy")
        self.played.append(track)

    async def stop(self) -> None:
        self.stops += 1


class FailingLyrics(LyricsProvider):
    async def fetch(self, title: str, artist: str) -> Optional[str]:
        raise RuntimeError("lyrics service down")


def _tracks(*names: str) -> list[Track]:
    return [Track(track_id=f"/music/{name}.mp3") for name in names]


def _make_session(
    reader: Optional[FakeReader] = None,
    sink: Optional[RecordingSink] = None,
    seed: int = 7,
) -> tuple[PlaybackSession, list[SessionEvent]]:
    session = PlaybackSession(
        metadata_reader=reader or FakeReader(),
        sink=sink or RecordingSink(),
        ordering=PlaylistOrdering(rng=random.Random(seed)),
    )
    events: list[SessionEvent] = []
    session.add_listener(events.append)
    return session, events


# ---------------------------------------------------------------------------
# Tests: Initial State
# ---------------------------------------------------------------------------


class TestInitialState:
    """Test a freshly created session."""

    def test_empty_session(self) -> None:
        session, _ = _make_session()
        state = session.current_state()

        assert state.current_index == NOT_STARTED
        assert state.current_track is None
        assert state.shuffle_enabled is False
        assert state.track_count == 0
        assert state.phase == SessionPhase.EMPTY

    async def test_advance_on_empty_session_raises(self) -> None:
        sink = RecordingSink()
        session, events = _make_session(sink=sink)
        before = session.current_state()

        with pytest.raises(EmptyPlaylist):
            await session.advance()

        assert session.current_state() == before
        assert sink.played == []
        assert events == []


# ---------------------------------------------------------------------------
# Tests: Loading
# ---------------------------------------------------------------------------


class TestLoadFolder:
    """Test load_folder transitions."""

    async def test_load_moves_to_idle(self) -> None:
        session, _ = _make_session()
        state = await session.load_folder(_tracks("A", "B", "C"))

        assert state.phase == SessionPhase.IDLE
        assert state.track_count == 3
        assert state.current_index == NOT_STARTED
        assert state.current_track is None

    async def test_load_empty_raises_on_first_load(self) -> None:
        session, events = _make_session()

        with pytest.raises(EmptySource):
            await session.load_folder([])

        assert session.current_state().phase == SessionPhase.EMPTY
        assert events == [LoadError(kind=ErrorKind.EMPTY_SOURCE, message="No eligible tracks to load")]

    async def test_load_empty_keeps_playing_state(self) -> None:
        session, _ = _make_session()
        tracks = _tracks("A", "B", "C")
        await session.load_folder(tracks)
        await session.advance()
        await session.advance()
        before = session.current_state()

        with pytest.raises(EmptySource):
            await session.load_folder([])

        assert session.current_state() == before
        assert list(session.ordering.playlist) == tracks

    async def test_reload_resets_position(self) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks("A", "B", "C"))
        await session.advance()

        state = await session.load_folder(_tracks("X", "Y"))

        assert state.phase == SessionPhase.IDLE
        assert state.current_index == NOT_STARTED
        assert state.current_track is None
        assert state.track_count == 2

    async def test_reload_keeps_shuffle_flag(self) -> None:
        session, _ = _make_session()
        await session.toggle_shuffle()
        state = await session.load_folder(_tracks("A", "B"))
        assert state.shuffle_enabled is True


# ---------------------------------------------------------------------------
# Tests: Sequential Advance
# ---------------------------------------------------------------------------


class TestSequentialAdvance:
    """Test advance with shuffle off."""

    async def test_three_track_cycle(self) -> None:
        session, _ = _make_session()
        a, b, c = _tracks("A", "B", "C")
        await session.load_folder([a, b, c])

        observed = []
        for _ in range(4):
            state = await session.advance()
            observed.append((state.current_track, state.current_index))

        assert observed == [(a, 0), (b, 1), (c, 2), (a, 0)]

    @pytest.mark.parametrize("count", [1, 2, 5, 9])
    async def test_n_advances_return_to_zero(self, count: int) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks(*[f"T{i}" for i in range(count)]))

        indices = [(await session.advance()).current_index for _ in range(2 * count)]

        assert indices == list(range(count)) * 2

    async def test_single_track_repeats(self) -> None:
        session, _ = _make_session()
        (only,) = _tracks("A")
        await session.load_folder([only])

        for _ in range(3):
            state = await session.advance()
            assert state.current_index == 0
            assert state.current_track == only

    async def test_advance_sets_playing_phase(self) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks("A", "B"))
        state = await session.advance()
        assert state.phase == SessionPhase.PLAYING

    async def test_advance_plays_track_on_sink(self) -> None:
        sink = RecordingSink()
        session, _ = _make_session(sink=sink)
        tracks = _tracks("A", "B")
        await session.load_folder(tracks)

        await session.advance()
        await session.advance()

        assert sink.played == tracks

    async def test_advance_emits_now_playing(self) -> None:
        session, events = _make_session()
        (a,) = _tracks("A")
        await session.load_folder([a])

        await session.advance()

        assert events == [NowPlaying(title="Title A.mp3", artist="Artist", track=a)]


# ---------------------------------------------------------------------------
# Tests: Shuffle
# ---------------------------------------------------------------------------


class TestShuffle:
    """Test toggle_shuffle and shuffled advance."""

    async def test_toggle_returns_new_state(self) -> None:
        session, events = _make_session()

        assert await session.toggle_shuffle() is True
        assert await session.toggle_shuffle() is False
        assert events == [ShuffleStateChanged(enabled=True), ShuffleStateChanged(enabled=False)]

    async def test_double_toggle_leaves_position_untouched(self) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks("A", "B", "C"))
        await session.advance()
        before = session.current_state()

        await session.toggle_shuffle()
        middle = session.current_state()
        await session.toggle_shuffle()
        after = session.current_state()

        assert middle.current_index == before.current_index
        assert middle.current_track == before.current_track
        assert after == before

    async def test_toggle_does_not_reorder_playlist(self) -> None:
        session, _ = _make_session()
        tracks = _tracks("A", "B", "C", "D")
        await session.load_folder(tracks)

        await session.toggle_shuffle()

        assert list(session.ordering.playlist) == tracks

    async def test_toggle_works_on_empty_session(self) -> None:
        session, _ = _make_session()
        assert await session.toggle_shuffle() is True
        assert session.current_state().phase == SessionPhase.EMPTY

    async def test_shuffled_advance_reshuffles_whole_playlist(self) -> None:
        session, _ = _make_session(seed=3)
        tracks = _tracks("A", "B", "C", "D", "E", "F")
        await session.load_folder(tracks)
        await session.toggle_shuffle()

        orders = set()
        for _ in range(10):
            state = await session.advance()
            playlist = session.ordering.playlist
            assert Counter(playlist) == Counter(tracks)
            assert playlist[state.current_index] == state.current_track
            orders.add(tuple(playlist))

        assert len(orders) > 1

    async def test_shuffled_index_still_steps(self) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks("A", "B", "C"))
        await session.toggle_shuffle()

        indices = [(await session.advance()).current_index for _ in range(6)]

        assert indices == [0, 1, 2, 0, 1, 2]

    async def test_shuffled_selection_is_uniform(self) -> None:
        sink = RecordingSink()
        session, _ = _make_session(sink=sink, seed=2024)
        tracks = _tracks("A", "B", "C", "D")
        await session.load_folder(tracks)
        await session.toggle_shuffle()

        rounds = 4000
        for _ in range(rounds):
            await session.advance()

        counts = Counter(sink.played)
        expected = rounds / len(tracks)
        assert set(counts) == set(tracks)
        for count in counts.values():
            assert abs(count - expected) < expected * 0.15

    async def test_shuffle_off_restores_sequential_stepping(self) -> None:
        session, _ = _make_session()
        await session.load_folder(_tracks("A", "B", "C", "D"))
        await session.toggle_shuffle()
        await session.advance()
        await session.toggle_shuffle()

        playlist_before = list(session.ordering.playlist)
        state = await session.advance()

        assert list(session.ordering.playlist) == playlist_before
        assert state.current_index == 1


# ---------------------------------------------------------------------------
# Tests: Soft Failures
# ---------------------------------------------------------------------------


class TestSoftFailures:
    """Test metadata and device failures during advance."""

    async def test_metadata_failure_still_advances(self) -> None:
        a, b = _tracks("A", "B")
        sink = RecordingSink()
        session, events = _make_session(reader=FakeReader(unreadable={a.track_id}), sink=sink)
        await session.load_folder([a, b])

        state = await session.advance()

        assert state.current_index == 0
        assert state.current_track == a
        assert sink.played == [a]
        assert len(events) == 1
        assert isinstance(events[0], PlaybackError)
        assert events[0].kind == ErrorKind.NOT_READABLE
        assert events[0].track_id == a.track_id

    async def test_metadata_failure_does_not_block_next_advance(self) -> None:
        a, b = _tracks("A", "B")
        session, events = _make_session(reader=FakeReader(unreadable={a.track_id}))
        await session.load_folder([a, b])

        await session.advance()
        state = await session.advance()

        assert state.current_track == b
        assert isinstance(events[-1], NowPlaying)

    async def test_device_failure_commits_position(self) -> None:
        (a,) = _tracks("A")
        session, events = _make_session(sink=RecordingSink(fail=True))
        await session.load_folder([a])

        state = await session.advance()

        assert state.current_index == 0
        assert state.current_track == a
        assert isinstance(events[0], NowPlaying)
        assert events[1] == PlaybackError(
            kind=ErrorKind.DEVICE_ERROR, track_id=a.track_id, message="device busy"
        )

    async def test_both_failures_reported(self) -> None:
        (a,) = _tracks("A")
        session, events = _make_session(
            reader=FakeReader(unreadable={a.track_id}), sink=RecordingSink(fail=True)
        )
        await session.load_folder([a])

        await session.advance()

        assert [e.kind for e in events if isinstance(e, PlaybackError)] == [
            ErrorKind.NOT_READABLE,
            ErrorKind.DEVICE_ERROR,
        ]

    async def test_lyrics_failure_is_ignored(self) -> None:
        session = PlaybackSession(
            metadata_reader=FakeReader(), sink=RecordingSink(), lyrics=FailingLyrics()
        )
        await session.load_folder(_tracks("A"))

        state = await session.advance()

        assert state.current_index == 0

    async def test_listener_error_does_not_break_advance(self) -> None:
        session, events = _make_session()

        def broken(event: SessionEvent) -> None:
            raise ValueError("listener bug")

        session.add_listener(broken)
        await session.load_folder(_tracks("A"))

        state = await session.advance()

        assert state.current_index == 0
        assert len(events) == 1

    async def test_removed_listener_gets_nothing(self) -> None:
        session, events = _make_session()
        session.remove_listener(events.append)

        await session.toggle_shuffle()

        assert events == []


# ---------------------------------------------------------------------------
# Tests: Output Control
# ---------------------------------------------------------------------------


class TestStopOutput:
    """Test stop_output."""

    async def test_stop_keeps_position(self) -> None:
        sink = RecordingSink()
        session, _ = _make_session(sink=sink)
        await session.load_folder(_tracks("A", "B"))
        await session.advance()
        before = session.current_state()

        await session.stop_output()

        assert sink.stops == 1
        assert session.current_state() == before
