"""
Tests for the playlist orchestrator state machine.
"""

import random

import pytest

from playdeck.domain.library.models import BufferTrack, FileTrack
from playdeck.domain.playback.events import TrackEndReason, TrackEvent
from playdeck.domain.playback.exceptions import (
    FileNotFound,
    IndexOutOfRange,
    InvalidVolume,
    UnsupportedFormat,
)
from playdeck.domain.playback.orchestrator import PlayerState, PlaylistManager
from playdeck.domain.playback.transport import PlaybackState

SETTLE = 0.05
INTERVAL = 0.5


class Recorder:
    """Collects orchestrator events as plain tuples."""

    def __init__(self, manager: PlaylistManager):
        self.events: list[tuple] = []
        manager.on(TrackEvent.TRACK_START, self._start)
        manager.on(TrackEvent.TRACK_END, self._end)
        manager.on(TrackEvent.PLAYLIST_END, self._playlist_end)

    def _start(self, track, index):
        self.events.append(("start", index))

    def _end(self, track, index, reason):
        self.events.append(("end", index, reason))

    def _playlist_end(self):
        self.events.append(("playlist_end",))

    def starts(self) -> list[int]:
        return [e[1] for e in self.events if e[0] == "start"]


@pytest.fixture
def recorder(manager):
    return Recorder(manager)


def play_and_settle(manager, scheduler):
    manager.play_current_track()
    scheduler.advance(SETTLE)


def complete_current(transport, scheduler):
    """End the current track and let the monitor notice and advance."""
    transport.finish()
    scheduler.advance(INTERVAL)
    scheduler.advance(SETTLE)


class TestLoadTracks:
    """Tests for replacing and extending the playlist."""

    def test_drops_unsupported_formats(self, manager):
        """Test that files with unknown extensions are skipped."""
        count = manager.load_tracks(["/m/a.mp3", "/m/notes.txt", "/m/b.FLAC"])
        assert count == 2
        assert [t.path for t in manager.get_tracks()] == ["/m/a.mp3", "/m/b.FLAC"]

    def test_accepts_buffers(self, manager, transport, scheduler):
        """Test that raw byte buffers are loaded through load_buffer."""
        manager.load_tracks([b"RIFF....WAVE", "/m/a.wav"])
        assert isinstance(manager.get_tracks()[0], BufferTrack)

        play_and_settle(manager, scheduler)
        assert transport.calls[0] == ("load_buffer", 12)
        assert transport.state is PlaybackState.PLAYING

    def test_reload_resets_cursor(self, manager, three_tracks):
        manager.load_tracks(three_tracks)
        manager.cue_track(2)
        manager.load_tracks(three_tracks[:2])
        assert manager.get_current_index() == 0

    def test_load_songs_keeps_metadata(self, manager):
        manager.load_songs(
            [
                {"path": "/m/a.mp3", "title": "Song", "artist": "Band", "duration": 61.6},
                {"path": "/m/b.mp3", "title": "Other"},
            ]
        )
        assert manager.get_total_tracks() == 2
        assert manager.get_current_track_metadata().display_name() == "Band - Song"
        assert manager.get_status().total_duration == 62

    def test_invalid_songs_leave_playback_running(self, manager, transport, scheduler, three_tracks):
        """Test that a bad song list is rejected before the current track is halted."""
        manager.load_tracks(three_tracks)
        manager.go_to_track(1)
        scheduler.advance(SETTLE)

        with pytest.raises(ValueError):
            manager.load_songs([{"path": "/m/a.mp3"}, {"title": "no path"}])

        assert manager.get_state() is PlayerState.PLAYING
        assert manager.get_current_index() == 1
        assert manager.get_total_tracks() == 3
        assert transport.count("stop") == 0

    def test_invalid_sources_leave_playback_running(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        with pytest.raises(TypeError):
            manager.load_tracks(["/m/a.mp3", 42])

        assert manager.get_state() is PlayerState.PLAYING
        assert transport.count("stop") == 0

    def test_add_track_rejects_unsupported(self, manager, tmp_path):
        path = tmp_path / "cover.jpg"
        path.write_bytes(b"x")
        with pytest.raises(UnsupportedFormat):
            manager.add_track(str(path))

    def test_add_track_rejects_missing_file(self, manager, tmp_path):
        with pytest.raises(FileNotFound):
            manager.add_track(str(tmp_path / "gone.mp3"))

    def test_add_track_appends(self, manager, tmp_path, three_tracks):
        manager.load_tracks(three_tracks)
        path = tmp_path / "new.opus"
        path.write_bytes(b"x")
        track = manager.add_track(path)
        assert track == FileTrack(path=str(path))
        assert manager.get_total_tracks() == 4


class TestPlayCurrentTrack:
    """Tests for loading and starting the current track."""

    def test_empty_playlist_is_noop(self, manager, transport, scheduler, recorder):
        """Test that playing an empty playlist does nothing."""
        manager.play_current_track()
        scheduler.advance(5)
        assert transport.calls == []
        assert recorder.events == []
        assert manager.get_state() is PlayerState.IDLE

    def test_play_waits_for_settle_delay(self, manager, transport, scheduler, recorder, three_tracks):
        """Test that play() is issued only after the settle delay."""
        manager.load_tracks(three_tracks)
        manager.play_current_track()

        assert transport.loads() == ["/music/a.mp3"]
        assert transport.count("play") == 0
        assert manager.get_state() is PlayerState.LOADING

        scheduler.advance(SETTLE)
        assert transport.count("play") == 1
        assert manager.get_state() is PlayerState.PLAYING
        assert recorder.events == [("start", 0)]

    def test_applies_volume_on_load(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        transport.volume = 1.0
        manager.play_current_track()
        assert transport.volume == pytest.approx(0.7)

    def test_load_failure_propagates(self, manager, transport, three_tracks):
        """Test that resource errors reach the direct caller."""
        manager.load_tracks(three_tracks)
        transport.missing_paths.add("/music/a.mp3")
        with pytest.raises(FileNotFound):
            manager.play_current_track()
        assert manager.get_state() is PlayerState.STOPPED

    def test_replay_cancels_pending_start(self, manager, transport, scheduler, recorder, three_tracks):
        """Test that a second play before the settle delay starts only once."""
        manager.load_tracks(three_tracks)
        manager.play_current_track()
        manager.play_current_track()
        scheduler.advance(1)
        assert transport.count("play") == 1
        assert recorder.starts() == [0]


class TestAutoAdvance:
    """Tests for completion detection and automatic advance."""

    def test_completion_advances_once(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        complete_current(transport, scheduler)
        scheduler.advance(5)

        assert recorder.events == [
            ("start", 0),
            ("end", 0, TrackEndReason.COMPLETED),
            ("start", 1),
        ]
        assert transport.loads() == ["/music/a.mp3", "/music/b.flac"]
        assert manager.get_current_index() == 1

    def test_plays_whole_playlist_then_ends(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        for _ in range(3):
            complete_current(transport, scheduler)

        assert recorder.starts() == [0, 1, 2]
        assert recorder.events[-1] == ("playlist_end",)
        assert manager.get_state() is PlayerState.ENDED
        assert manager.get_current_index() == 2

    def test_last_track_completion_scenario(self, manager, transport, scheduler, recorder, three_tracks):
        """Test completion of the final track without loop."""
        manager.load_tracks(three_tracks)
        manager.go_to_track(2)
        scheduler.advance(SETTLE)

        complete_current(transport, scheduler)
        scheduler.advance(5)

        assert recorder.events == [
            ("start", 2),
            ("end", 2, TrackEndReason.COMPLETED),
            ("playlist_end",),
        ]
        assert manager.get_current_index() == 2
        assert transport.loads() == ["/music/c.ogg"]

    def test_loop_wraps_to_first_track(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.set_loop(True)
        manager.go_to_track(2)
        scheduler.advance(SETTLE)

        complete_current(transport, scheduler)

        assert manager.get_current_index() == 0
        assert recorder.starts() == [2, 0]
        assert ("playlist_end",) not in recorder.events

    def test_paused_track_is_not_completed(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        manager.pause()

        scheduler.advance(10)
        assert recorder.events == [("start", 0)]
        assert scheduler.pending() == []

    def test_transport_error_stops_monitoring(self, manager, transport, scheduler, three_tracks):
        """Test that a failing engine query is logged and ends polling."""
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        transport.fail_is_playing = True

        scheduler.advance(INTERVAL)
        assert scheduler.pending() == []
        assert manager.get_current_index() == 0

    def test_load_error_during_advance_is_contained(self, manager, transport, scheduler, recorder, three_tracks):
        """Test that a missing next file does not escape the event loop."""
        manager.load_tracks(three_tracks)
        transport.missing_paths.add("/music/b.flac")
        play_and_settle(manager, scheduler)

        complete_current(transport, scheduler)

        assert manager.get_current_index() == 1
        assert manager.get_state() is PlayerState.STOPPED
        assert recorder.starts() == [0]
        assert scheduler.pending() == []

    def test_stop_from_track_end_handler_prevents_advance(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        manager.on(TrackEvent.TRACK_END, lambda track, index, reason: manager.stop())
        play_and_settle(manager, scheduler)

        complete_current(transport, scheduler)
        scheduler.advance(5)

        assert transport.loads() == ["/music/a.mp3"]
        assert manager.get_current_index() == 0


class TestStopRace:
    """Tests for stop() racing pending continuations."""

    def test_stop_during_settle_delay(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.play_current_track()
        manager.stop()
        scheduler.advance(5)

        assert transport.count("play") == 0
        assert recorder.events == []
        assert manager.get_state() is PlayerState.STOPPED

    def test_stop_between_detection_and_advance(self, manager, transport, scheduler, recorder, three_tracks):
        """Test that a stop after completion detection suppresses the advance."""
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        transport.finish()

        # Run only the poll tick; the advance is now queued
        assert scheduler.run_next()
        assert recorder.events[-1] == ("end", 0, TrackEndReason.COMPLETED)

        manager.stop()
        scheduler.advance(10)

        assert transport.loads() == ["/music/a.mp3"]
        assert recorder.starts() == [0]
        assert manager.get_current_index() == 0
        assert scheduler.pending() == []

    @pytest.mark.parametrize("seed", range(40))
    def test_random_stop_never_double_advances(self, transport, scheduler, clock, three_tracks, seed):
        """Test stop() at random points around a completion."""
        rng = random.Random(seed)
        manager = PlaylistManager(transport, scheduler, rng=random.Random(seed), clock=clock)
        recorder = Recorder(manager)
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        scheduler.advance(rng.uniform(0, 2))
        transport.finish()

        for _ in range(rng.randint(0, 6)):
            if rng.random() < 0.3:
                scheduler.advance(rng.uniform(0, INTERVAL))
            elif not scheduler.run_next():
                break

        starts_before_stop = len(recorder.starts())
        loads_before_stop = len(transport.loads())
        manager.stop()
        scheduler.advance(10)

        # One real completion: at most one extra track
        assert loads_before_stop <= 2
        assert starts_before_stop <= 2
        assert len(transport.loads()) == loads_before_stop
        assert len(recorder.starts()) == starts_before_stop
        assert manager.get_current_index() == 0
        assert transport.state is PlaybackState.STOPPED
        assert scheduler.pending() == []

    def test_stop_error_is_logged_not_raised(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        transport.fail_stop = True

        manager.stop()

        assert manager.get_state() is PlayerState.STOPPED
        assert manager.get_current_index() == 0
        assert scheduler.pending() == []


class TestNavigation:
    """Tests for next/previous/go-to and loop semantics."""

    def test_next_without_loop_ends_at_last_track(self, manager, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        for _ in range(2):
            manager.next_track()
        assert manager.get_current_index() == 2
        assert ("playlist_end",) not in recorder.events

        manager.next_track()
        assert manager.get_current_index() == 2
        assert recorder.events.count(("playlist_end",)) == 1
        assert manager.get_state() is PlayerState.ENDED

    def test_next_with_loop_returns_to_start(self, manager, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.set_loop(True)
        for _ in range(3):
            manager.next_track()
        assert manager.get_current_index() == 0
        assert ("playlist_end",) not in recorder.events

    def test_previous_clamps_at_zero(self, manager, transport, three_tracks):
        manager.load_tracks(three_tracks)
        manager.previous_track()
        assert manager.get_current_index() == 0
        assert transport.loads() == ["/music/a.mp3"]

    def test_previous_moves_back(self, manager, three_tracks):
        manager.load_tracks(three_tracks)
        manager.go_to_track(2)
        manager.previous_track()
        assert manager.get_current_index() == 1

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_go_to_invalid_index(self, manager, transport, three_tracks, index):
        manager.load_tracks(three_tracks)
        with pytest.raises(IndexOutOfRange) as exc_info:
            manager.go_to_track(index)
        assert str(exc_info.value).startswith("validation:")
        assert manager.get_current_index() == 0
        assert transport.loads() == []

    def test_next_on_empty_playlist(self, manager, transport, recorder):
        manager.next_track()
        manager.previous_track()
        assert transport.calls == []
        assert recorder.events == []

    def test_index_stays_in_range(self, manager, scheduler, tmp_path):
        """Test the index invariant across a random sequence of operations."""
        rng = random.Random(99)
        paths = []
        for i in range(4):
            path = tmp_path / f"t{i}.mp3"
            path.write_bytes(b"x")
            paths.append(str(path))
        manager.load_tracks(paths)

        for _ in range(200):
            op = rng.choice(["next", "prev", "goto", "remove", "add", "skip", "stop", "tick"])
            total = manager.get_total_tracks()
            if op == "next":
                manager.next_track()
            elif op == "prev":
                manager.previous_track()
            elif op == "goto" and total:
                manager.go_to_track(rng.randrange(total))
            elif op == "remove" and total:
                manager.remove_track(rng.randrange(total))
            elif op == "add":
                manager.add_track(rng.choice(paths))
            elif op == "skip":
                manager.skip()
            elif op == "stop":
                manager.stop()
            else:
                scheduler.advance(rng.uniform(0, 1))

            total = manager.get_total_tracks()
            index = manager.get_current_index()
            if total == 0:
                assert index == 0
            else:
                assert 0 <= index < total


class TestPauseResume:
    """Tests for pause and resume."""

    def test_pause_then_resume(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        manager.pause()
        assert transport.state is PlaybackState.PAUSED
        assert manager.get_state() is PlayerState.PAUSED

        manager.resume()
        assert transport.state is PlaybackState.PLAYING
        assert manager.get_state() is PlayerState.PLAYING
        assert transport.loads() == ["/music/a.mp3"]

        # Monitoring restarted
        complete_current(transport, scheduler)
        assert manager.get_current_index() == 1

    def test_pause_during_loading_holds_track(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        manager.play_current_track()
        manager.pause()
        scheduler.advance(5)
        assert transport.count("play") == 0

        manager.resume()
        assert transport.count("play") == 1
        assert transport.loads() == ["/music/a.mp3"]

    def test_resume_after_pause_during_loading_emits_start(self, manager, transport, scheduler, recorder, three_tracks):
        """Test that a track paused before it started still announces its start."""
        manager.load_tracks(three_tracks)
        manager.play_current_track()
        manager.pause()

        manager.resume()
        scheduler.advance(1)

        assert recorder.starts() == [0]
        assert transport.count("play") == 1
        assert manager.get_state() is PlayerState.PLAYING

        # Monitoring runs for the started track
        complete_current(transport, scheduler)
        assert manager.get_current_index() == 1

    def test_resume_while_loading_waits_for_pending_start(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.play_current_track()

        manager.resume()
        assert transport.count("play") == 0
        assert manager.get_state() is PlayerState.LOADING

        scheduler.advance(1)
        assert transport.count("play") == 1
        assert recorder.starts() == [0]

    def test_resume_without_loaded_track_plays_current(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        manager.cue_track(1)
        manager.resume()
        scheduler.advance(SETTLE)
        assert transport.loads() == ["/music/b.flac"]
        assert manager.get_state() is PlayerState.PLAYING

    def test_pause_when_idle_is_noop(self, manager, transport, three_tracks):
        manager.load_tracks(three_tracks)
        manager.pause()
        assert transport.count("pause") == 0
        assert manager.get_state() is PlayerState.IDLE


class TestSkip:
    """Tests for manual skip."""

    def test_skip_emits_manual_end_and_plays_next(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        manager.skip()
        scheduler.advance(SETTLE)

        assert recorder.events == [
            ("start", 0),
            ("end", 0, TrackEndReason.MANUAL),
            ("start", 1),
        ]
        assert manager.get_current_index() == 1

    def test_skip_last_track_ends_playlist(self, manager, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.go_to_track(2)
        scheduler.advance(SETTLE)

        manager.skip()
        assert recorder.events[-2:] == [("end", 2, TrackEndReason.MANUAL), ("playlist_end",)]
        assert manager.get_current_index() == 2

    def test_skip_when_stopped_has_no_end_event(self, manager, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        manager.skip()
        assert ("end", 0, TrackEndReason.MANUAL) not in recorder.events
        assert manager.get_current_index() == 1


class TestRemoveTrack:
    """Tests for removing tracks relative to the cursor."""

    @pytest.fixture
    def five_tracks(self, manager):
        paths = [f"/music/{name}.mp3" for name in "abcde"]
        manager.load_tracks(paths)
        return paths

    def test_remove_before_current_shifts_index(self, manager, five_tracks):
        manager.cue_track(3)
        manager.remove_track(1)
        assert manager.get_current_index() == 2
        assert manager.get_current_track().path == "/music/d.mp3"

    def test_remove_before_current_while_loading(self, manager, transport, scheduler, recorder, five_tracks):
        """Test that the pending start survives the index shift."""
        manager.go_to_track(3)
        manager.remove_track(0)
        scheduler.advance(SETTLE)

        assert transport.count("play") == 1
        assert recorder.starts() == [2]
        assert manager.get_state() is PlayerState.PLAYING

    def test_remove_after_current_keeps_index(self, manager, five_tracks):
        manager.cue_track(1)
        manager.remove_track(3)
        assert manager.get_current_index() == 1

    def test_remove_current_stops_playback(self, manager, transport, scheduler, five_tracks):
        manager.go_to_track(2)
        scheduler.advance(SETTLE)

        removed = manager.remove_track(2)

        assert removed.path == "/music/c.mp3"
        assert transport.count("stop") == 1
        assert manager.get_state() is PlayerState.STOPPED
        assert manager.get_current_index() == 2
        assert scheduler.pending() == []

    def test_remove_current_last_track_clamps(self, manager, scheduler, five_tracks):
        manager.go_to_track(4)
        scheduler.advance(SETTLE)
        manager.remove_track(4)
        assert manager.get_current_index() == 3

    def test_remove_all_tracks(self, manager, five_tracks):
        for _ in range(5):
            manager.remove_track(0)
        assert manager.get_total_tracks() == 0
        assert manager.get_current_index() == 0
        assert manager.get_state() is PlayerState.IDLE

    def test_remove_invalid_index(self, manager, five_tracks):
        with pytest.raises(IndexOutOfRange):
            manager.remove_track(5)
        assert manager.get_total_tracks() == 5


class TestVolume:
    """Tests for volume validation."""

    def test_constructor_applies_default_volume(self, manager, transport):
        assert manager.get_volume() == pytest.approx(0.7)
        assert transport.volume == pytest.approx(0.7)

    @pytest.mark.parametrize("volume", [-0.1, 1.01, float("nan")])
    def test_out_of_range_volume_raises(self, manager, transport, volume):
        with pytest.raises(InvalidVolume):
            manager.set_volume(volume)
        assert manager.get_volume() == pytest.approx(0.7)

    def test_set_volume(self, manager, transport):
        manager.set_volume(0.5)
        assert manager.get_volume() == 0.5
        assert transport.volume == 0.5

    def test_constructor_rejects_bad_volume(self, transport, scheduler):
        with pytest.raises(InvalidVolume):
            PlaylistManager(transport, scheduler, volume=2.0)


class TestSeek:
    """Tests for seek bounds."""

    @pytest.fixture
    def playing(self, manager, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        return manager

    def test_seek_fraction(self, playing, transport):
        playing.seek(0.5)
        assert transport.position == pytest.approx(90.0)

    def test_seek_seconds(self, playing, transport):
        playing.seek_seconds(42)
        assert transport.position == 42

    @pytest.mark.parametrize("fraction", [-0.01, 1.5])
    def test_seek_fraction_out_of_range_is_ignored(self, playing, transport, fraction):
        playing.seek(fraction)
        assert transport.count("seek_to") == 0

    @pytest.mark.parametrize("seconds", [-1, 180.5])
    def test_seek_seconds_out_of_range_is_ignored(self, playing, transport, seconds):
        playing.seek_seconds(seconds)
        assert transport.count("seek_to") == 0
        assert transport.position == 0.0

    def test_seek_without_duration_is_ignored(self, manager, transport):
        manager.seek(0.5)
        manager.seek_seconds(1)
        assert transport.count("seek_to") == 0

    def test_progress(self, playing, transport):
        transport.position = 45.0
        assert playing.get_progress() == pytest.approx(0.25)


class TestShuffle:
    """Tests for shuffled ordering."""

    def test_shuffle_visits_every_track_once(self, manager, transport, scheduler, recorder):
        paths = [f"/music/{i}.mp3" for i in range(6)]
        manager.load_tracks(paths)
        manager.set_shuffle(True)
        play_and_settle(manager, scheduler)

        for _ in range(6):
            complete_current(transport, scheduler)

        assert sorted(recorder.starts()) == list(range(6))
        assert recorder.events[-1] == ("playlist_end",)

    def test_shuffle_with_loop_continues(self, manager, transport, scheduler, recorder):
        manager.load_tracks([f"/music/{i}.mp3" for i in range(3)])
        manager.set_shuffle(True)
        manager.set_loop(True)
        play_and_settle(manager, scheduler)

        for _ in range(7):
            complete_current(transport, scheduler)

        assert len(recorder.starts()) == 8
        assert ("playlist_end",) not in recorder.events

    def test_single_track_shuffle_loop_replays(self, manager, transport, scheduler, recorder):
        manager.load_tracks(["/music/only.mp3"])
        manager.set_shuffle(True)
        manager.set_loop(True)
        play_and_settle(manager, scheduler)

        complete_current(transport, scheduler)
        assert recorder.starts() == [0, 0]


class TestEvents:
    """Tests for event handler registration."""

    def test_handler_error_does_not_break_playback(self, manager, transport, scheduler, three_tracks):
        def broken(track, index):
            raise RuntimeError("boom")

        manager.on(TrackEvent.TRACK_START, broken)
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        assert manager.get_state() is PlayerState.PLAYING

        complete_current(transport, scheduler)
        assert manager.get_current_index() == 1

    def test_registering_replaces_handler(self, manager, scheduler, three_tracks):
        first, second = [], []
        manager.on(TrackEvent.TRACK_START, lambda t, i: first.append(i))
        manager.on("trackStart", lambda t, i: second.append(i))
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        assert first == []
        assert second == [0]

    def test_remove_listener(self, manager, scheduler, recorder, three_tracks):
        manager.remove_listener(TrackEvent.TRACK_START)
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        assert recorder.events == []


class TestStatusAndDispose:
    """Tests for status snapshots and disposal."""

    def test_status(self, manager, transport, scheduler, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)
        transport.position = 12.0

        status = manager.get_status()
        assert status.state is PlayerState.PLAYING
        assert status.is_playing
        assert status.current_index == 0
        assert status.total_tracks == 3
        assert status.current_track == "a.mp3"
        assert status.current_time == 12.0
        assert status.duration == 180.0

    def test_status_when_empty(self, manager):
        status = manager.get_status()
        assert status.current_track is None
        assert status.total_tracks == 0

    def test_dispose_is_idempotent(self, manager, transport, scheduler, recorder, three_tracks):
        manager.load_tracks(three_tracks)
        play_and_settle(manager, scheduler)

        manager.dispose()
        manager.dispose()

        assert transport.count("close") == 1
        assert manager.get_total_tracks() == 0
        assert manager.get_current_index() == 0
        assert scheduler.pending() == []
