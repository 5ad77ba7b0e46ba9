"""End-to-end tests for the ChordFollower engine on synthetic audio."""

import numpy as np
import pytest

from chord_follower import ChordFollower, ExpectedChordSequence, ManualClock, NO_CHORD, TrackerMode

SR = 44100
FRAME = 2048


def tone_frames(freqs, seconds, amplitude=0.3):
    """Yield frames of a sum of sines."""
    n = int(seconds * SR)
    t = np.arange(n) / SR
    audio = sum(amplitude * np.sin(2 * np.pi * f * t) for f in freqs)
    for start in range(0, n - FRAME + 1, FRAME):
        yield audio[start:start + FRAME]


def run(follower, clock, frames):
    label = NO_CHORD
    for frame in frames:
        clock.advance(FRAME / SR)
        label = follower.feed_frame(frame)
    return label


class FakeSource:
    def __init__(self):
        self.close_calls = 0

    def close(self):
        self.close_calls += 1


class BrokenSource:
    def close(self):
        raise OSError("device vanished")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def follower(clock):
    return ChordFollower(clock=clock)


class TestChordFollower:
    """Test the feed/query engine."""

    def test_silence_stays_awaiting_first_chord(self, follower, clock):
        follower.start([["A", "D"]])
        label = run(follower, clock, (np.zeros(FRAME) for _ in range(40)))

        assert label == NO_CHORD
        assert follower.current_chord() == NO_CHORD
        assert follower.current_mode() == TrackerMode.AWAITING_FIRST_CHORD
        assert follower.current_position() == (0, 0)

    def test_frames_ignored_while_inactive(self, follower):
        frame = next(tone_frames([220.0], 0.1))
        assert follower.feed_frame(frame) == NO_CHORD
        assert not follower.is_active
        np.testing.assert_array_equal(follower.chroma.buffer, 0.0)

    def test_single_tone_detected(self, follower, clock):
        """A sustained 220 Hz tone reads as A and satisfies an expected A."""
        follower.start([["A", "D"]])
        label = run(follower, clock, tone_frames([220.0], 3.0, amplitude=0.5))

        assert label == "A"
        assert follower.played_flags()[0][0]

    def test_major_triad_detected(self, follower, clock):
        follower.start()
        label = run(follower, clock, tone_frames([220.0, 277.18, 329.63], 3.0))
        assert label == "A"

    def test_stop_releases_source(self, follower):
        source = FakeSource()
        follower.start([["A"]], source=source)
        follower.stop()
        follower.stop()

        assert source.close_calls == 1
        assert not follower.is_active
        assert follower.current_chord() == NO_CHORD

    def test_restart_closes_previous_source(self, follower):
        first, second = FakeSource(), FakeSource()
        follower.start([["A"]], source=first)
        follower.start([["A"]], source=second)

        assert first.close_calls == 1
        assert second.close_calls == 0

        follower.stop()
        assert second.close_calls == 1

    def test_restart_with_same_source_keeps_it_open(self, follower):
        source = FakeSource()
        follower.start([["A"]], source=source)
        follower.start([["A"]], source=source)
        assert source.close_calls == 0

    def test_stop_clears_state_when_close_fails(self, follower, clock):
        follower.start([["A", "D"]], source=BrokenSource())
        run(follower, clock, tone_frames([220.0], 1.0, amplitude=0.5))
        follower.override_position(0, 1)

        with pytest.raises(OSError):
            follower.stop()

        assert not follower.is_active
        assert follower.current_chord() == NO_CHORD
        assert follower.current_position() == (0, 0)
        assert follower.played_flags() == [[False, False]]
        np.testing.assert_array_equal(follower.chroma.buffer, 0.0)

    def test_steady_triad_output_settles(self, follower, clock):
        """Ten seconds of an unchanging A major triad give one stable label."""
        follower.start()
        labels = []
        for frame in tone_frames([220.0, 277.18, 329.63], 10.0):
            clock.advance(FRAME / SR)
            labels.append(follower.feed_frame(frame))

        assert set(labels[len(labels) // 2:]) == {"A"}

    def test_position_callback(self, clock):
        snapshots = []
        follower = ChordFollower(clock=clock, on_position_change=snapshots.append)

        follower.start(ExpectedChordSequence([["A", "D"], ["E"]]))
        assert snapshots[-1].mode == TrackerMode.AWAITING_FIRST_CHORD

        follower.override_position(1, 0)
        assert snapshots[-1].position == (1, 0)
        assert snapshots[-1].played == ((True, True), (False,))

    def test_capo_hint_is_sounding_chord(self, follower):
        follower.start([["D", "G"]], capo=2)
        assert follower._hint() == "E"

        follower.set_capo(None)
        assert follower._hint() == "D"

    def test_set_expected_sequence_restarts(self, follower, clock):
        follower.start([["A", "D"]])
        follower.override_position(0, 1)
        follower.set_expected_sequence([["C", "F"]])

        assert follower.current_position() == (0, 0)
        assert follower.snapshot().expected == "C"
        assert follower.played_flags() == [[False, False]]

    def test_reset_clears_detection(self, follower, clock):
        follower.start([["A"]])
        run(follower, clock, tone_frames([220.0], 1.0))
        follower.reset()

        assert follower.current_chord() == NO_CHORD
        assert follower.is_active
        np.testing.assert_array_equal(follower.chroma.buffer, 0.0)
