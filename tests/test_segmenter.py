import numpy as np
import pytest

from pitchscribe.state import FrameSeries, NoteSegment, SegmentationParams
from pitchscribe.transcription.segmenter import (
    FALLBACK_FRAME_PERIOD,
    frame_period_of,
    hz_to_midi,
    median,
    merge_adjacent,
    midi_to_hz,
    segment,
    segmentation_median,
)

PERIOD = 0.016
PARAMS = SegmentationParams(split_semitone_threshold=1.0, min_note_duration=0.05, unvoiced_grace_period=0.05)


def make_frames(pitches, period=PERIOD, confidence=0.95):
    n = len(pitches)
    times = [i * period for i in range(n)]
    pitch = [0.0 if p is None else p for p in pitches]
    conf = [0.0 if p is None else confidence for p in pitches]
    return FrameSeries(timestamps=times, pitch_hz=pitch, confidence=conf)


def flags_for(frames, threshold=0.9):
    return (frames.confidence > threshold) & (frames.pitch_hz >= 80.0) & (frames.pitch_hz <= 2000.0)


def run(pitches, params=PARAMS):
    frames = make_frames(pitches)
    return segment(frames, flags_for(frames), params)


def test_constant_a4_gives_single_note():
    notes = run([440.0] * 5)
    assert len(notes) == 1
    n = notes[0]
    assert n.pitch_midi == 69
    assert n.start == 0.0
    assert n.end == pytest.approx(0.08)
    assert n.pitch_median_hz == 440.0


def test_empty_series():
    frames = FrameSeries(timestamps=[], pitch_hz=[], confidence=[])
    assert segment(frames, [], PARAMS) == []


def test_all_unvoiced_series():
    assert run([None] * 20) == []


def test_single_short_frame_is_dropped():
    assert run([440.0]) == []


def test_single_frame_uses_fallback_period():
    params = SegmentationParams(split_semitone_threshold=1.0, min_note_duration=0.01, unvoiced_grace_period=0.05)
    notes = run([440.0], params)
    assert len(notes) == 1
    assert notes[0].end - notes[0].start == pytest.approx(FALLBACK_FRAME_PERIOD)


def test_length_mismatch_raises():
    frames = make_frames([440.0] * 4)
    with pytest.raises(ValueError):
        segment(frames, [True] * 3, PARAMS)


def test_non_positive_pitch_is_silence_even_if_flagged():
    frames = make_frames([440.0] * 5 + [0.0] * 5 + [-10.0] * 5)
    notes = segment(frames, [True] * 15, PARAMS)
    assert len(notes) == 1
    assert notes[0].pitch_midi == 69


def test_pitch_jump_splits_note():
    notes = run([440.0] * 6 + [523.25] * 6)
    assert [n.pitch_midi for n in notes] == [69, 72]
    assert notes[0].end == pytest.approx(0.096)
    assert notes[1].start == pytest.approx(0.096)
    assert notes[1].end == pytest.approx(0.192)


def test_short_gap_is_bridged():
    notes = run([440.0] * 5 + [None] * 2 + [440.0] * 5)
    assert len(notes) == 1
    assert notes[0].start == 0.0
    assert notes[0].end == pytest.approx(0.192)


def test_long_gap_closes_note():
    notes = run([440.0] * 5 + [None] * 5 + [440.0] * 5)
    assert len(notes) == 2
    # Grace frames before the close stay inside the first note
    assert notes[0].end == pytest.approx(0.128)
    assert notes[1].start == pytest.approx(0.16)


def test_split_with_same_rounded_pitch_is_merged_back():
    low, high = midi_to_hz(68.6), midi_to_hz(69.4)
    params = SegmentationParams(split_semitone_threshold=0.5, min_note_duration=0.05, unvoiced_grace_period=0.05)
    notes = run([low] * 5 + [high] * 5, params)
    assert len(notes) == 1
    assert notes[0].pitch_midi == 69
    assert notes[0].start == 0.0
    assert notes[0].end == pytest.approx(0.16)
    assert notes[0].pitch_median_hz == pytest.approx(low, abs=0.01)


def test_split_decision_uses_upper_middle_median():
    # Averaged median of [60, 60.95] would be 60.475 and force a split at 61.9
    pitches = [midi_to_hz(60.0), midi_to_hz(60.95), midi_to_hz(61.9), midi_to_hz(61.9)]
    params = SegmentationParams(split_semitone_threshold=1.0, min_note_duration=0.01, unvoiced_grace_period=0.05)
    notes = run(pitches, params)
    assert len(notes) == 1


def test_medians_differ_on_even_input():
    assert segmentation_median([4.0, 1.0, 3.0, 2.0]) == 3.0
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5
    assert median([3.0, 1.0, 2.0]) == segmentation_median([3.0, 1.0, 2.0]) == 2.0


def test_merge_adjacent_law():
    a = NoteSegment(0.0, 0.1, 440.0, 69)
    b = NoteSegment(0.11, 0.2, 441.0, 69)
    merged = merge_adjacent([a, b], PERIOD)
    assert merged == [NoteSegment(0.0, 0.2, 440.0, 69)]


def test_merge_adjacent_keeps_distinct_notes():
    a = NoteSegment(0.0, 0.1, 440.0, 69)
    other_pitch = NoteSegment(0.1, 0.2, 466.16, 70)
    far = NoteSegment(0.2, 0.3, 440.0, 69)
    assert len(merge_adjacent([a, other_pitch], PERIOD)) == 2
    assert len(merge_adjacent([a, far], PERIOD)) == 2


def test_hz_midi_conversions():
    assert hz_to_midi(440.0) == pytest.approx(69.0)
    assert hz_to_midi(261.6256) == pytest.approx(60.0, abs=1e-4)
    assert np.isfinite(hz_to_midi(0.0))
    assert midi_to_hz(81.0) == pytest.approx(880.0)


def test_frame_period_of():
    assert frame_period_of([0.5, 0.52, 0.54]) == pytest.approx(0.02)
    assert frame_period_of([0.5]) == FALLBACK_FRAME_PERIOD


def test_output_invariants_on_noisy_series():
    rng = np.random.default_rng(0)
    n = 600
    base = np.repeat(rng.uniform(55, 80, size=n // 20), 20)
    pitch = midi_to_hz(base + rng.normal(0, 0.3, size=n))
    conf = rng.uniform(0.7, 1.0, size=n)
    frames = FrameSeries(timestamps=[i * PERIOD for i in range(n)], pitch_hz=pitch, confidence=conf)
    notes = segment(frames, flags_for(frames), PARAMS)

    assert notes
    for n_ in notes:
        assert n_.start < n_.end
        assert n_.end - n_.start >= PARAMS.min_note_duration
    for a, b in zip(notes, notes[1:]):
        assert a.end <= b.start


def test_jump_exactly_at_split_threshold_splits():
    # 440 Hz and 880 Hz are exactly 69.0 and 81.0
    params = SegmentationParams(split_semitone_threshold=12.0, min_note_duration=0.05, unvoiced_grace_period=0.05)
    notes = run([440.0] * 5 + [880.0] * 5, params)
    assert [n.pitch_midi for n in notes] == [69, 81]


def test_gap_exactly_at_grace_period_closes_note():
    # Binary-exact period so that 2 * 0.25 == 0.5 with no rounding
    params = SegmentationParams(split_semitone_threshold=1.0, min_note_duration=0.1, unvoiced_grace_period=0.5)
    frames = make_frames([440.0, 440.0, None, None, 880.0, 880.0], period=0.25)
    notes = segment(frames, flags_for(frames), params)
    assert [n.pitch_midi for n in notes] == [69, 81]
    # Only the first gap frame was bridged before the close
    assert notes[0].end == 0.75
    assert notes[1].start == 1.0


def test_unvoiced_counter_resets_on_every_voiced_frame():
    params = SegmentationParams(split_semitone_threshold=1.0, min_note_duration=0.1, unvoiced_grace_period=0.75)
    frames = make_frames([440.0, None, None, 440.0, None, None, 440.0], period=0.25)
    notes = segment(frames, flags_for(frames), params)
    assert len(notes) == 1
    assert notes[0].start == 0.0
    assert notes[0].end == 1.75
