from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence
import logging
import math

import numpy as np

from pitchscribe.state import FrameSeries, NoteSegment, SegmentationParams

log = logging.getLogger(__name__)

# Used when the series is too short to measure a frame period.
FALLBACK_FRAME_PERIOD = 0.016
MERGE_EPSILON = 1e-9
MIN_PITCH_HZ = 1e-6


@dataclass
class RawSegment:
    start: float
    end: float
    samples: List[float] = field(default_factory=list)


def hz_to_midi(hz: float) -> float:
    return 69.0 + 12.0 * math.log2(max(hz, MIN_PITCH_HZ) / 440.0)


def midi_to_hz(midi: float) -> float:
    return 440.0 * (2.0 ** ((midi - 69.0) / 12.0))


def median(values: Sequence[float]) -> float:
    s = sorted(values)
    if not s:
        raise ValueError("median of an empty sequence")
    mid = len(s) // 2
    if len(s) % 2:
        return s[mid]
    return (s[mid - 1] + s[mid]) / 2.0


def segmentation_median(values: Sequence[float]) -> float:
    """
    Median used for split decisions: upper-middle element, never averaged.
    Not interchangeable with median() on even-length input.
    """
    s = sorted(values)
    return s[len(s) // 2]


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def frame_period_of(timestamps: Sequence[float]) -> float:
    if len(timestamps) >= 2:
        return float(timestamps[1]) - float(timestamps[0])
    return FALLBACK_FRAME_PERIOD


def _midi_track(frames: FrameSeries, voiced: np.ndarray) -> np.ndarray:
    hz = frames.pitch_hz
    usable = voiced & (hz > 0)
    midi = np.full(len(hz), np.nan, dtype=np.float64)
    midi[usable] = 69.0 + 12.0 * np.log2(np.maximum(hz[usable], MIN_PITCH_HZ) / 440.0)
    return midi


def _scan(times: np.ndarray, midi: np.ndarray, frame_period: float, params: SegmentationParams) -> List[RawSegment]:
    closed: List[RawSegment] = []
    current: Optional[RawSegment] = None
    unvoiced_run = 0

    for t, m in zip(times.tolist(), midi.tolist()):
        if not math.isnan(m):
            unvoiced_run = 0
            if current is None:
                current = RawSegment(t, t + frame_period, [m])
                continue
            ref = segmentation_median(current.samples)
            if abs(m - ref) >= params.split_semitone_threshold:
                log.debug("split at %.4fs: %.2f -> %.2f", t, ref, m)
                closed.append(current)
                current = RawSegment(t, t + frame_period, [m])
            else:
                current.samples.append(m)
                current.end = t + frame_period
        elif current is not None:
            unvoiced_run += 1
            if unvoiced_run * frame_period >= params.unvoiced_grace_period:
                log.debug("close at %.4fs after %d unvoiced frames", t, unvoiced_run)
                closed.append(current)
                current = None
                unvoiced_run = 0
            else:
                current.end = t + frame_period

    if current is not None:
        closed.append(current)
    return closed


def _reduce(raw: RawSegment) -> NoteSegment:
    m = median(raw.samples)
    return NoteSegment(
        start=round(raw.start, 4),
        end=round(raw.end, 4),
        pitch_median_hz=round(midi_to_hz(m), 2),
        pitch_midi=round_half_up(m),
    )


def merge_adjacent(notes: List[NoteSegment], frame_period: float) -> List[NoteSegment]:
    """Fold same-pitch neighbours separated by at most one frame into one note."""
    out: List[NoteSegment] = []
    for n in notes:
        if out:
            prev = out[-1]
            gap = n.start - prev.end
            if gap <= frame_period + MERGE_EPSILON and n.pitch_midi == prev.pitch_midi:
                out[-1] = replace(prev, end=n.end)
                continue
        out.append(n)
    return out


def segment(frames: FrameSeries, voiced: Sequence[bool], params: SegmentationParams) -> List[NoteSegment]:
    """
    Turn a frame series plus per-frame voicing flags into monophonic notes.

    Single forward pass over the frames. A note is split when a frame's pitch
    moves at least split_semitone_threshold away from the running median,
    and closed once the unvoiced run reaches unvoiced_grace_period. Notes
    shorter than min_note_duration are dropped, then same-pitch notes one
    frame apart are merged.
    """
    flags = np.asarray(voiced, dtype=bool).reshape(-1)
    if len(flags) != len(frames):
        raise ValueError(f"Voicing flags length {len(flags)} does not match frame count {len(frames)}")
    if len(frames) == 0:
        return []

    frame_period = frame_period_of(frames.timestamps)
    midi = _midi_track(frames, flags)
    raw = _scan(frames.timestamps, midi, frame_period, params)

    kept = [
        _reduce(r) for r in raw
        if r.samples and (r.end - r.start) >= params.min_note_duration
    ]
    notes = merge_adjacent(kept, frame_period)
    log.debug("segments: raw=%d kept=%d merged=%d", len(raw), len(kept), len(notes))
    return notes
