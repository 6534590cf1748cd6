from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np

from pitchscribe.state import FrameSeries, NoteSegment
from pitchscribe.transcription.segmenter import median


def summarize(frames: FrameSeries, voiced: np.ndarray, notes: Sequence[NoteSegment]) -> Dict[str, Any]:
    n_frames = len(frames)
    n_voiced = int(np.count_nonzero(voiced))
    duration = float(frames.timestamps[-1] - frames.timestamps[0]) if n_frames >= 2 else 0.0

    stats: Dict[str, Any] = {
        "frame_count": n_frames,
        "voiced_frames": n_voiced,
        "voiced_ratio": round(n_voiced / n_frames, 4) if n_frames else 0.0,
        "duration_sec": round(duration, 4),
        "note_count": len(notes),
        "mean_note_duration_sec": None,
        "median_pitch_midi": None,
        "lowest_pitch_midi": None,
        "highest_pitch_midi": None,
    }
    if notes:
        pitches = [n.pitch_midi for n in notes]
        stats["mean_note_duration_sec"] = round(sum(n.duration for n in notes) / len(notes), 4)
        stats["median_pitch_midi"] = median(pitches)
        stats["lowest_pitch_midi"] = min(pitches)
        stats["highest_pitch_midi"] = max(pitches)
    return stats
