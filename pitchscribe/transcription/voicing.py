from __future__ import annotations

import numpy as np

from pitchscribe.state import FrameSeries


def is_voiced(confidence: float, pitch_hz: float, threshold: float, min_hz: float, max_hz: float) -> bool:
    # Strict on confidence, inclusive on the frequency band.
    return confidence > threshold and min_hz <= pitch_hz <= max_hz


def voicing_flags(frames: FrameSeries, threshold: float, min_hz: float, max_hz: float) -> np.ndarray:
    """
    Vectorised is_voiced over a whole frame series.
    NaN pitch or confidence compares False and so comes out unvoiced.
    """
    conf = frames.confidence
    hz = frames.pitch_hz
    with np.errstate(invalid="ignore"):
        return (conf > threshold) & (hz >= min_hz) & (hz <= max_hz)
