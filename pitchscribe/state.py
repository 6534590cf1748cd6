from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np


@dataclass(frozen=True)
class SegmentationParams:
    split_semitone_threshold: float = 1.0
    min_note_duration: float = 0.06
    unvoiced_grace_period: float = 0.05


@dataclass
class Settings:
    confidence_threshold: float = 0.9
    min_hz: float = 80.0
    max_hz: float = 2000.0
    split_semitone_threshold: float = 1.0
    min_note_duration: float = 0.06
    unvoiced_grace_period: float = 0.05
    tempo_bpm: float = 120.0
    velocity: int = 80

    def segmentation(self) -> SegmentationParams:
        return SegmentationParams(
            split_semitone_threshold=self.split_semitone_threshold,
            min_note_duration=self.min_note_duration,
            unvoiced_grace_period=self.unvoiced_grace_period,
        )


@dataclass
class FrameSeries:
    """
    Per-frame output of a pitch estimator.
    All three arrays are index-aligned; timestamps are in seconds.
    """
    timestamps: np.ndarray
    pitch_hz: np.ndarray
    confidence: np.ndarray

    def __post_init__(self) -> None:
        self.timestamps = np.asarray(self.timestamps, dtype=np.float64).reshape(-1)
        self.pitch_hz = np.asarray(self.pitch_hz, dtype=np.float64).reshape(-1)
        self.confidence = np.asarray(self.confidence, dtype=np.float64).reshape(-1)
        n = len(self.timestamps)
        if len(self.pitch_hz) != n or len(self.confidence) != n:
            raise ValueError(
                "Frame series length mismatch: "
                f"timestamps={n}, pitch_hz={len(self.pitch_hz)}, confidence={len(self.confidence)}"
            )

    def __len__(self) -> int:
        return len(self.timestamps)


@dataclass(frozen=True)
class NoteSegment:
    start: float
    end: float
    pitch_median_hz: float
    pitch_midi: int

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class TranscriptionResult:
    frames: FrameSeries
    voiced: np.ndarray
    notes: List[NoteSegment] = field(default_factory=list)
    midi_bytes: bytes = b""
    settings: Settings = field(default_factory=Settings)
    warnings: List[str] = field(default_factory=list)
