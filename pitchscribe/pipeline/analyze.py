from __future__ import annotations
from typing import Callable, Optional
import logging

import numpy as np

from pitchscribe.midi.writer import encode_midi
from pitchscribe.state import FrameSeries, Settings, TranscriptionResult
from pitchscribe.transcription.base import PitchEstimator
from pitchscribe.transcription.segmenter import segment
from pitchscribe.transcription.voicing import voicing_flags

log = logging.getLogger(__name__)

ProgressFn = Optional[Callable[[int, str], None]]


def transcribe_frames(
    frames: FrameSeries,
    settings: Settings,
    progress: ProgressFn = None,
) -> TranscriptionResult:
    warnings = []

    def emit(pct: int, msg: str) -> None:
        if progress:
            progress(pct, msg)

    emit(10, "Classifying voiced frames…")
    voiced = voicing_flags(frames, settings.confidence_threshold, settings.min_hz, settings.max_hz)
    if len(frames) == 0:
        warnings.append("Frame series is empty.")
    elif not voiced.any():
        warnings.append("No voiced frames above the confidence threshold.")

    emit(40, "Segmenting notes…")
    notes = segment(frames, voiced, settings.segmentation())
    if voiced.any() and not notes:
        warnings.append("Voiced frames found but every segment was shorter than the minimum note duration.")

    emit(75, "Encoding MIDI…")
    midi_bytes = encode_midi(notes, tempo_bpm=settings.tempo_bpm, velocity=settings.velocity)

    log.info(
        "frames=%d voiced=%d notes=%d midi_bytes=%d",
        len(frames), int(np.count_nonzero(voiced)), len(notes), len(midi_bytes),
    )
    emit(100, "Transcription complete.")
    return TranscriptionResult(
        frames=frames,
        voiced=voiced,
        notes=notes,
        midi_bytes=midi_bytes,
        settings=settings,
        warnings=warnings,
    )


def analyze_audio(
    audio: np.ndarray,
    sr: int,
    estimator: PitchEstimator,
    settings: Settings,
    progress: ProgressFn = None,
) -> TranscriptionResult:
    if progress:
        progress(0, "Estimating pitch…")
    frames = estimator.estimate(audio, sr)
    return transcribe_frames(frames, settings, progress=progress)
