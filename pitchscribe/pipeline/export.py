from __future__ import annotations
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict
import json
import math

from pitchscribe.midi.writer import write_midi
from pitchscribe.state import TranscriptionResult
from pitchscribe.transcription.stats import summarize


def _finite(x: float):
    x = float(x)
    return x if math.isfinite(x) else None


def to_export_dict(result: TranscriptionResult) -> Dict[str, Any]:
    f = result.frames
    frames = [
        {
            "timestamp": _finite(t),
            "pitch_hz": _finite(hz),
            "confidence": _finite(c),
            "voiced": bool(v),
        }
        for t, hz, c, v in zip(f.timestamps, f.pitch_hz, f.confidence, result.voiced)
    ]
    return {
        "settings": asdict(result.settings),
        "frames": frames,
        "notes": [asdict(n) for n in result.notes],
        "stats": summarize(f, result.voiced, result.notes),
        "warnings": list(result.warnings),
    }


def export_json(result: TranscriptionResult, out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(to_export_dict(result), f, ensure_ascii=False, indent=2)
    return out_path


def export_midi(result: TranscriptionResult, out_path: Path) -> Path:
    s = result.settings
    return write_midi(result.notes, Path(out_path), tempo_bpm=s.tempo_bpm, velocity=s.velocity)
