from __future__ import annotations

from pathlib import Path
import json

import numpy as np

from pitchscribe.state import FrameSeries

CSV_COLUMNS = ("timestamp", "pitch_hz", "confidence")


def frame_timestamps(n_frames: int, hop_length: int = 256, sample_rate: int = 16000) -> np.ndarray:
    """
    Centre-of-window time for each estimator frame.
    With the defaults this is (i * 256 + 127.5) / 16000.
    """
    i = np.arange(int(n_frames), dtype=np.float64)
    return (i * hop_length + (hop_length - 1) / 2.0) / float(sample_rate)


def _load_json(path: Path) -> FrameSeries:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    missing = [k for k in ("pitch_hz", "confidence") if k not in payload]
    if missing:
        raise ValueError(f"{path}: missing keys {', '.join(missing)}")

    pitch = np.asarray(payload["pitch_hz"], dtype=np.float64)
    conf = np.asarray(payload["confidence"], dtype=np.float64)
    times = payload.get("timestamps")
    if times is None:
        times = frame_timestamps(len(pitch))
    return FrameSeries(timestamps=times, pitch_hz=pitch, confidence=conf)


def _load_csv(path: Path) -> FrameSeries:
    with open(path, "r", encoding="utf-8") as f:
        header = [h.strip() for h in f.readline().split(",")]
        body = [line for line in f if line.strip()]
    cols = []
    for name in CSV_COLUMNS:
        if name not in header:
            raise ValueError(f"{path}: CSV header must contain {', '.join(CSV_COLUMNS)}")
        cols.append(header.index(name))

    if not body:
        return FrameSeries(timestamps=[], pitch_hz=[], confidence=[])

    data = np.loadtxt(body, delimiter=",", usecols=cols, ndmin=2)
    return FrameSeries(timestamps=data[:, 0], pitch_hz=data[:, 1], confidence=data[:, 2])


def load_frames(path: Path) -> FrameSeries:
    """
    Load a frame series exported by a pitch estimator (.json or .csv).
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(str(path))

    suffix = path.suffix.lower()
    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)
    raise ValueError(f"Unsupported frame file type: {path.suffix or '(none)'}")
