from __future__ import annotations
from pathlib import Path
from typing import Iterable, List
import logging
import struct

from pitchscribe.midi.model import EventKind, MidiEvent
from pitchscribe.midi.vlq import encode_vlq
from pitchscribe.state import NoteSegment

log = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
END_OF_TRACK = b"\xff\x2f\x00"
MAX_TEMPO_US = 0xFFFFFF  # 24-bit tempo field


def _clamp7(v: int) -> int:
    return max(0, min(127, int(v)))


def build_events(notes: Iterable[NoteSegment], velocity: int = 80) -> List[MidiEvent]:
    vel = _clamp7(velocity)
    events: List[MidiEvent] = []
    for n in notes:
        pitch = _clamp7(n.pitch_midi)
        events.append(MidiEvent(float(n.start), EventKind.NOTE_ON, pitch, vel))
        events.append(MidiEvent(float(n.end), EventKind.NOTE_OFF, pitch, 0))

    # sorted() is stable, so simultaneous events keep their generation order
    return sorted(events, key=lambda e: e.time_seconds)


def encode_midi(notes: Iterable[NoteSegment], tempo_bpm: float = 120, velocity: int = 80) -> bytes:
    """
    Encode notes as a Standard MIDI File, format 0, one track, 480 ticks per quarter.
    Raises ValueError if the event clock would ever run backwards.
    """
    if tempo_bpm <= 0:
        raise ValueError(f"Tempo must be positive, got {tempo_bpm}")

    def sec_to_ticks(sec: float) -> int:
        return int(round(sec * TICKS_PER_BEAT * tempo_bpm / 60.0))

    us_per_quarter = int(round(60_000_000 / tempo_bpm))
    if not 1 <= us_per_quarter <= MAX_TEMPO_US:
        raise ValueError(
            f"Tempo {tempo_bpm} BPM is outside the MIDI range ({us_per_quarter} us per quarter note)"
        )
    track = bytearray()
    track += encode_vlq(0)
    track += b"\xff\x51\x03" + us_per_quarter.to_bytes(3, "big")

    last_tick = 0
    events = build_events(notes, velocity)
    for ev in events:
        tick = sec_to_ticks(ev.time_seconds)
        delta = tick - last_tick
        if delta < 0:
            raise ValueError(
                f"Negative delta time ({delta} ticks) at {ev.time_seconds:.4f}s; events are out of order"
            )
        last_tick = tick
        track += encode_vlq(delta)
        track += ev.to_bytes()

    track += encode_vlq(0) + END_OF_TRACK

    header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, TICKS_PER_BEAT)
    chunk = b"MTrk" + struct.pack(">I", len(track)) + bytes(track)
    log.debug("encoded %d events into %d track bytes", len(events), len(track))
    return header + chunk


def write_midi(
    notes: Iterable[NoteSegment],
    out_path: Path,
    tempo_bpm: float = 120,
    velocity: int = 80,
) -> Path:
    """
    Writes a single-track MIDI file.
    """
    data = encode_midi(notes, tempo_bpm=tempo_bpm, velocity=velocity)
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(data)
    return out_path
