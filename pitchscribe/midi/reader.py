from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import List, Union

import mido

from pitchscribe.midi.model import NoteEvent


def _open(source: Union[bytes, bytearray, str, Path]) -> mido.MidiFile:
    if isinstance(source, (bytes, bytearray)):
        return mido.MidiFile(file=BytesIO(bytes(source)))
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(str(path))
    return mido.MidiFile(str(path))


def read_midi_notes(source: Union[bytes, bytearray, str, Path]) -> List[NoteEvent]:
    """
    Decode a MIDI buffer or file back into NoteEvents.
    note_on with velocity > 0 starts a note; note_off or note_on vel=0 ends it.
    """
    mid = _open(source)
    tempo = 500000  # default 120 BPM
    ticks_per_beat = mid.ticks_per_beat

    current_time_sec = 0.0
    active = {}  # (channel, pitch) -> (start_sec, velocity)
    notes: List[NoteEvent] = []

    for msg in mido.merge_tracks(mid.tracks):
        # Advance with the tempo in force before this message
        if msg.time:
            current_time_sec += mido.tick2second(msg.time, ticks_per_beat, tempo)

        if msg.type == "set_tempo":
            tempo = msg.tempo
            continue

        if msg.type not in ("note_on", "note_off"):
            continue

        key = (msg.channel, msg.note)
        # A repeated note_on re-triggers: the pending note ends here
        if key in active:
            start_sec, vel = active.pop(key)
            notes.append(
                NoteEvent(
                    start_sec=float(start_sec),
                    end_sec=float(current_time_sec),
                    midi_pitch=int(msg.note),
                    velocity=int(vel),
                    channel=int(msg.channel),
                )
            )

        if msg.type == "note_on" and msg.velocity > 0:
            active[key] = (current_time_sec, msg.velocity)

    notes.sort(key=lambda n: (n.start_sec, n.midi_pitch))
    return notes
