from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    NOTE_ON = 0x90
    NOTE_OFF = 0x80


@dataclass(frozen=True)
class MidiEvent:
    time_seconds: float
    kind: EventKind
    note: int  # 0-127
    velocity: int  # 0-127

    def to_bytes(self, channel: int = 0) -> bytes:
        return bytes((self.kind.value | (channel & 0x0F), self.note, self.velocity))


@dataclass(frozen=True)
class NoteEvent:
    """A note as read back from a MIDI file."""
    start_sec: float
    end_sec: float
    midi_pitch: int
    velocity: int
    channel: int = 0  # 0-15
