from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import argparse
import logging
import sys

from pitchscribe import config
from pitchscribe.frames.io import load_frames
from pitchscribe.midi.reader import read_midi_notes
from pitchscribe.pipeline.analyze import transcribe_frames
from pitchscribe.pipeline.export import export_json, export_midi
from pitchscribe.state import Settings

log = logging.getLogger("pitchscribe")


def build_parser() -> argparse.ArgumentParser:
    d = Settings()
    parser = argparse.ArgumentParser(
        prog="pitchscribe",
        description="Segment a pitch/confidence frame series into notes and write a MIDI file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pitchscribe frames.csv                         # writes exports/frames.mid
  pitchscribe frames.json -o take1.mid --json take1.json
  pitchscribe frames.csv --threshold 0.8 --tempo 90 --verify
        """,
    )
    parser.add_argument("input", help="Frame series file (.csv or .json)")
    parser.add_argument("-o", "--output", help="Output MIDI path (default: exports/<input>.mid)")
    parser.add_argument("--json", dest="json_out", help="Also write frames, notes and stats as JSON")

    parser.add_argument("--threshold", type=float, default=d.confidence_threshold, help="Confidence threshold (strict)")
    parser.add_argument("--min-hz", type=float, default=d.min_hz)
    parser.add_argument("--max-hz", type=float, default=d.max_hz)
    parser.add_argument("--split-semitones", type=float, default=d.split_semitone_threshold)
    parser.add_argument("--min-note", type=float, default=d.min_note_duration, help="Minimum note duration (s)")
    parser.add_argument("--grace", type=float, default=d.unvoiced_grace_period, help="Unvoiced grace period (s)")
    parser.add_argument("--tempo", type=float, default=d.tempo_bpm, help="Tempo in BPM")
    parser.add_argument("--velocity", type=int, default=d.velocity)

    parser.add_argument("--verify", action="store_true", help="Read the written MIDI back and compare notes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=config.LOG_FORMAT,
    )

    settings = Settings(
        confidence_threshold=args.threshold,
        min_hz=args.min_hz,
        max_hz=args.max_hz,
        split_semitone_threshold=args.split_semitones,
        min_note_duration=args.min_note,
        unvoiced_grace_period=args.grace,
        tempo_bpm=args.tempo,
        velocity=args.velocity,
    )

    input_path = Path(args.input)
    try:
        frames = load_frames(input_path)
        result = transcribe_frames(
            frames, settings, progress=lambda p, m: log.debug("[%3d%%] %s", p, m)
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for w in result.warnings:
        log.warning(w)

    out_path = Path(args.output) if args.output else config.DEFAULT_EXPORT_DIR / (input_path.stem + ".mid")
    export_midi(result, out_path)
    print(f"Wrote {out_path} with {len(result.notes)} notes.")

    if args.json_out:
        json_path = export_json(result, Path(args.json_out))
        print(f"Wrote {json_path}")

    if args.verify:
        decoded = read_midi_notes(out_path)
        expected = [min(127, max(0, n.pitch_midi)) for n in result.notes]
        got = [n.midi_pitch for n in decoded]
        if got != expected:
            print(f"Verification failed: expected pitches {expected}, read back {got}", file=sys.stderr)
            return 1
        print(f"Verified: {len(decoded)} notes read back.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
