#!/usr/bin/env python3
"""Convert a MIDI file into a quantized beat-event JSON document.

Examples
--------
Eighth-note grid with triplet detection:
    python tools/midi_to_beatblox.py song.mid --precision eighth --triplets --fuzz-ticks 10

Settings from a config file, first melody track only, printed summary:
    python tools/midi_to_beatblox.py song.mid --config grid.json --track 1 --print
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from beatblox.config import ConversionConfig, load_config
from beatblox.emitter import describe_sequence
from beatblox.errors import ParseError
from beatblox.grid import Grid, Precision
from beatblox.json_output import build_payload, write_payload
from beatblox.pipeline import convert_file


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert MIDI into a quantized beat-event sequence (JSON)",
    )
    parser.add_argument("input", type=Path, help="Input MIDI file")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output .json path (default: <input>.beats.json)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file; grid flags are ignored when given",
    )
    parser.add_argument(
        "--precision",
        choices=[p.name.lower() for p in Precision],
        default="sixteenth",
        help="Quantization grid (default: sixteenth)",
    )
    parser.add_argument(
        "--triplets",
        action="store_true",
        help="Detect eighth-note triplets",
    )
    parser.add_argument(
        "--fuzz-ticks",
        type=int,
        default=None,
        help="Snapping tolerance in file ticks (required without --config)",
    )
    parser.add_argument(
        "--tie-epsilon",
        type=int,
        default=0,
        help="Largest NoteOff->NoteOn gap in ticks that still ties a note (default: 0)",
    )
    parser.add_argument(
        "--time-signature",
        default=None,
        help="Override the file's time signature, e.g. 3/4",
    )
    parser.add_argument(
        "--track",
        type=int,
        action="append",
        default=None,
        help="Only convert this track index (repeatable)",
    )
    parser.add_argument(
        "--print",
        dest="print_events",
        action="store_true",
        help="Print the event sequence instead of writing JSON",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _parse_time_signature(text: str) -> tuple[int, int]:
    try:
        num_text, den_text = text.split("/")
        return (int(num_text), int(den_text))
    except ValueError:
        raise ValueError(f"time signature must look like 4/4, got {text!r}") from None


def _config_from_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> ConversionConfig:
    if args.config is not None:
        return load_config(args.config)
    if args.tie_epsilon < 0:
        parser.error("--tie-epsilon must be >= 0")
    if args.fuzz_ticks is None:
        parser.error("--fuzz-ticks is required unless --config is given")
    time_signature = None
    if args.time_signature:
        time_signature = _parse_time_signature(args.time_signature)
    grid = Grid(
        precision=Precision.from_name(args.precision),
        triplet_enabled=args.triplets,
        fuzz_ticks=args.fuzz_ticks,
    )
    return ConversionConfig(grid=grid, tie_epsilon=args.tie_epsilon, time_signature=time_signature)


def _pick_default_output(input_path: Path) -> Path:
    return input_path.with_suffix(".beats.json")


def main() -> int:
    parser = _build_arg_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_args(parser, args)
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    tracks = set(args.track) if args.track else None
    try:
        result = convert_file(args.input, config, tracks=tracks)
    except (FileNotFoundError, ParseError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.print_events:
        info = result.info
        ts = result.header.time_signature
        print(f"BPM: {info.bpm:.2f}  time signature: {ts[0]}/{ts[1]}")
        for line in describe_sequence(result.events):
            print(line)
        return 0

    out_path = args.output or _pick_default_output(args.input)
    payload = build_payload(result.events, result.header, result.info)
    written = write_payload(payload, out_path)
    print(f"Wrote {len(result.events)} events -> {written}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
