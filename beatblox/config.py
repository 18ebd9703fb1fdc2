"""JSON configuration for a conversion run.

Example::

    {
      "version": 1,
      "grid": {"precision": "eighth", "triplets": true, "fuzz_ticks": 10},
      "tie_epsilon": 0,
      "time_signature": [3, 4]
    }

``grid.fuzz_ticks`` is required.  ``time_signature`` overrides the value
read from the MIDI file.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .events import MAX_DENOMINATOR
from .grid import Grid, Precision

SUPPORTED_CONFIG_VERSION = 1


@dataclass(frozen=True)
class ConversionConfig:
    grid: Grid
    tie_epsilon: int = 0
    time_signature: Optional[Tuple[int, int]] = None


def _require_dict(value: object, *, where: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"{where} must be an object")
    return value


def _int_in_range(value: object, *, where: str, low: int, high: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{where} must be an integer")
    if not (low <= value <= high):
        raise ValueError(f"{where} must be in [{low}, {high}]")
    return value


def parse_grid(raw: object) -> Grid:
    obj = _require_dict(raw, where="grid")

    precision_raw = obj.get("precision")
    if not isinstance(precision_raw, str) or not precision_raw:
        raise ValueError("grid.precision must be a non-empty string")
    precision = Precision.from_name(precision_raw)

    triplets = obj.get("triplets", False)
    if not isinstance(triplets, bool):
        raise ValueError("grid.triplets must be true or false")

    if "fuzz_ticks" not in obj:
        raise ValueError("grid.fuzz_ticks is required")
    fuzz_ticks = _int_in_range(obj["fuzz_ticks"], where="grid.fuzz_ticks", low=0, high=65535)

    return Grid(precision=precision, triplet_enabled=triplets, fuzz_ticks=fuzz_ticks)


def _parse_time_signature(raw: object) -> Tuple[int, int]:
    if not isinstance(raw, list) or len(raw) != 2:
        raise ValueError("time_signature must be a [numerator, denominator] pair")
    numerator = _int_in_range(raw[0], where="time_signature[0]", low=1, high=255)
    denominator = _int_in_range(raw[1], where="time_signature[1]", low=1, high=MAX_DENOMINATOR)
    if denominator & (denominator - 1):
        raise ValueError("time_signature[1] must be a power of two")
    return (numerator, denominator)


def parse_config(data: object) -> ConversionConfig:
    obj = _require_dict(data, where="config")

    version = _int_in_range(
        obj.get("version", SUPPORTED_CONFIG_VERSION),
        where="version",
        low=1,
        high=65535,
    )
    if version != SUPPORTED_CONFIG_VERSION:
        raise ValueError(
            f"unsupported config version {version}; supported version is {SUPPORTED_CONFIG_VERSION}"
        )

    if "grid" not in obj:
        raise ValueError("grid is required")
    grid = parse_grid(obj["grid"])
    tie_epsilon = _int_in_range(obj.get("tie_epsilon", 0), where="tie_epsilon", low=0, high=65535)

    time_signature = None
    if obj.get("time_signature") is not None:
        time_signature = _parse_time_signature(obj["time_signature"])

    return ConversionConfig(grid=grid, tie_epsilon=tie_epsilon, time_signature=time_signature)


def load_config(path: Path | str) -> ConversionConfig:
    config_path = Path(path).expanduser().resolve()
    payload = json.loads(config_path.read_text(encoding="utf-8"))
    return parse_config(payload)
