"""Re-classify straight-quantized notes that actually form tuplets.

Notes are bucketed by the beat their onset falls in (an onset up to
``fuzz_ticks`` early belongs to the following beat).  Onsets closer together
than ``fuzz_ticks`` form one cluster, so chords count once.  A beat whose
three clusters sit on 0, 1/3 and 2/3 of the beat is an eighth-note triplet.
Only beats holding at least one onset the quantizer flagged ``off_grid``
are looked at; onsets within ``fuzz_ticks`` of the straight grid stay put.

A candidate pattern only wins when it fits strictly better than the straight
grid, summed over all clusters; ties go to the straight grid.

Quarter-note triplets (three onsets across two beats) and sixteenth-note
triplets (sixths of a beat) are recognised but not supported: their notes
keep the straight quantization and are tagged ``UNSUPPORTED``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Dict, List, Sequence

from .errors import SoftIssue
from .grid import TRIPLET_STEP, Grid, GridClassification
from .quantize import QuantizedNote, snap

logger = logging.getLogger(__name__)

_EIGHTH_TRIPLET = (Fraction(0), Fraction(1, 3), Fraction(2, 3))
_QUARTER_TRIPLET = (Fraction(0), Fraction(2, 3), Fraction(4, 3))
_SIXTH = Fraction(1, 6)


@dataclass
class OnsetCluster:
    onset: Fraction  # earliest raw onset in the cluster, beats
    members: List[int] = field(default_factory=list)  # indices into the note list


def cluster_onsets(
    notes: Sequence[QuantizedNote],
    indices: Sequence[int],
    ticks_per_quarter_note: int,
    fuzz_ticks: int,
) -> List[OnsetCluster]:
    clusters: List[OnsetCluster] = []
    for idx in sorted(indices, key=lambda i: (notes[i].start, i)):
        start = notes[idx].start
        if clusters and (start - clusters[-1].onset) * ticks_per_quarter_note <= fuzz_ticks:
            clusters[-1].members.append(idx)
        else:
            clusters.append(OnsetCluster(onset=start, members=[idx]))
    return clusters


def _deviation(onsets: Sequence[Fraction], targets: Sequence[Fraction]) -> Fraction:
    return sum((abs(o - t) for o, t in zip(onsets, targets)), Fraction(0))


def _fits(onsets: Sequence[Fraction], targets: Sequence[Fraction], tolerance: Fraction) -> bool:
    return all(abs(o - t) <= tolerance for o, t in zip(onsets, targets))


def classify_onsets(
    onsets: Sequence[Fraction],
    grid: Grid,
    ticks_per_quarter_note: int,
    *,
    span_beats: int = 1,
) -> GridClassification:
    """Classify cluster onsets measured from the start of their window.

    ``span_beats`` is 1 for a single-beat window and 2 for the two-beat
    window used to spot quarter-note triplets.
    """
    tolerance = Fraction(grid.fuzz_ticks, ticks_per_quarter_note)
    straight = [snap(o, grid.step) for o in onsets]
    straight_dev = _deviation(onsets, straight)

    if span_beats == 2:
        if (
            len(onsets) == 3
            and _fits(onsets, _QUARTER_TRIPLET, tolerance)
            and _deviation(onsets, _QUARTER_TRIPLET) < straight_dev
        ):
            return GridClassification.UNSUPPORTED
        return GridClassification.STRAIGHT

    if (
        len(onsets) == 3
        and _fits(onsets, _EIGHTH_TRIPLET, tolerance)
        and _deviation(onsets, _EIGHTH_TRIPLET) < straight_dev
    ):
        if grid.triplet_enabled:
            return GridClassification.TRIPLET
        return GridClassification.UNSUPPORTED

    if len(onsets) >= 4:
        sixths = [snap(o, _SIXTH) for o in onsets]
        if _fits(onsets, sixths, tolerance) and _deviation(onsets, sixths) < straight_dev:
            return GridClassification.UNSUPPORTED

    return GridClassification.STRAIGHT


def _has_off_grid(notes: Sequence[QuantizedNote], clusters: Sequence[OnsetCluster]) -> bool:
    return any(notes[idx].off_grid for c in clusters for idx in c.members)


def _beat_index(qn: QuantizedNote, ticks_per_quarter_note: int, fuzz_ticks: int) -> int:
    return (qn.note.start_tick + fuzz_ticks) // ticks_per_quarter_note


def detect_tuplets(
    notes: Sequence[QuantizedNote],
    grid: Grid,
    ticks_per_quarter_note: int,
) -> List[QuantizedNote]:
    """Return ``notes`` with triplet runs relabelled; order is preserved."""
    tpq = ticks_per_quarter_note
    fuzz = grid.fuzz_ticks
    result = list(notes)

    beats: Dict[int, List[int]] = defaultdict(list)
    for idx, qn in enumerate(notes):
        beats[_beat_index(qn, tpq, fuzz)].append(idx)

    clusters_by_beat = {
        beat: cluster_onsets(notes, indices, tpq, fuzz) for beat, indices in beats.items()
    }
    settled: Dict[int, GridClassification] = {}

    for beat in sorted(clusters_by_beat):
        clusters = clusters_by_beat[beat]
        if not _has_off_grid(notes, clusters):
            continue
        onsets = [c.onset - beat for c in clusters]
        kind = classify_onsets(onsets, grid, tpq)
        if kind is GridClassification.STRAIGHT:
            continue
        settled[beat] = kind

        if kind is GridClassification.UNSUPPORTED:
            logger.debug(
                "%s: beat %d has a tuplet pattern that is not supported; keeping straight grid",
                SoftIssue.UNSUPPORTED_TUPLET.value,
                beat,
            )
            for c in clusters:
                for idx in c.members:
                    result[idx] = result[idx].with_grid(
                        result[idx].grid_start,
                        result[idx].grid_duration,
                        GridClassification.UNSUPPORTED,
                    )
            continue

        logger.debug("triplet: beat %d relabelled as eighth-note triplet", beat)
        for slot, c in enumerate(clusters):
            grid_start = beat + slot * TRIPLET_STEP
            for idx in c.members:
                qn = result[idx]
                grid_duration = max(TRIPLET_STEP, snap(qn.duration, TRIPLET_STEP))
                result[idx] = qn.with_grid(grid_start, grid_duration, GridClassification.TRIPLET)

    # quarter-note triplets straddle two beats, so check pairs of
    # consecutive beats that are otherwise straight
    for beat in sorted(clusters_by_beat):
        nxt = beat + 1
        if beat in settled or nxt in settled or nxt not in clusters_by_beat:
            continue
        clusters = clusters_by_beat[beat] + clusters_by_beat[nxt]
        if not _has_off_grid(notes, clusters):
            continue
        onsets = [c.onset - beat for c in clusters]
        if classify_onsets(onsets, grid, tpq, span_beats=2) is not GridClassification.UNSUPPORTED:
            continue
        settled[beat] = settled[nxt] = GridClassification.UNSUPPORTED
        logger.debug(
            "%s: beats %d-%d look like a quarter-note triplet; keeping straight grid",
            SoftIssue.UNSUPPORTED_TUPLET.value,
            beat,
            nxt,
        )
        for c in clusters:
            for idx in c.members:
                result[idx] = result[idx].with_grid(
                    result[idx].grid_start,
                    result[idx].grid_duration,
                    GridClassification.UNSUPPORTED,
                )

    return result
