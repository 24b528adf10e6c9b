"""High/low composite segmentation of a pixel's series.

Each year is labelled CLUD/NCLUD (runs at or below the change threshold,
consecutive when two years or longer) or CHUD/NCHUD (runs above it). The
isolated labels are then smoothed away where the neighbourhood allows and
equal labels are merged into segments.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List

import numpy as np

from .types import B4, B5, COMP, Segment, SegmentLabel


@dataclass(frozen=True)
class RunCounts:
    hud_seg: int
    lud_seg: int
    sharp_turns: int


def _label_run(labels: np.ndarray, start: int, end: int, count: int,
               consecutive: int, isolated: int) -> None:
    label = consecutive if count >= 2 else isolated
    for k in range(start, end):
        labels[k] = label


def classify_years(comp: np.ndarray, threshold: float, labels: np.ndarray, num_years: int) -> RunCounts:
    """Label every active year and count the low/high runs."""
    hud_seg = lud_seg = sharp_turns = 0
    i = 0
    while i < num_years:
        j = i
        count = 0
        while j < num_years and comp[j] <= threshold:
            j += 1
            count += 1
        _label_run(labels, i, j, count, SegmentLabel.CLUD, SegmentLabel.NCLUD)
        if count > 0:
            lud_seg += 1
            sharp_turns += 1

        i = j
        count = 0
        while j < num_years and comp[j] > threshold:
            j += 1
            count += 1
        _label_run(labels, i, j, count, SegmentLabel.CHUD, SegmentLabel.NCHUD)
        if count > 0:
            hud_seg += 1
            sharp_turns += 1
        i = j

    return RunCounts(hud_seg=hud_seg, lud_seg=lud_seg, sharp_turns=sharp_turns)


def smooth_labels(smooth: np.ndarray, num_years: int, current: int) -> None:
    """Remove isolated `current` labels in place.

    NCLUD years are absorbed into CHUD context (NCHUD borders), NCHUD years
    into CLUD context (NCLUD borders). A forward sweep handles sandwiched
    labels and labels followed by border runs, a backward sweep handles
    labels preceded by border runs.
    """
    if current == SegmentLabel.NCLUD:
        new_type = SegmentLabel.CHUD
        border_type = SegmentLabel.NCHUD
    else:
        new_type = SegmentLabel.CLUD
        border_type = SegmentLabel.NCLUD

    i = 1
    while i < num_years - 1:
        if smooth[i] != current:
            i += 1
            continue

        if smooth[i - 1] == new_type and smooth[i + 1] == new_type:
            smooth[i] = new_type
            i += 1
            continue

        if smooth[i - 1] == new_type and smooth[i + 1] == border_type:
            smooth[i] = new_type
            j = i + 1
            while j < num_years and smooth[j] == border_type:
                smooth[j] = new_type
                j += 1
            i = j
        else:
            i += 1

    i = num_years - 2
    while i > 0:
        if smooth[i] != current:
            i -= 1
            continue
        if smooth[i + 1] == new_type and smooth[i - 1] == border_type:
            smooth[i] = new_type
            j = i - 1
            while j >= 0 and smooth[j] == border_type:
                smooth[j] = new_type
                j -= 1
            i = j
        else:
            i -= 1


def merge_segments(labels: np.ndarray, num_years: int) -> List[Segment]:
    segments: List[Segment] = []
    i = 0
    while i < num_years:
        j = i
        length = 1
        while j < num_years - 1 and labels[j] == labels[j + 1]:
            j += 1
            length += 1
        segments.append(Segment(label=int(labels[i]), start=i, length=length))
        i = j + 1
    return segments


def agriculture_indicator(ud: np.ndarray, labels: np.ndarray, num_years: int,
                          sudden_change: float = 3.5) -> int:
    """Score fast green-up/drop behaviour typical of non-forest (crops).

    Uses the unsmoothed labels; the score is informational only.
    """
    indicator = 0
    comp = ud[COMP]
    for i in range(1, num_years - 1):
        cur, prev, nxt = comp[i], comp[i - 1], comp[i + 1]

        if labels[i] == SegmentLabel.CLUD and (
            prev - cur > sudden_change
            or ud[B4, i - 1] - ud[B4, i] > sudden_change
            or ud[B5, i - 1] - ud[B5, i] > sudden_change
        ):
            all_drop = int((prev - cur) / sudden_change)
            b5_drop = int((ud[B5, i - 1] - ud[B5, i]) / sudden_change)
            b4_hike = int((ud[B4, i] - ud[B4, i - 1]) / sudden_change)
            drops = max(all_drop, b5_drop, b4_hike)
            indicator += min(drops * drops, 16)

        if labels[i] == SegmentLabel.NCLUD and prev - cur > sudden_change and nxt - cur > sudden_change:
            dip = int(((prev + nxt) / 2.0 - cur) / sudden_change)
            indicator += min(dip * dip, 16)

        if labels[i] == SegmentLabel.NCHUD and cur - prev > sudden_change and cur - nxt > sudden_change:
            hike = int((cur - (prev + nxt) / 2.0) / sudden_change)
            indicator += min(hike * hike, 16)

    return indicator


def segment_series(comp: np.ndarray, threshold: float, labels: np.ndarray,
                   smooth: np.ndarray, num_years: int):
    """Label, smooth and merge. Returns (segments, run counts)."""
    counts = classify_years(comp, threshold, labels, num_years)
    smooth[:num_years] = labels[:num_years]
    smooth_labels(smooth, num_years, SegmentLabel.NCLUD)
    smooth_labels(smooth, num_years, SegmentLabel.NCHUD)
    return merge_segments(smooth, num_years), counts
