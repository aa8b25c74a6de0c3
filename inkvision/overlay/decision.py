from __future__ import annotations

from typing import Collection, Sequence

from inkvision.overlay.backends.base import Candidate
from inkvision.overlay.config import OverlayConfig


START_THRESHOLD = 0.85
KEEP_THRESHOLD = 0.75
START_GAP = 0.05
KEEP_GAP = 0.03


def select_label(
    config: OverlayConfig,
    candidates: Sequence[Candidate],
    is_playing: bool,
    known_labels: Collection[str],
) -> str | None:
    return select_label_with_thresholds(
        candidates=candidates,
        is_playing=is_playing,
        known_labels=known_labels,
        start_threshold=config.start_threshold,
        keep_threshold=config.keep_threshold,
        start_gap=config.start_gap,
        keep_gap=config.keep_gap,
    )


def select_label_with_thresholds(
    candidates: Sequence[Candidate],
    is_playing: bool,
    known_labels: Collection[str],
    start_threshold: float = START_THRESHOLD,
    keep_threshold: float = KEEP_THRESHOLD,
    start_gap: float = START_GAP,
    keep_gap: float = KEEP_GAP,
) -> str | None:
    """
    Reduce one tick's candidates to at most one accepted label.

    A playing video is kept alive with the lower bar (``keep_*``); starting
    one needs the higher bar (``start_*``). The top survivor must map to a
    video and beat the runner-up by more than the required gap.
    """
    threshold = keep_threshold if is_playing else start_threshold
    required_gap = keep_gap if is_playing else start_gap

    ranked = sorted(candidates, key=lambda item: item.confidence, reverse=True)
    surviving = [item for item in ranked if item.confidence >= threshold]
    if not surviving:
        return None

    top = surviving[0]
    if top.label not in known_labels:
        return None

    if len(surviving) > 1:
        gap = top.confidence - surviving[1].confidence
        if gap <= required_gap:
            return None

    return top.label
