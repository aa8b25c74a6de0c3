from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import numpy as np

from inkvision.overlay.backends.base import Candidate, InferenceFailure


def parse_tick(raw: Any) -> list[Candidate] | None:
    """Parse one scripted tick; ``None`` stands for a failed inference."""
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError(f"scripted tick must be a list or null, got {type(raw).__name__}")
    candidates = []
    for item in raw:
        if isinstance(item, dict):
            label, confidence = item.get("label"), item.get("confidence")
        else:
            label, confidence = item
        candidates.append(Candidate(label=str(label), confidence=float(confidence)))
    return candidates


def load_script(path: str | Path) -> list[list[Candidate] | None]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"script {path} must contain a JSON list of ticks")
    return [parse_tick(item) for item in payload]


class ScriptedBackend:
    """Replays canned candidate lists, one per classify call."""

    def __init__(self, ticks: Sequence[list[Candidate] | None], loop: bool = False) -> None:
        self.ticks = list(ticks)
        self.loop = loop
        self._cursor = 0

    @classmethod
    def from_file(cls, path: str | Path, loop: bool = False) -> "ScriptedBackend":
        return cls(load_script(path), loop=loop)

    @property
    def exhausted(self) -> bool:
        return not self.loop and self._cursor >= len(self.ticks)

    def classify(self, image: np.ndarray) -> list[Candidate]:
        del image
        if not self.ticks or self.exhausted:
            return []
        tick = self.ticks[self._cursor % len(self.ticks)]
        self._cursor += 1
        if tick is None:
            raise InferenceFailure("scripted inference failure")
        return list(tick)
