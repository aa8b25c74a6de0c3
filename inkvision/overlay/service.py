from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Sequence

from inkvision.overlay.backends.base import Candidate, ClassifyError, ModelUnavailable
from inkvision.overlay.config import OverlayConfig
from inkvision.overlay.decision import select_label
from inkvision.overlay.gating import Action, ActionKind, DebounceEngine
from inkvision.overlay.playback import PlaybackController, ResourceResolutionFailure


@dataclass(frozen=True)
class OverlayEvent:
    event_at: str
    kind: str
    label: str | None
    previous_label: str | None


class OverlayService:
    def __init__(
        self,
        config: OverlayConfig,
        playback: PlaybackController,
        engine: DebounceEngine | None = None,
    ) -> None:
        self.config = config
        self.playback = playback
        self.engine = engine or DebounceEngine(confirm_n=config.confirm_n, max_misses=config.max_misses)
        self.artifact_dir = Path(config.artifact_dir)
        if config.record_events:
            self.artifact_dir.mkdir(parents=True, exist_ok=True)
        self._event_seq = 0
        self._model_unavailable_reported = False

    def filter_candidates(self, candidates: Sequence[Candidate]) -> str | None:
        return select_label(
            config=self.config,
            candidates=candidates,
            is_playing=self.engine.is_playing,
            known_labels=self.playback.known_labels,
        )

    def process_candidates(self, candidates: Sequence[Candidate]) -> Action:
        result = self.filter_candidates(candidates)
        if result is not None:
            logging.debug("Recognized landmark: %s", result)
        return self.process_result(result)

    def process_failure(self, error: Exception) -> Action:
        if isinstance(error, ModelUnavailable):
            if not self._model_unavailable_reported:
                logging.error("Landmark model unavailable, recognition disabled: %s", error)
                self._model_unavailable_reported = True
            else:
                logging.debug("Landmark model unavailable: %s", error)
        elif isinstance(error, ClassifyError):
            logging.warning("Landmark inference failed: %s", error)
        else:
            logging.warning("Classification cycle failed: %s", error)
        return self.process_result(None)

    def process_result(self, result: str | None) -> Action:
        action = self.engine.advance(result)
        self._apply(action)
        return action

    def poll_playback(self) -> bool:
        if not self.playback.poll_finished():
            return False
        previous = self.engine.state.playing.label if self.engine.state.playing else None
        self.engine.complete_playback()
        self._record("completed", label=None, previous_label=previous)
        return True

    def shutdown(self) -> None:
        self.playback.stop()
        self.engine.state.reset()

    def _apply(self, action: Action) -> None:
        if action.kind is ActionKind.NONE:
            return

        previous = self.playback.current_label
        if action.kind is ActionKind.START:
            try:
                self.playback.start(action.label)
            except ResourceResolutionFailure as exc:
                logging.error("Cannot play video for %s: %s", action.label, exc)
                self.engine.state.reset()
                self._record("failed", label=action.label, previous_label=previous)
                return
        elif action.kind is ActionKind.SWITCH:
            logging.info("Landmark changed from %s to %s", previous, action.label)
            self.playback.stop()
        else:
            self.playback.stop()

        self._record(action.kind.value, label=action.label, previous_label=previous)

    def _record(self, kind: str, label: str | None, previous_label: str | None) -> None:
        if not self.config.record_events:
            return
        event = OverlayEvent(
            event_at=datetime.now().isoformat(timespec="seconds"),
            kind=kind,
            label=label,
            previous_label=previous_label,
        )
        self._event_seq += 1
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output = self.artifact_dir / f"event_{stamp}_{self._event_seq:04d}.json"
        try:
            output.write_text(json.dumps(asdict(event), indent=2), encoding="utf-8")
        except OSError as exc:
            logging.warning("Failed to record %s event for %s: %s", kind, label, exc)
