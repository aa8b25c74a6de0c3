import json

from inkvision.overlay.backends.base import Candidate, InferenceFailure, ModelUnavailable
from inkvision.overlay.config import OverlayConfig
from inkvision.overlay.gating import Action, ActionKind
from inkvision.overlay.playback import PlaybackController
from inkvision.overlay.service import OverlayService


class _FakeSink:
    def __init__(self):
        self.started = []
        self.stopped = []
        self.finished = False

    def start(self, locator):
        self.started.append(locator)
        return locator

    def stop(self, handle):
        self.stopped.append(handle)

    def is_finished(self, handle):
        del handle
        return self.finished


VIDEO_MAP = {
    "Eiffel Tower": "https://cdn.example.com/eiffel.mp4",
    "Colosseum": "https://cdn.example.com/colosseum.mp4",
    "Taj Mahal": "https://cdn.example.com/taj.mp4",
    "Big Ben": "local:big_ben.mp4",
}


def _service(tmp_path, **overrides):
    sink = _FakeSink()
    config = OverlayConfig(artifact_dir=str(tmp_path / "artifacts"), **overrides)
    playback = PlaybackController(sink=sink, video_map=VIDEO_MAP, assets_dir=tmp_path)
    return OverlayService(config=config, playback=playback), sink


def _seen(label, confidence=0.95):
    return [Candidate(label=label, confidence=confidence)]


def test_three_confident_ticks_start_video(tmp_path):
    service, sink = _service(tmp_path)

    actions = [service.process_candidates(_seen("Eiffel Tower")) for _ in range(3)]

    assert [a.kind for a in actions] == [ActionKind.NONE, ActionKind.NONE, ActionKind.START]
    assert sink.started == ["https://cdn.example.com/eiffel.mp4"]


def test_keep_threshold_applies_once_playing(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))

    service.process_candidates(_seen("Colosseum", 0.78))
    service.process_candidates(_seen("Colosseum", 0.78))
    service.process_candidates(_seen("Colosseum", 0.78))

    assert sink.stopped == []
    assert service.engine.state.playing.non_detection_streak == 0


def test_two_misses_stop_video(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))

    assert service.process_candidates([]) == Action.none()
    assert service.process_candidates([]) == Action.stop()
    assert sink.stopped == ["https://cdn.example.com/colosseum.mp4"]


def test_switch_stops_current_video_without_starting_next(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))

    action = service.process_candidates(_seen("Taj Mahal"))

    assert action == Action.switch("Taj Mahal")
    assert sink.stopped == ["https://cdn.example.com/colosseum.mp4"]
    assert sink.started == ["https://cdn.example.com/colosseum.mp4"]
    assert service.engine.state.pending.streak == 1
    assert service.playback.current_label is None


def test_inference_failure_counts_as_miss(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))

    assert service.process_failure(InferenceFailure("boom")) == Action.none()
    assert sink.stopped == []
    assert service.process_failure(InferenceFailure("boom")) == Action.stop()


def test_model_unavailable_never_triggers(tmp_path):
    service, sink = _service(tmp_path)

    for _ in range(10):
        service.process_failure(ModelUnavailable("no model"))

    assert sink.started == []
    assert service.engine.state.phase == "idle"


def test_missing_local_file_resets_state(tmp_path):
    service, sink = _service(tmp_path)

    actions = [service.process_candidates(_seen("Big Ben")) for _ in range(3)]

    assert actions[-1] == Action.start("Big Ben")
    assert sink.started == []
    assert service.engine.state.phase == "idle"
    assert service.playback.current_label is None


def test_natural_completion_returns_to_idle(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))
    service.process_candidates([])

    assert not service.poll_playback()
    sink.finished = True
    assert service.poll_playback()

    assert service.engine.state.phase == "idle"
    assert service.engine.state.pending.streak == 0
    assert sink.stopped == []


def test_events_recorded_when_enabled(tmp_path):
    service, sink = _service(tmp_path, record_events=True)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))
    service.process_candidates(_seen("Taj Mahal"))

    events = sorted((tmp_path / "artifacts").glob("event_*.json"))
    kinds = [json.loads(path.read_text(encoding="utf-8"))["kind"] for path in events]

    assert kinds == ["start", "switch"]
    last = json.loads(events[-1].read_text(encoding="utf-8"))
    assert last["label"] == "Taj Mahal"
    assert last["previous_label"] == "Colosseum"


def test_shutdown_stops_playback(tmp_path):
    service, sink = _service(tmp_path)
    for _ in range(3):
        service.process_candidates(_seen("Colosseum"))

    service.shutdown()

    assert sink.stopped == ["https://cdn.example.com/colosseum.mp4"]
    assert service.engine.state.phase == "idle"


def test_event_write_failure_does_not_break_playback(tmp_path):
    service, sink = _service(tmp_path, record_events=True)
    (tmp_path / "artifacts").rmdir()

    actions = [service.process_candidates(_seen("Colosseum")) for _ in range(3)]

    assert actions[-1] == Action.start("Colosseum")
    assert sink.started == ["https://cdn.example.com/colosseum.mp4"]
    assert service.playback.current_label == "Colosseum"
    assert service.engine.state.phase == "playing"
