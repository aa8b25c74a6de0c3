import sys

import numpy as np
import pytest

from inkvision.overlay.backends.base import ModelUnavailable
from inkvision.overlay.backends.tfhub_classifier import TFHubLandmarkBackend


def test_parse_label_map_orders_by_id():
    text = "id,name\n2,Colosseum\n0,Eiffel Tower\nbad,Nothing\n"

    names = TFHubLandmarkBackend._parse_label_map(text)

    assert names == ["Eiffel Tower", "", "Colosseum"]


def test_top_candidates_softmax_and_skip_unnamed():
    class_names = ["Eiffel Tower", "", "Colosseum", "Taj Mahal"]
    logits = np.array([1.0, 9.0, 3.0, 0.5])

    candidates = TFHubLandmarkBackend._top_candidates(logits, class_names, top_k=2)

    assert [c.label for c in candidates] == ["Colosseum", "Eiffel Tower"]
    assert candidates[0].confidence > candidates[1].confidence
    assert all(0.0 <= c.confidence <= 1.0 for c in candidates)


def test_top_candidates_empty_logits():
    assert TFHubLandmarkBackend._top_candidates(np.array([]), [], top_k=3) == []


def test_load_failure_is_model_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "tensorflow_hub", None)
    backend = TFHubLandmarkBackend()

    with pytest.raises(ModelUnavailable):
        backend.classify(np.zeros((4, 4, 3), dtype=np.uint8))
    with pytest.raises(ModelUnavailable):
        backend.classify(np.zeros((4, 4, 3), dtype=np.uint8))
    assert backend.runtime_label() == "tfhub=unavailable"
