import pickle

import numpy as np
import pytest

from inkvision.overlay.backends.base import InferenceFailure, ModelUnavailable
from inkvision.overlay.backends.pickled_model import HISTOGRAM_BINS, PickledModelBackend


class _StubModel:
    classes_ = np.array(["Colosseum", "Eiffel Tower", "Taj Mahal"])

    def predict_proba(self, features):
        assert features.shape == (1, 3 * HISTOGRAM_BINS)
        return np.array([[0.1, 0.7, 0.2]])


class _BrokenModel:
    classes_ = np.array(["Colosseum"])

    def predict_proba(self, features):
        raise ValueError("feature size mismatch")


def _write(tmp_path, model):
    path = tmp_path / "model.pkl"
    with path.open("wb") as fp:
        pickle.dump(model, fp)
    return str(path)


def test_image_features_are_normalised_histograms():
    image = np.zeros((8, 8, 3), dtype=np.uint8)
    image[:, :, 2] = 255

    features = PickledModelBackend.image_features(image)

    assert features.shape == (1, 3 * HISTOGRAM_BINS)
    assert np.isclose(features.sum(), 3.0)
    assert features[0, 0] == 1.0
    assert features[0, 3 * HISTOGRAM_BINS - 1] == 1.0


def test_classify_returns_ranked_candidates(tmp_path):
    backend = PickledModelBackend(model_path=_write(tmp_path, _StubModel()), top_k=2)

    candidates = backend.classify(np.zeros((4, 4, 3), dtype=np.uint8))

    assert [c.label for c in candidates] == ["Eiffel Tower", "Taj Mahal"]
    assert candidates[0].confidence == pytest.approx(0.7)


def test_missing_model_is_unavailable(tmp_path):
    backend = PickledModelBackend(model_path=str(tmp_path / "absent.pkl"))

    with pytest.raises(ModelUnavailable):
        backend.classify(np.zeros((4, 4, 3), dtype=np.uint8))


def test_unset_model_path_is_unavailable():
    with pytest.raises(ModelUnavailable):
        PickledModelBackend().classify(np.zeros((4, 4, 3), dtype=np.uint8))


def test_prediction_error_is_inference_failure(tmp_path):
    backend = PickledModelBackend(model_path=_write(tmp_path, _BrokenModel()))

    with pytest.raises(InferenceFailure):
        backend.classify(np.zeros((4, 4, 3), dtype=np.uint8))
