from __future__ import annotations

import logging
import pickle
from pathlib import Path

import numpy as np

from inkvision.overlay.backends.base import Candidate, InferenceFailure, ModelUnavailable


HISTOGRAM_BINS = 16


class PickledModelBackend:
    """
    Wrapper for a serialized scikit-learn style landmark classifier.
    The model is fed per-channel colour histograms of the frame and must
    expose ``predict_proba`` and ``classes_``.
    """

    def __init__(self, model_path: str = "", top_k: int = 5) -> None:
        self.model_path = model_path
        self.top_k = max(1, int(top_k))
        self.model = None
        self.load_error = ""
        if not model_path:
            self.load_error = "MODEL_PATH is not set"
            return

        path = Path(model_path)
        if not path.exists():
            self.load_error = f"model file not found: {path}"
            return
        try:
            with path.open("rb") as fp:
                self.model = pickle.load(fp)
        except Exception as exc:
            self.load_error = f"failed to unpickle {path}: {exc}"
            logging.error("Failed to load landmark model: %s", self.load_error)

    @staticmethod
    def image_features(image: np.ndarray, bins: int = HISTOGRAM_BINS) -> np.ndarray:
        pixels = np.asarray(image)
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.size == 0:
            return np.zeros((1, bins * max(1, pixels.shape[-1])), dtype=np.float32)

        channels = []
        for idx in range(pixels.shape[-1]):
            hist, _ = np.histogram(pixels[:, :, idx], bins=bins, range=(0, 256))
            total = float(hist.sum()) or 1.0
            channels.append(hist.astype(np.float32) / total)
        return np.concatenate(channels).reshape(1, -1)

    def classify(self, image: np.ndarray) -> list[Candidate]:
        if self.model is None:
            raise ModelUnavailable(self.load_error or "landmark model is not loaded")

        try:
            features = self.image_features(image)
            probabilities = np.asarray(self.model.predict_proba(features))[0]
            classes = [str(item) for item in self.model.classes_]
        except Exception as exc:
            raise InferenceFailure(f"landmark model prediction failed: {exc}") from exc

        order = np.argsort(-probabilities, kind="stable")[: self.top_k]
        return [Candidate(label=classes[i], confidence=float(probabilities[i])) for i in order]
