from __future__ import annotations

import csv
from io import StringIO

import numpy as np
import requests

from inkvision.overlay.backends.base import Candidate, InferenceFailure, ModelUnavailable
from inkvision.overlay.config import DEFAULT_LABEL_MAP_URL, DEFAULT_TFHUB_MODEL_HANDLE


INPUT_SIZE = 321


class TFHubLandmarkBackend:
    """TF Hub landmark classifier backend (lazy loaded)."""

    def __init__(
        self,
        model_handle: str = DEFAULT_TFHUB_MODEL_HANDLE,
        label_map_url: str = DEFAULT_LABEL_MAP_URL,
        top_k: int = 5,
    ) -> None:
        self.model_handle = model_handle
        self.label_map_url = label_map_url
        self.top_k = max(1, int(top_k))
        self._model = None
        self._class_names: list[str] = []
        self._loaded = False
        self._load_error = ""

    @staticmethod
    def _parse_label_map(text: str) -> list[str]:
        rows = csv.DictReader(StringIO(text))
        names: dict[int, str] = {}
        for row in rows:
            try:
                idx = int(str(row.get("id", "")).strip())
            except ValueError:
                continue
            names[idx] = str(row.get("name", "")).strip()
        if not names:
            return []
        return [names.get(i, "") for i in range(max(names) + 1)]

    @staticmethod
    def _top_candidates(logits: np.ndarray, class_names: list[str], top_k: int) -> list[Candidate]:
        scores = np.asarray(logits, dtype=np.float64).reshape(-1)
        if scores.size == 0:
            return []
        shifted = np.exp(scores - np.max(scores))
        probabilities = shifted / np.sum(shifted)

        order = np.argsort(-probabilities, kind="stable")
        candidates: list[Candidate] = []
        for idx in order:
            name = class_names[idx] if idx < len(class_names) else ""
            if not name:
                continue
            candidates.append(Candidate(label=name, confidence=float(probabilities[idx])))
            if len(candidates) >= top_k:
                break
        return candidates

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self._load_error:
            raise ModelUnavailable(self._load_error)

        try:
            import tensorflow_hub as hub

            self._model = hub.KerasLayer(self.model_handle, output_key="predictions:logits")
            response = requests.get(self.label_map_url, timeout=20)
            response.raise_for_status()
            self._class_names = self._parse_label_map(response.text)
        except Exception as exc:
            self._load_error = f"failed to load {self.model_handle}: {exc}"
            raise ModelUnavailable(self._load_error) from exc

        if not self._class_names:
            self._load_error = f"label map at {self.label_map_url} is empty"
            raise ModelUnavailable(self._load_error)
        self._loaded = True

    def classify(self, image: np.ndarray) -> list[Candidate]:
        self._ensure_loaded()
        try:
            import tensorflow as tf

            # frames arrive BGR from OpenCV
            rgb = np.asarray(image, dtype=np.float32)[:, :, ::-1] / 255.0
            batch = tf.image.resize(rgb[np.newaxis, ...], (INPUT_SIZE, INPUT_SIZE))
            logits = self._model(batch)
            return self._top_candidates(np.asarray(logits)[0], self._class_names, self.top_k)
        except Exception as exc:
            raise InferenceFailure(f"landmark inference failed: {exc}") from exc

    def runtime_label(self) -> str:
        if self._load_error:
            return "tfhub=unavailable"
        if self._loaded:
            return "tfhub=active"
        return "tfhub=not_loaded"
