from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import numpy as np


class ClassifyError(RuntimeError):
    """Base class for classifier failures; the session treats them as a miss."""


class ModelUnavailable(ClassifyError):
    pass


class InferenceFailure(ClassifyError):
    pass


@dataclass(frozen=True)
class Candidate:
    label: str
    confidence: float


class ClassifierBackend(Protocol):
    def classify(self, image: np.ndarray) -> list[Candidate]:
        raise NotImplementedError
