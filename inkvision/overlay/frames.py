from __future__ import annotations

from pathlib import Path
from typing import Protocol

import numpy as np


class FrameProvider(Protocol):
    def snapshot(self) -> np.ndarray:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class CameraFrameProvider:
    def __init__(self, device: int = 0) -> None:
        self.device = device
        self._capture = None

    def _ensure_open(self):
        if self._capture is not None:
            return self._capture

        import cv2

        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise RuntimeError(f"Camera device {self.device} could not be opened")
        self._capture = capture
        return capture

    def snapshot(self) -> np.ndarray:
        capture = self._ensure_open()
        ok, frame = capture.read()
        if not ok or frame is None:
            raise RuntimeError(f"Camera device {self.device} returned no frame")
        return np.asarray(frame)

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None


class StillImageFrameProvider:
    """Serves the same image on every snapshot."""

    def __init__(self, image_path: str | Path) -> None:
        self.image_path = Path(image_path)
        self._frame: np.ndarray | None = None

    def snapshot(self) -> np.ndarray:
        if self._frame is None:
            self._frame = read_image(self.image_path)
        return self._frame

    def close(self) -> None:
        self._frame = None


def read_image(path: str | Path) -> np.ndarray:
    import cv2

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FileNotFoundError(f"Image not found or unreadable: {path}")
    return image


def decode_image(payload: bytes) -> np.ndarray:
    import cv2

    buffer = np.frombuffer(payload, dtype=np.uint8)
    if buffer.size == 0:
        raise ValueError("Uploaded payload is empty")
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Uploaded payload is not a decodable image")
    return image
