from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, Mapping, Protocol
from urllib.parse import urlparse

from inkvision.overlay.video_map import LOCAL_PREFIX, is_local_locator


class ResourceResolutionFailure(RuntimeError):
    pass


class PlaybackSink(Protocol):
    def start(self, locator: str) -> Any:
        raise NotImplementedError

    def stop(self, handle: Any) -> None:
        raise NotImplementedError

    def is_finished(self, handle: Any) -> bool:
        raise NotImplementedError


def resolve_locator(locator: str, assets_dir: str | Path) -> str:
    """Turn a video-map locator into something a sink can open."""
    if is_local_locator(locator):
        file_name = locator[len(LOCAL_PREFIX):].strip()
        if not file_name:
            raise ResourceResolutionFailure(f"Empty local video locator: {locator!r}")
        path = Path(assets_dir) / file_name
        if not path.is_file():
            raise ResourceResolutionFailure(f"Local video file not found: {path}")
        return str(path)

    parsed = urlparse(locator)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ResourceResolutionFailure(f"Invalid URL: {locator}")
    return locator


class FfplaySink:
    """Plays each video full-screen in its own ``ffplay`` process."""

    def __init__(self, binary: str = "ffplay") -> None:
        self.binary = binary

    def start(self, locator: str) -> subprocess.Popen:
        if shutil.which(self.binary) is None:
            raise ResourceResolutionFailure(f"{self.binary} not found on PATH")
        command = [
            self.binary,
            "-hide_banner",
            "-loglevel",
            "error",
            "-autoexit",
            "-fs",
            locator,
        ]
        return subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

    def stop(self, handle: subprocess.Popen) -> None:
        if handle.poll() is not None:
            return
        handle.terminate()
        try:
            handle.wait(timeout=5)
        except subprocess.TimeoutExpired:
            handle.kill()
            handle.wait()

    def is_finished(self, handle: subprocess.Popen) -> bool:
        return handle.poll() is not None


class HeadlessPlaybackSink:
    """Logs playback instead of rendering; optionally ends after ``duration_seconds``."""

    def __init__(self, duration_seconds: float = 0.0) -> None:
        self.duration_seconds = duration_seconds
        self.started: list[str] = []

    def start(self, locator: str) -> dict[str, Any]:
        self.started.append(locator)
        logging.info("Headless playback started: %s", locator)
        return {"locator": locator, "started_at": time.monotonic()}

    def stop(self, handle: dict[str, Any]) -> None:
        logging.info("Headless playback stopped: %s", handle["locator"])

    def is_finished(self, handle: dict[str, Any]) -> bool:
        if self.duration_seconds <= 0:
            return False
        return time.monotonic() - handle["started_at"] >= self.duration_seconds


class PlaybackController:
    def __init__(self, sink: PlaybackSink, video_map: Mapping[str, str], assets_dir: str | Path) -> None:
        self.sink = sink
        self.video_map = dict(video_map)
        self.assets_dir = Path(assets_dir)
        self._handle: Any = None
        self._label: str | None = None

    @property
    def known_labels(self) -> set[str]:
        return set(self.video_map)

    @property
    def current_label(self) -> str | None:
        return self._label

    def start(self, label: str) -> None:
        """Stop whatever is playing, then play ``label``'s video.

        Raises ResourceResolutionFailure when the label has no usable video;
        nothing is playing afterwards in that case.
        """
        self.stop()
        locator = self.video_map.get(label)
        if locator is None:
            raise ResourceResolutionFailure(f"No video source found for {label}")
        resolved = resolve_locator(locator, self.assets_dir)
        try:
            self._handle = self.sink.start(resolved)
        except ResourceResolutionFailure:
            raise
        except Exception as exc:
            raise ResourceResolutionFailure(f"Failed to start playback of {resolved}: {exc}") from exc
        self._label = label
        logging.info("Overlaying video for %s (%s)", label, resolved)

    def stop(self) -> None:
        if self._handle is None:
            return
        handle, label = self._handle, self._label
        self._handle = None
        self._label = None
        try:
            self.sink.stop(handle)
        except Exception as exc:
            logging.warning("Playback sink failed to stop %s cleanly: %s", label, exc)
        logging.info("Video overlay removed (%s)", label)

    def poll_finished(self) -> bool:
        """Report natural end of playback once; the handle is released on that call."""
        if self._handle is None:
            return False
        if not self.sink.is_finished(self._handle):
            return False
        logging.info("Video for %s played to the end", self._label)
        self._handle = None
        self._label = None
        return True
