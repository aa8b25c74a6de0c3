from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor

import numpy as np

from inkvision.overlay.backends.base import Candidate, ClassifierBackend
from inkvision.overlay.frames import FrameProvider
from inkvision.overlay.service import OverlayService


PUMP_INTERVAL_SECONDS = 0.05


class OverlaySession:
    """
    Drives one recognition session from the control thread.

    Each tick snapshots a frame and hands it to a single background worker.
    The worker's outcome comes back through ``_results`` and is only applied
    to detection state in ``pump``, on the control thread. While a
    classification is outstanding further ticks are dropped, not queued.
    ``teardown`` bumps the session generation so results that arrive late are
    discarded.
    """

    def __init__(
        self,
        service: OverlayService,
        frames: FrameProvider,
        backend: ClassifierBackend,
        tick_interval_seconds: float = 0.8,
        executor: Executor | None = None,
    ) -> None:
        self.service = service
        self.frames = frames
        self.backend = backend
        self.tick_interval_seconds = tick_interval_seconds
        self._owns_executor = executor is None
        self.executor: Executor | None = executor
        self._results: queue.Queue[tuple[int, list[Candidate] | None, Exception | None]] = queue.Queue()
        self._stop = threading.Event()
        self._in_flight = False
        self._active = False
        self._generation = 0
        self.ticks = 0
        self.dropped_ticks = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def active(self) -> bool:
        return self._active

    def init(self) -> None:
        if self._active:
            return
        if self._owns_executor and self.executor is None:
            self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inkvision-classify")
        self.service.engine.state.reset()
        self._generation += 1
        self._in_flight = False
        self._stop.clear()
        self._active = True
        logging.info("Overlay session started (generation=%d)", self._generation)

    def on_tick(self) -> bool:
        if not self._active:
            return False
        self.ticks += 1
        if self._in_flight:
            self.dropped_ticks += 1
            logging.debug("Tick dropped, classification still in flight")
            return False

        try:
            image = self.frames.snapshot()
        except Exception as exc:
            logging.warning("Frame snapshot failed: %s", exc)
            self.service.process_failure(exc)
            return False

        self._in_flight = True
        try:
            self.executor.submit(self._classify, self._generation, image)
        except Exception as exc:
            self._in_flight = False
            logging.error("Failed to dispatch classification: %s", exc)
            self.service.process_failure(exc)
            return False
        return True

    def _classify(self, generation: int, image: np.ndarray) -> None:
        try:
            candidates = self.backend.classify(image)
        except Exception as exc:
            self._results.put((generation, None, exc))
        else:
            self._results.put((generation, list(candidates), None))

    def pump(self) -> int:
        """Apply finished classifications and playback completion. Control thread only."""
        applied = 0
        while True:
            try:
                generation, candidates, error = self._results.get_nowait()
            except queue.Empty:
                break
            if not self._active or generation != self._generation:
                logging.debug("Discarding classification result from generation %d", generation)
                continue

            self._in_flight = False
            if error is not None:
                self.service.process_failure(error)
            else:
                self.service.process_candidates(candidates or [])
            applied += 1

        if self._active:
            self.service.poll_playback()
        return applied

    def request_stop(self) -> None:
        """Ask ``run`` to finish; safe from any thread."""
        self._stop.set()

    def teardown(self) -> None:
        if not self._active:
            return
        self._active = False
        self._stop.set()
        self._generation += 1
        self._in_flight = False
        self.service.shutdown()
        try:
            self.frames.close()
        finally:
            if self._owns_executor:
                self.executor.shutdown(wait=False)
                self.executor = None
        logging.info("Overlay session stopped (ticks=%d dropped=%d)", self.ticks, self.dropped_ticks)

    def run(self, max_ticks: int = 0) -> None:
        self.init()
        next_tick_at = time.monotonic()
        try:
            while self._active and not self._stop.is_set():
                self.pump()
                ticks_done = max_ticks > 0 and self.ticks >= max_ticks
                if ticks_done and not self._in_flight:
                    break

                now = time.monotonic()
                if not ticks_done and now >= next_tick_at:
                    self.on_tick()
                    next_tick_at += self.tick_interval_seconds
                    if next_tick_at < now:
                        next_tick_at = now + self.tick_interval_seconds

                wait_seconds = PUMP_INTERVAL_SECONDS
                if not ticks_done:
                    wait_seconds = min(wait_seconds, max(0.0, next_tick_at - time.monotonic()))
                self._stop.wait(wait_seconds)
        finally:
            self.teardown()
