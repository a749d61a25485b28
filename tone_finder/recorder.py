from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Protocol

import numpy as np

from tone_finder.analyzer import AnalysisResult, FrequencyAnalyzer
from tone_finder.errors import CaptureError

logger = logging.getLogger(__name__)


class CaptureSource(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def read(self, frames: int | None = None) -> np.ndarray: ...


@dataclass(frozen=True)
class RecorderConfig:
    # Pause after each delivered result so output keeps a display-friendly pace.
    interval: float = 0.1
    # Back-off when the source returns nothing.
    idle_wait: float = 0.005
    # None waits for the in-flight read, however long the block is.
    join_timeout: float | None = None


class Recorder:
    """Pumps capture blocks through the analyzer on a background thread."""

    def __init__(
        self,
        source: CaptureSource,
        analyzer: FrequencyAnalyzer,
        on_result: Callable[[AnalysisResult | None], None],
        on_error: Callable[[str], None],
        config: RecorderConfig | None = None,
    ) -> None:
        self._source = source
        self._analyzer = analyzer
        self._on_result = on_result
        self._on_error = on_error
        self._cfg = config or RecorderConfig()
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and not self._stop.is_set()

    def start(self) -> bool:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return True
            try:
                self._source.start()
            except CaptureError as exc:
                logger.warning("Unable to start capture: %s", exc)
                self._on_error(str(exc))
                return False
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="tone-finder-recorder", daemon=True)
            self._thread.start()
        logger.info("Recording started")
        return True

    def stop(self) -> None:
        self._stop.set()
        with self._lock:
            thread = self._thread
            self._thread = None
        # The worker releases the source on exit, never while a read is in flight.
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=self._cfg.join_timeout)
        if thread.is_alive():
            logger.warning("Capture thread still reading; source is released when it exits")

    def _run(self) -> None:
        try:
            while not self._stop.is_set():
                try:
                    block = self._source.read()
                except CaptureError as exc:
                    if self._stop.is_set():
                        return
                    logger.error("Capture failed: %s", exc)
                    self._stop.set()
                    self._on_error(str(exc))
                    return

                if self._stop.is_set():
                    # Stopped while blocked in read; drop the block.
                    return
                if block.size == 0:
                    self._stop.wait(self._cfg.idle_wait)
                    continue

                result = self._analyzer.analyze(block)
                self._on_result(result)
                self._stop.wait(self._cfg.interval)
        finally:
            self._release_source()

    def _release_source(self) -> None:
        try:
            self._source.stop()
        except CaptureError as exc:
            logger.warning("Error stopping capture: %s", exc)
            self._on_error(f"Error stopping recording: {exc}")
