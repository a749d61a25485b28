from __future__ import annotations

import threading
import time

import numpy as np

from tone_finder.analyzer import FrequencyAnalyzer
from tone_finder.errors import BadValueError, InvalidOperationError, PermissionDeniedError
from tone_finder.recorder import Recorder, RecorderConfig


def _sine(freq: float, n: int = 4096, sample_rate: int = 44_100) -> np.ndarray:
    t = np.arange(n, dtype=np.float64) / sample_rate
    return (0.4 * 32767 * np.sin(2 * np.pi * freq * t)).astype(np.int16)


class FakeSource:
    """Replays a script of blocks and exceptions, then returns empty reads."""

    def __init__(self, script: list[object], start_error: Exception | None = None) -> None:
        self._script = list(script)
        self._start_error = start_error
        self._lock = threading.Lock()
        self.started = 0
        self.stopped = 0

    def start(self) -> None:
        if self._start_error is not None:
            raise self._start_error
        self.started += 1

    def stop(self) -> None:
        self.stopped += 1

    def read(self, frames: int | None = None) -> np.ndarray:
        with self._lock:
            item = self._script.pop(0) if self._script else np.zeros(0, dtype=np.int16)
        if isinstance(item, Exception):
            raise item
        return item


class Collector:
    def __init__(self, expected: int) -> None:
        self.results: list[object] = []
        self.errors: list[str] = []
        self._expected = expected
        self.done = threading.Event()
        self.failed = threading.Event()

    def on_result(self, result) -> None:
        self.results.append(result)
        if len(self.results) >= self._expected:
            self.done.set()

    def on_error(self, message: str) -> None:
        self.errors.append(message)
        self.failed.set()


def _recorder(source: FakeSource, sink: Collector) -> Recorder:
    return Recorder(
        source,
        FrequencyAnalyzer(),
        sink.on_result,
        sink.on_error,
        RecorderConfig(interval=0.0, idle_wait=0.001),
    )


def test_recorder_delivers_results_in_order() -> None:
    empty = np.zeros(0, dtype=np.int16)
    source = FakeSource([_sine(440.0), empty, np.zeros(4096, dtype=np.int16), empty, _sine(220.0)])
    sink = Collector(expected=3)
    recorder = _recorder(source, sink)

    assert recorder.start()
    assert recorder.is_recording
    assert sink.done.wait(5.0)
    recorder.stop()

    assert not recorder.is_recording
    assert len(sink.results) == 3
    assert sink.results[0].label == "A4"
    assert sink.results[1] is None
    assert sink.results[2].label == "A3"
    assert source.started == 1
    assert source.stopped >= 1
    assert sink.errors == []


def test_invalid_operation_ends_the_stream() -> None:
    source = FakeSource([_sine(440.0), InvalidOperationError("Invalid operation during recording"), _sine(220.0)])
    sink = Collector(expected=10)
    recorder = _recorder(source, sink)

    recorder.start()
    assert sink.failed.wait(5.0)
    recorder.stop()

    assert sink.errors == ["Invalid operation during recording"]
    assert len(sink.results) == 1
    assert not recorder.is_recording
    assert source.stopped >= 1


def test_bad_value_ends_the_stream() -> None:
    source = FakeSource([BadValueError("Bad value during recording")])
    sink = Collector(expected=1)
    recorder = _recorder(source, sink)

    recorder.start()
    assert sink.failed.wait(5.0)
    recorder.stop()

    assert sink.errors == ["Bad value during recording"]
    assert sink.results == []


def test_start_failure_is_reported() -> None:
    source = FakeSource([], start_error=PermissionDeniedError("Microphone permission not granted"))
    sink = Collector(expected=1)
    recorder = _recorder(source, sink)

    assert recorder.start() is False
    assert not recorder.is_recording
    assert sink.errors == ["Microphone permission not granted"]


def test_start_is_idempotent_and_stop_is_safe_twice() -> None:
    source = FakeSource([])
    sink = Collector(expected=1)
    recorder = _recorder(source, sink)

    assert recorder.start()
    assert recorder.start()
    recorder.stop()
    recorder.stop()

    assert source.started == 1
    assert not recorder.is_recording


class SlowSource(FakeSource):
    """Blocks inside read() for a while, like a long capture block."""

    def __init__(self, delay: float) -> None:
        super().__init__([])
        self._delay = delay
        self.reading = threading.Event()
        self.stopped_mid_read = False

    def stop(self) -> None:
        if self.reading.is_set():
            self.stopped_mid_read = True
        super().stop()

    def read(self, frames: int | None = None) -> np.ndarray:
        self.reading.set()
        try:
            time.sleep(self._delay)
            return _sine(440.0)
        finally:
            self.reading.clear()


def test_stop_waits_for_in_flight_read_and_drops_its_block() -> None:
    source = SlowSource(delay=0.5)
    sink = Collector(expected=1)
    recorder = _recorder(source, sink)

    recorder.start()
    assert source.reading.wait(5.0)
    recorder.stop()

    assert not source.stopped_mid_read
    assert source.stopped == 1
    assert sink.results == []
    assert sink.errors == []
    assert not recorder.is_recording
