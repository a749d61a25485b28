from __future__ import annotations

import logging
import threading
import uuid
from collections import Counter

import numpy as np

from tone_finder.analyzer import AnalysisResult, AnalyzerConfig, FrequencyAnalyzer
from tone_finder.display import render
from tone_finder.web.schemas import AnalysisEvent

logger = logging.getLogger(__name__)


class RealtimeSession:
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.analyzer = FrequencyAnalyzer()
        self._block_size = 4096
        self._pending = np.zeros(0, dtype=np.int16)
        self._leftover = b""
        self._clock = 0.0

    @property
    def sample_rate(self) -> int:
        return self.analyzer.sample_rate

    @property
    def block_size(self) -> int:
        return self._block_size

    def init(self, *, sample_rate: int, block_size: int) -> None:
        self.analyzer = FrequencyAnalyzer(AnalyzerConfig(sample_rate=int(sample_rate)))
        self._block_size = int(block_size)
        self._pending = np.zeros(0, dtype=np.int16)
        self._leftover = b""
        self._clock = 0.0

    def process_audio_bytes(self, payload: bytes) -> list[dict[str, object]]:
        # Little-endian int16 PCM; an odd trailing byte waits for the next chunk.
        data = self._leftover + payload
        usable = len(data) - (len(data) % 2)
        self._leftover = data[usable:]
        if usable == 0:
            return []

        frame = np.frombuffer(data[:usable], dtype="<i2").astype(np.int16)
        self._pending = np.concatenate((self._pending, frame))
        events: list[dict[str, object]] = []

        while self._pending.size >= self._block_size:
            block = self._pending[: self._block_size]
            self._pending = self._pending[self._block_size :]
            self._clock += self._block_size / float(self.sample_rate)
            result = self.analyzer.analyze(block)
            events.append(analysis_event(result, self._clock))

        return events


def analysis_event(result: AnalysisResult | None, t: float) -> dict[str, object]:
    event = AnalysisEvent(
        t=float(t),
        result=result.to_dict() if result is not None else None,
        display=render(result).to_dict(),
    )
    return event.model_dump(by_alias=True)


def analyze_blocks(
    samples: np.ndarray, analyzer: FrequencyAnalyzer, block_size: int
) -> list[AnalysisResult | None]:
    results: list[AnalysisResult | None] = []
    for i in range(0, int(samples.size), block_size):
        block = samples[i : i + block_size]
        if block.size == 0:
            continue
        results.append(analyzer.analyze(block))
    return results


def dominant_result(results: list[AnalysisResult | None]) -> AnalysisResult | None:
    voiced = [r for r in results if r is not None]
    if not voiced:
        return None
    # Most frequent note label wins; Counter keeps first-seen order on ties.
    label, _ = Counter(r.label for r in voiced).most_common(1)[0]
    matching = sorted((r for r in voiced if r.label == label), key=lambda r: r.frequency)
    return matching[len(matching) // 2]


class SessionManager:
    def __init__(self) -> None:
        self._sessions: dict[str, RealtimeSession] = {}
        self._lock = threading.Lock()

    def create(self) -> RealtimeSession:
        session_id = uuid.uuid4().hex
        session = RealtimeSession(session_id)
        with self._lock:
            self._sessions[session_id] = session
        logger.debug("Session %s opened", session_id)
        return session

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
        logger.debug("Session %s closed", session_id)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)
