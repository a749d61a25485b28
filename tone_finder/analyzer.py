from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from tone_finder.fft import magnitude_spectrum
from tone_finder.notes import frequency_to_note

INT16_MAX = 32767


@dataclass(frozen=True)
class AnalyzerConfig:
    sample_rate: int = 44100
    min_hz: float = 20.0
    max_hz: float = 4000.0

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if not (0.0 <= self.min_hz < self.max_hz):
            raise ValueError(f"invalid band [{self.min_hz}, {self.max_hz}]")


@dataclass(frozen=True)
class AnalysisResult:
    frequency: float
    note: str
    octave: int
    cents_off: float

    @property
    def label(self) -> str:
        return f"{self.note}{self.octave}"

    def to_dict(self) -> dict[str, object]:
        return {
            "frequency": float(self.frequency),
            "note": self.note,
            "octave": int(self.octave),
            "centsOff": float(self.cents_off),
        }


class FrequencyAnalyzer:
    """
    Single-tone frequency analyzer for one block of int16 samples.

    Pipeline per call:
    - Normalize to [-1, 1] and apply a Hamming window.
    - Zero-pad to a power of two and run a radix-2 FFT.
    - Pick the strongest non-DC bin (bin-quantized, no interpolation).
    - Reject out-of-band estimates, then map to note/octave/cents.

    The only state is the immutable config; every scratch buffer is local
    to ``analyze`` so one instance can be shared across threads.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self._cfg = config or AnalyzerConfig()

    @property
    def sample_rate(self) -> int:
        return int(self._cfg.sample_rate)

    @property
    def config(self) -> AnalyzerConfig:
        return self._cfg

    def analyze(self, samples: Sequence[int] | np.ndarray) -> AnalysisResult | None:
        data = np.asarray(samples)
        if data.size == 0:
            return None

        windowed = apply_hamming_window(normalize_samples(data))
        spectrum = magnitude_spectrum(windowed)

        frequency = find_dominant_frequency(spectrum, self.sample_rate)
        # A peak on the DC bin (silence) is 0 Hz even when min_hz is 0.
        if frequency is None or frequency <= 0.0:
            return None
        if frequency < self._cfg.min_hz or frequency > self._cfg.max_hz:
            return None

        note, octave, cents_off = frequency_to_note(frequency)
        return AnalysisResult(frequency=frequency, note=note, octave=octave, cents_off=cents_off)


def normalize_samples(samples: Sequence[int] | np.ndarray) -> np.ndarray:
    return np.asarray(samples, dtype=np.float64).ravel() / float(INT16_MAX)


def apply_hamming_window(samples: np.ndarray) -> np.ndarray:
    # Modifies and returns ``samples``. The coefficient divides by N - 1,
    # so a single sample is passed through unwindowed.
    n = int(samples.size)
    if n <= 1:
        return samples
    i = np.arange(n, dtype=np.float64)
    samples *= 0.54 - 0.46 * np.cos(2.0 * math.pi * i / (n - 1))
    return samples


def find_dominant_frequency(spectrum: np.ndarray, sample_rate: int) -> float | None:
    size = int(spectrum.size)
    if size <= 1:
        return None

    # argmax returns the first maximum, so ties resolve left-to-right.
    peak = int(np.argmax(spectrum[1:])) + 1
    if not spectrum[peak] > 0.0:
        # Nothing above the DC bin carries energy.
        peak = 0

    resolution = float(sample_rate) / float(size * 2)
    return peak * resolution
