from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

import numpy as np
import sounddevice as sd

from tone_finder.errors import BadValueError, DeviceError, InvalidOperationError, PermissionDeniedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioInputConfig:
    sample_rate: int = 44100
    channels: int = 1
    block_size: int = 4096
    device: int | str | None = None


class AudioInput:
    """Blocking int16 microphone reader."""

    def __init__(self, config: AudioInputConfig | None = None) -> None:
        self._cfg = config or AudioInputConfig()
        self._lock = threading.Lock()
        self._stream: sd.InputStream | None = None

    @property
    def sample_rate(self) -> int:
        return self._cfg.sample_rate

    @property
    def block_size(self) -> int:
        return self._cfg.block_size

    @property
    def is_running(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        with self._lock:
            if self._stream is not None:
                return
            try:
                stream = sd.InputStream(
                    samplerate=self._cfg.sample_rate,
                    channels=self._cfg.channels,
                    blocksize=self._cfg.block_size,
                    device=self._cfg.device,
                    dtype="int16",
                )
                stream.start()
            except PermissionError as exc:
                raise PermissionDeniedError("Microphone permission not granted") from exc
            except sd.PortAudioError as exc:
                raise DeviceError(f"Unable to open input device: {exc}") from exc
            self._stream = stream
        logger.info(
            "Audio input started (%d Hz, block %d)", self._cfg.sample_rate, self._cfg.block_size
        )

    def stop(self) -> None:
        with self._lock:
            stream = self._stream
            self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as exc:
            raise DeviceError(f"Error stopping input device: {exc}") from exc
        finally:
            logger.info("Audio input stopped")

    def read(self, frames: int | None = None) -> np.ndarray:
        """
        Block until ``frames`` samples (default: one block) are available.

        Returns a mono int16 array. The array can be shorter than requested,
        or empty, without that being an error.
        """
        count = self._cfg.block_size if frames is None else int(frames)
        if count <= 0:
            raise BadValueError(f"frame count must be positive, got {count}")

        stream = self._stream
        if stream is None:
            raise InvalidOperationError("Invalid operation during recording: stream is not running")

        try:
            data, overflowed = stream.read(count)
        except sd.PortAudioError as exc:
            raise DeviceError(f"Error reading input device: {exc}") from exc
        if overflowed:
            logger.debug("Input overflow; samples were dropped")
        return np.asarray(data[:, 0], dtype=np.int16).copy()

    def __enter__(self) -> AudioInput:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
