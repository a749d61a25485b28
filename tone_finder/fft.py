from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def next_power_of_two(n: int) -> int:
    power = 1
    while power < n:
        power *= 2
    return power


def fft_in_place(real: np.ndarray, imag: np.ndarray) -> None:
    """
    Iterative radix-2 Cooley-Tukey transform over a real/imag buffer pair.

    Both arrays are float64, same length, and that length must be a power
    of two. Twiddles for each stage are produced by repeatedly rotating a
    unit phasor rather than calling sin/cos per element; the drift this
    accumulates is negligible for a few thousand points.
    """
    n = int(real.size)
    if imag.size != n:
        raise ValueError(f"real/imag length mismatch: {n} != {imag.size}")
    if n & (n - 1):
        raise ValueError(f"FFT length must be a power of two, got {n}")
    if not (real.flags.c_contiguous and imag.flags.c_contiguous):
        raise ValueError("FFT buffers must be contiguous")
    if n <= 1:
        return

    _bit_reverse(real, imag)

    length = 2
    while length <= n:
        half = length // 2
        w_re, w_im = _twiddles(length)
        # View the buffer as (n / length) blocks and run every butterfly of
        # the stage at once; top/bottom are views, so writes land in place.
        re = real.reshape(-1, length)
        im = imag.reshape(-1, length)
        top_re, bot_re = re[:, :half], re[:, half:]
        top_im, bot_im = im[:, :half], im[:, half:]

        t_re = w_re * bot_re - w_im * bot_im
        t_im = w_re * bot_im + w_im * bot_re
        bot_re[:] = top_re - t_re
        bot_im[:] = top_im - t_im
        top_re += t_re
        top_im += t_im
        length *= 2


def magnitude_spectrum(samples: Sequence[float] | np.ndarray) -> np.ndarray:
    """Zero-pad to a power of two, transform, and return |X[k]| for k < fft_size / 2."""
    x = np.asarray(samples, dtype=np.float64)
    fft_size = next_power_of_two(int(x.size))

    real = np.zeros(fft_size, dtype=np.float64)
    imag = np.zeros(fft_size, dtype=np.float64)
    real[: x.size] = x

    fft_in_place(real, imag)

    half = fft_size // 2
    return np.sqrt(real[:half] * real[:half] + imag[:half] * imag[:half])


def _bit_reverse(real: np.ndarray, imag: np.ndarray) -> None:
    # j tracks the bit-reversed counterpart of i, updated incrementally.
    n = int(real.size)
    j = 0
    for i in range(n - 1):
        if i < j:
            real[i], real[j] = real[j], real[i]
            imag[i], imag[j] = imag[j], imag[i]
        k = n // 2
        while k <= j:
            j -= k
            k //= 2
        j += k


def _twiddles(length: int) -> tuple[np.ndarray, np.ndarray]:
    half = length // 2
    angle = -2.0 * math.pi / length
    step_re = math.cos(angle)
    step_im = math.sin(angle)

    w_re = np.empty(half, dtype=np.float64)
    w_im = np.empty(half, dtype=np.float64)
    cur_re, cur_im = 1.0, 0.0
    for k in range(half):
        w_re[k] = cur_re
        w_im[k] = cur_im
        cur_re, cur_im = (
            cur_re * step_re - cur_im * step_im,
            cur_re * step_im + cur_im * step_re,
        )
    return w_re, w_im
