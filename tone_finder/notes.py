from __future__ import annotations

import math


NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

A4_HZ = 440.0
# Semitone index of A4 counting from C0 (4 * 12 + 9).
A4_INDEX = 57


def nearest_semitone(exact_index: float) -> int:
    # Ties go to the lower semitone so cents stay in (-50, 50].
    return int(math.ceil(exact_index - 0.5))


def semitone_index(frequency: float) -> float:
    if not math.isfinite(frequency) or frequency <= 0.0:
        raise ValueError(f"frequency must be positive and finite, got {frequency!r}")
    return A4_INDEX + 12.0 * math.log2(frequency / A4_HZ)


def frequency_to_note(frequency: float) -> tuple[str, int, float]:
    """
    Map a frequency to (note name, octave, cents off), equal temperament, A4 = 440 Hz.

    Indices below C0 are valid: Python's ``%`` and ``//`` follow the sign of
    the divisor, so a negative index still yields a pitch class in [0, 12)
    and a floored (negative) octave.
    """
    exact = semitone_index(frequency)
    nearest = nearest_semitone(exact)
    note = NOTE_NAMES[nearest % 12]
    octave = nearest // 12
    cents_off = (exact - nearest) * 100.0
    return note, int(octave), float(cents_off)


def note_to_frequency(note: str, octave: int, cents: float = 0.0) -> float:
    try:
        pitch_class = NOTE_NAMES.index(note)
    except ValueError:
        raise ValueError(f"unknown note name: {note!r}") from None
    index = int(octave) * 12 + pitch_class
    return float(A4_HZ * 2.0 ** ((index - A4_INDEX + cents / 100.0) / 12.0))
