from __future__ import annotations

import numpy as np
import pytest

from tone_finder.notes import NOTE_NAMES, frequency_to_note, nearest_semitone, note_to_frequency


@pytest.mark.parametrize(
    ("hz", "note", "octave"),
    [
        (440.0, "A", 4),
        (466.1638, "A#", 4),
        (220.0, "A", 3),
        (261.6256, "C", 4),
        (82.4069, "E", 2),
        (16.3516, "C", 0),
        (3951.066, "B", 7),
    ],
)
def test_equal_tempered_pitches_map_exactly(hz: float, note: str, octave: int) -> None:
    got_note, got_octave, cents = frequency_to_note(hz)
    assert got_note == note
    assert got_octave == octave
    assert abs(cents) < 0.01


def test_cents_sign_follows_detuning() -> None:
    _, _, sharp = frequency_to_note(445.0)
    _, _, flat = frequency_to_note(435.0)
    assert 19.0 < sharp < 20.0
    assert -20.0 < flat < -19.0


def test_quarter_tone_below_rounds_to_lower_octave_boundary() -> None:
    # 40 cents below C4 is still C4; 60 cents below is B3.
    assert frequency_to_note(note_to_frequency("C", 4, cents=-40.0))[:2] == ("C", 4)
    assert frequency_to_note(note_to_frequency("C", 4, cents=-60.0))[:2] == ("B", 3)


def test_frequencies_below_c0_use_floor_octave() -> None:
    # 15 Hz is ~49 cents flat of B-1; 8 Hz is ~38 cents flat of C-1.
    note, octave, cents = frequency_to_note(15.0)
    assert (note, octave) == ("B", -1)
    assert -50.0 < cents <= 50.0

    note, octave, _ = frequency_to_note(8.0)
    assert (note, octave) == ("C", -1)


def test_very_low_frequencies_stay_in_pitch_class_table() -> None:
    for hz in np.geomspace(0.01, 20.0, 200):
        note, octave, cents = frequency_to_note(float(hz))
        assert note in NOTE_NAMES
        assert octave < 1
        assert -50.0 < cents <= 50.0


def test_cents_range_across_audible_band() -> None:
    for hz in np.geomspace(20.0, 4000.0, 997):
        _, _, cents = frequency_to_note(float(hz))
        assert -50.0 < cents <= 50.0


@pytest.mark.parametrize(
    ("exact", "expected"),
    [
        (57.5, 57),
        (57.5000001, 58),
        (57.4999999, 57),
        (-0.5, -1),
        (-0.4999999, 0),
        (-1.5, -2),
        (-1.5000001, -2),
        (-1.4999999, -1),
    ],
)
def test_nearest_semitone_ties_go_down(exact: float, expected: int) -> None:
    assert nearest_semitone(exact) == expected


def test_note_to_frequency_reference() -> None:
    assert note_to_frequency("A", 4) == pytest.approx(440.0)
    assert note_to_frequency("A", 3) == pytest.approx(220.0)
    assert note_to_frequency("C", 0) == pytest.approx(16.3516, rel=1e-5)
    with pytest.raises(ValueError):
        note_to_frequency("H", 4)


@pytest.mark.parametrize("hz", [0.0, -440.0, float("nan"), float("inf")])
def test_invalid_frequency_raises(hz: float) -> None:
    with pytest.raises(ValueError):
        frequency_to_note(hz)
