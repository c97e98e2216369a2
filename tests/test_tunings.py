import pytest

from pitch_tuner.errors import UnknownTuning
from pitch_tuner.note_types import TuningPreset
from pitch_tuner.note_utils import frequency_to_note, note_frequency
from pitch_tuner.tunings import (
    DROP_D_TUNING,
    OPEN_G_TUNING,
    STANDARD_TUNING,
    TUNING_PRESETS,
    get_tuning,
)


def test_catalog_order():
    assert [preset.key for preset in TUNING_PRESETS] == [
        "standard",
        "drop_d",
        "half_step_down",
        "open_g",
    ]


def test_standard_strings():
    assert [str(s) for s in STANDARD_TUNING] == ["E2", "A2", "D3", "G3", "B3", "E4"]
    assert [s.string_index for s in STANDARD_TUNING] == [6, 5, 4, 3, 2, 1]


@pytest.mark.parametrize("preset", TUNING_PRESETS, ids=lambda p: p.key)
def test_six_strings_low_to_high(preset):
    frequencies = [s.frequency_hz for s in preset]
    assert len(preset) == 6
    assert frequencies == sorted(frequencies)


@pytest.mark.parametrize("preset", TUNING_PRESETS, ids=lambda p: p.key)
def test_frequencies_are_equal_tempered(preset):
    for string in preset:
        assert string.frequency_hz == pytest.approx(
            note_frequency(string.label, string.octave), abs=0.01
        )
        note = frequency_to_note(string.frequency_hz)
        assert (note.name, note.octave) == (string.label, string.octave)


@pytest.mark.parametrize("name", ["drop_d", "Drop D", "drop d", DROP_D_TUNING])
def test_get_tuning(name):
    assert get_tuning(name) is DROP_D_TUNING


def test_unknown_tuning():
    with pytest.raises(UnknownTuning) as excinfo:
        get_tuning("nashville")

    assert isinstance(excinfo.value, KeyError)
    assert "nashville" in str(excinfo.value)


def test_find_string():
    assert OPEN_G_TUNING.find_string("G2").frequency_hz == 98.0
    # Bare labels return the first string with that pitch class
    assert OPEN_G_TUNING.find_string("D") is OPEN_G_TUNING.strings[0]
    assert OPEN_G_TUNING.find_string("E") is None


def test_preset_without_strings_is_rejected():
    with pytest.raises(ValueError):
        TuningPreset("custom", "Custom", ())
