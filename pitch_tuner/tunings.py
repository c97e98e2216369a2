"""Catalog of guitar tuning presets.

Strings are listed from the thickest (string 6) to the thinnest (string 1),
which is also the order the string matcher walks them in.
"""

from typing import Dict, List, Union

from .errors import UnknownTuning
from .note_types import StringSpec, TuningPreset

STANDARD_TUNING = TuningPreset(
    key="standard",
    name="Standard",
    strings=(
        StringSpec("E", 6, 82.41, 2),
        StringSpec("A", 5, 110.0, 2),
        StringSpec("D", 4, 146.83, 3),
        StringSpec("G", 3, 196.0, 3),
        StringSpec("B", 2, 246.94, 3),
        StringSpec("E", 1, 329.63, 4),
    ),
)

DROP_D_TUNING = TuningPreset(
    key="drop_d",
    name="Drop D",
    strings=(
        StringSpec("D", 6, 73.42, 2),
        StringSpec("A", 5, 110.0, 2),
        StringSpec("D", 4, 146.83, 3),
        StringSpec("G", 3, 196.0, 3),
        StringSpec("B", 2, 246.94, 3),
        StringSpec("E", 1, 329.63, 4),
    ),
)

HALF_STEP_DOWN_TUNING = TuningPreset(
    key="half_step_down",
    name="Half Step Down",
    strings=(
        StringSpec("D#", 6, 77.78, 2),
        StringSpec("G#", 5, 103.83, 2),
        StringSpec("C#", 4, 138.59, 3),
        StringSpec("F#", 3, 185.0, 3),
        StringSpec("A#", 2, 233.08, 3),
        StringSpec("D#", 1, 311.13, 4),
    ),
)

OPEN_G_TUNING = TuningPreset(
    key="open_g",
    name="Open G",
    strings=(
        StringSpec("D", 6, 73.42, 2),
        StringSpec("G", 5, 98.0, 2),
        StringSpec("D", 4, 146.83, 3),
        StringSpec("G", 3, 196.0, 3),
        StringSpec("B", 2, 246.94, 3),
        StringSpec("D", 1, 293.66, 4),
    ),
)

TUNING_PRESETS: List[TuningPreset] = [
    STANDARD_TUNING,
    DROP_D_TUNING,
    HALF_STEP_DOWN_TUNING,
    OPEN_G_TUNING,
]

_PRESETS_BY_KEY: Dict[str, TuningPreset] = {preset.key: preset for preset in TUNING_PRESETS}


def get_tuning(name: Union[str, TuningPreset]) -> TuningPreset:
    """Resolve a preset by key ('drop_d') or display name ('Drop D').

    Presets are passed through unchanged, so callers can accept either.

    Raises:
        UnknownTuning: If nothing in the catalog matches
    """
    if isinstance(name, TuningPreset):
        return name
    if name in _PRESETS_BY_KEY:
        return _PRESETS_BY_KEY[name]
    for preset in TUNING_PRESETS:
        if preset.name.lower() == str(name).lower():
            return preset
    raise UnknownTuning(name)
