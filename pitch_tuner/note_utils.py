"""Utility functions for working with musical notes and frequencies."""

import math
from numbers import Real
from typing import List

import numpy as np

from .errors import InvalidFrequency
from .logger import get_logger
from .note_types import Note

# Get logger for this module
logger = get_logger(__name__)

# Standard reference: A4 = 440Hz
A4_FREQ = 440.0
# C0 sits 4 octaves and 9 semitones below A4
C0_FREQ = A4_FREQ * 2 ** -4.75

NOTE_NAMES: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (towards +inf)."""
    return int(math.floor(value + 0.5))


def validate_frequency(frequency) -> float:
    """Return the frequency as a float, or raise InvalidFrequency.

    Booleans are rejected even though they are ints.
    """
    if isinstance(frequency, bool) or not isinstance(frequency, (Real, np.number)):
        raise InvalidFrequency(frequency)
    frequency = float(frequency)
    if not math.isfinite(frequency) or frequency <= 0:
        raise InvalidFrequency(frequency)
    return frequency


def semitones_from_c0(frequency: float) -> float:
    """Continuous semitone index above C0."""
    return 12 * math.log2(validate_frequency(frequency) / C0_FREQ)


def frequency_to_note(frequency: float) -> Note:
    """Convert a frequency to the nearest 12-TET note.

    Args:
        frequency: Frequency in Hz, must be finite and positive

    Returns:
        Note with its pitch-class name, octave and the cents offset of the
        frequency from the note's exact pitch

    Raises:
        InvalidFrequency: If frequency is not a finite positive number

    Examples:
        >>> frequency_to_note(440.0)
        Note(name='A', octave=4, cents_offset=0)
    """
    exact = semitones_from_c0(frequency)
    half_steps = round_half_up(exact)
    octave = half_steps // 12
    name = NOTE_NAMES[half_steps % 12]
    cents = round_half_up((exact - half_steps) * 100)

    logger.debug(f"{frequency:.2f}Hz -> {name}{octave} ({cents:+d} cents)")
    return Note(name=name, octave=octave, cents_offset=cents)


def get_note_name(frequency: float) -> str:
    """Convert frequency to note name in Scientific Pitch Notation (e.g. 'A4').

    Returns '---' for frequencies that cannot be mapped, so it is safe to use
    directly in display code.
    """
    try:
        return str(frequency_to_note(frequency))
    except InvalidFrequency:
        return "---"


def note_frequency(name: str, octave: int) -> float:
    """Exact 12-TET frequency of a note, the inverse of frequency_to_note.

    Args:
        name: Sharp pitch-class name (e.g. 'F#')
        octave: Octave number in SPN (C4 is middle C)

    Raises:
        ValueError: If the name is not one of NOTE_NAMES
    """
    if name not in NOTE_NAMES:
        raise ValueError(f"Unknown note name: {name!r}")
    half_steps = octave * 12 + NOTE_NAMES.index(name)
    return C0_FREQ * 2 ** (half_steps / 12)
