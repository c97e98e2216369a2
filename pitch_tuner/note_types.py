"""Type definitions for the Pitch Tuner project."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple

import numpy as np


class Mode(str, Enum):
    """How the session picks the string it compares against."""

    AUTO = "auto"  # Continuously re-select the nearest string
    MANUAL = "manual"  # Compare against the pinned string only


@dataclass(frozen=True)
class SampleFrame:
    """One fixed-size block of normalized samples from the capture device."""

    samples: np.ndarray  # 1-D float32, roughly in [-1, 1]
    sample_rate: int  # Hz

    def __post_init__(self):
        if int(self.sample_rate) != self.sample_rate or self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be a positive integer, got {self.sample_rate}")
        samples = np.array(self.samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"Sample frame must be one-dimensional, got shape {samples.shape}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @property
    def size(self) -> int:
        return int(self.samples.size)

    @property
    def rms(self) -> float:
        """Root-mean-square level of the frame (0.0 for an empty frame)."""
        if self.samples.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(self.samples, dtype=np.float64))))


@dataclass(frozen=True)
class StringSpec:
    """A single string of a tuning preset."""

    label: str  # Pitch class, e.g. 'E'
    string_index: int  # 1 is the thinnest string
    frequency_hz: float  # Target frequency
    octave: int  # e.g. 2

    def __str__(self):
        return f"{self.label}{self.octave}"


@dataclass(frozen=True)
class TuningPreset:
    """A named, ordered set of target strings."""

    key: str
    name: str
    strings: Tuple[StringSpec, ...]

    def __post_init__(self):
        object.__setattr__(self, "strings", tuple(self.strings))
        if not self.strings:
            raise ValueError(f"Tuning preset '{self.name}' has no strings")

    def __iter__(self):
        return iter(self.strings)

    def __len__(self):
        return len(self.strings)

    def find_string(self, label: str) -> Optional[StringSpec]:
        """Look up a string by 'E2'-style name or bare label (first match wins)."""
        for string in self.strings:
            if label in (str(string), string.label):
                return string
        return None


@dataclass(frozen=True)
class PitchEstimate:
    """Result of running the pitch estimator on one frame."""

    frequency_hz: float
    valid: bool

    NO_PITCH: ClassVar["PitchEstimate"]

    def __bool__(self):
        return self.valid


PitchEstimate.NO_PITCH = PitchEstimate(frequency_hz=0.0, valid=False)


@dataclass(frozen=True)
class Note:
    """An equal-tempered note with the offset of the measured pitch from it."""

    name: str  # One of the 12 sharp pitch-class names
    octave: int
    cents_offset: int  # Roughly -50..+50

    def __str__(self):
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class MatchResult:
    """Nearest string for a frequency and how far off it is."""

    string: StringSpec
    cents_deviation: float  # Positive is sharp, negative is flat


def _empty_spectrum() -> np.ndarray:
    return np.zeros(0, dtype=np.uint8)


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of a detection session.

    A new snapshot replaces the previous one on every command and frame, so
    observers can hold on to one without it changing underneath them.
    """

    tuning: TuningPreset
    listening: bool = False
    mode: Mode = Mode.AUTO
    selected_string: Optional[StringSpec] = None
    closest_string: Optional[StringSpec] = None
    frequency: float = 0.0
    note: Optional[Note] = None
    deviation: int = 0
    volume: float = 0.0
    spectrum: np.ndarray = field(default_factory=_empty_spectrum, compare=False)

    @property
    def note_name(self) -> str:
        return str(self.note) if self.note is not None else ""
