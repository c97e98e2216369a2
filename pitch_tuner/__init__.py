"""Pitch Tuner: instrument tuner pitch detection."""

from .errors import CaptureUnavailable, InvalidFrequency, TunerError, UnknownTuning
from .note_types import (
    MatchResult,
    Mode,
    Note,
    PitchEstimate,
    SampleFrame,
    SessionState,
    StringSpec,
    TuningPreset,
)
from .note_utils import frequency_to_note, get_note_name
from .pitch_estimator import PitchEstimator, estimate_pitch
from .reference_tone import ReferenceToneController, ToneEnvelope
from .session import DetectionSession
from .string_matcher import StringMatcher
from .tunings import STANDARD_TUNING, TUNING_PRESETS, get_tuning

__all__ = [
    "CaptureUnavailable",
    "DetectionSession",
    "InvalidFrequency",
    "MatchResult",
    "Mode",
    "Note",
    "PitchEstimate",
    "PitchEstimator",
    "ReferenceToneController",
    "STANDARD_TUNING",
    "SampleFrame",
    "SessionState",
    "StringMatcher",
    "StringSpec",
    "TUNING_PRESETS",
    "ToneEnvelope",
    "TunerError",
    "TuningPreset",
    "UnknownTuning",
    "estimate_pitch",
    "frequency_to_note",
    "get_note_name",
    "get_tuning",
]
