import math

from .errors import InvalidFrequency
from .logger import get_logger
from .note_types import MatchResult, StringSpec, TuningPreset
from .note_utils import validate_frequency

# Get logger for this module
logger = get_logger(__name__)


def cents_between(frequency: float, reference: float) -> float:
    """Signed distance in cents from reference to frequency (positive is sharp)."""
    frequency = validate_frequency(frequency)
    reference = validate_frequency(reference)
    return 1200 * math.log2(frequency / reference)


class StringMatcher:
    """
    Encapsulates logic for comparing a detected frequency to the strings of
    a tuning, either picking the nearest string or measuring against a
    pinned one.
    """

    @staticmethod
    def nearest_string(frequency: float, preset: TuningPreset) -> StringSpec:
        """
        Find the string whose target frequency is closest in Hz.

        Ties go to the string that comes first in the preset.
        """
        closest = preset.strings[0]
        min_diff = abs(frequency - closest.frequency_hz)
        for string in preset.strings[1:]:
            diff = abs(frequency - string.frequency_hz)
            if diff < min_diff:
                min_diff = diff
                closest = string
        return closest

    @classmethod
    def match(cls, frequency: float, preset: TuningPreset) -> MatchResult:
        """
        Match a frequency against every string of a tuning preset.

        Args:
            frequency: The detected frequency in Hz
            preset: The tuning to search
        Returns:
            MatchResult: The nearest string and the signed cents deviation from it
        """
        frequency = validate_frequency(frequency)
        closest = cls.nearest_string(frequency, preset)
        deviation = cents_between(frequency, closest.frequency_hz)
        logger.debug(
            f"{frequency:.2f}Hz nearest to {closest} ({closest.frequency_hz}Hz) "
            f"in '{preset.name}': {deviation:+.1f} cents"
        )
        return MatchResult(string=closest, cents_deviation=deviation)

    @staticmethod
    def match_against(frequency: float, pinned: StringSpec) -> float:
        """Cents deviation of a frequency from a pinned string, without searching."""
        if pinned is None:
            raise ValueError("A pinned string is required")
        try:
            return cents_between(frequency, pinned.frequency_hz)
        except InvalidFrequency:
            logger.warning(f"Cannot compare {frequency!r}Hz against {pinned}")
            raise
