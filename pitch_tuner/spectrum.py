"""Byte-scaled magnitude spectrum snapshots for visualisation."""

from typing import ClassVar, Optional

import numpy as np

from .logger import get_logger
from .note_types import SampleFrame

logger = get_logger(__name__)


class SpectrumAnalyzer:
    """Turns sample frames into 0-255 magnitude spectra.

    Magnitudes are smoothed across frames and mapped from a decibel window
    onto a byte range, so the snapshot can be drawn directly as bar heights.
    """

    DEFAULT_SMOOTHING: ClassVar[float] = 0.8
    MIN_DECIBELS: ClassVar[float] = -100.0
    MAX_DECIBELS: ClassVar[float] = -30.0

    def __init__(
        self,
        smoothing: float = DEFAULT_SMOOTHING,
        min_decibels: float = MIN_DECIBELS,
        max_decibels: float = MAX_DECIBELS,
    ) -> None:
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")
        self._smoothing = smoothing
        self._min_db = min_decibels
        self._max_db = max_decibels
        self._previous: Optional[np.ndarray] = None

    def reset(self) -> None:
        """Forget the smoothing history."""
        self._previous = None

    def analyze(self, frame: SampleFrame) -> np.ndarray:
        """Return frame.size // 2 byte magnitudes, lowest frequency first."""
        n = frame.size
        if n < 2:
            return np.zeros(0, dtype=np.uint8)

        # Apply a window function to reduce spectral leakage
        window = np.blackman(n)
        fft = np.fft.rfft(frame.samples * window)
        magnitude = np.abs(fft[: n // 2]) / n

        if self._previous is not None and self._previous.shape == magnitude.shape:
            magnitude = self._smoothing * self._previous + (1.0 - self._smoothing) * magnitude
        self._previous = magnitude

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(magnitude)
        scaled = (decibels - self._min_db) * (255.0 / (self._max_db - self._min_db))
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)
