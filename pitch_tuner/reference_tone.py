"""Reference tone playback that pins the session to the played string."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import numpy as np

from .core.interfaces import IScheduler, IToneOutput
from .logger import get_logger
from .note_types import StringSpec

if TYPE_CHECKING:
    from .session import DetectionSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class ToneEnvelope:
    """Linear fade-in, sustain, linear fade-out gain curve."""

    peak: float = 0.1
    attack_ms: float = 100.0
    release_ms: float = 200.0

    def knots(self, duration_ms: float):
        """Breakpoints (times in ms, gains) of the piecewise-linear curve.

        For tones shorter than attack + release the fade-out starts as soon
        as the fade-in ends.
        """
        attack_end = min(self.attack_ms, duration_ms)
        release_start = max(attack_end, duration_ms - self.release_ms)
        times = [0.0, attack_end, release_start, float(duration_ms)]
        gains = [0.0, self.peak, self.peak, 0.0]
        return times, gains

    def gain_at(self, t_ms: float, duration_ms: float) -> float:
        times, gains = self.knots(duration_ms)
        return float(np.interp(t_ms, times, gains))

    def gains(self, duration_ms: float, sample_rate: int) -> np.ndarray:
        """Per-sample gain for a tone of the given length."""
        count = int(round(duration_ms * sample_rate / 1000.0))
        t_ms = np.arange(count, dtype=np.float64) * 1000.0 / sample_rate
        times, gains = self.knots(duration_ms)
        return np.interp(t_ms, times, gains)


def render_tone(
    frequency_hz: float, envelope: ToneEnvelope, duration_ms: float, sample_rate: int
) -> np.ndarray:
    """Synthesize an enveloped sine tone as float32 samples."""
    gains = envelope.gains(duration_ms, sample_rate)
    t = np.arange(gains.size, dtype=np.float64) / sample_rate
    return (np.sin(2 * np.pi * frequency_hz * t) * gains).astype(np.float32)


class ReferenceToneController:
    """Plays a timed reference tone for a string.

    Playing a tone always switches the session to manual mode pinned to that
    string, so what the player hears is what the needle compares against.
    """

    DEFAULT_DURATION_MS: ClassVar[float] = 3000.0

    def __init__(
        self,
        session: "DetectionSession",
        output: Optional[IToneOutput],
        scheduler: IScheduler,
        envelope: Optional[ToneEnvelope] = None,
        duration_ms: Optional[float] = None,
    ) -> None:
        self._session = session
        self._output = output
        self._scheduler = scheduler
        self._envelope = envelope or ToneEnvelope()
        self._default_duration_ms = float(duration_ms or self.DEFAULT_DURATION_MS)
        self._handle: Any = None
        self._auto_stop: Any = None
        self._string: Optional[StringSpec] = None

    @property
    def is_playing(self) -> bool:
        return self._handle is not None

    @property
    def current_string(self) -> Optional[StringSpec]:
        return self._string

    @property
    def envelope(self) -> ToneEnvelope:
        return self._envelope

    def play(self, string: StringSpec, duration_ms: Optional[float] = None) -> None:
        """Play the reference tone for a string and pin manual mode to it.

        Args:
            string: The string to sound; need not belong to the current tuning
            duration_ms: Tone length, including the fades (default 3000)

        Raises:
            ValueError: If duration_ms is not positive
        """
        duration_ms = float(duration_ms if duration_ms is not None else self._default_duration_ms)
        if duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms}")

        self.stop()

        if self._output is None:
            logger.warning("No tone output configured, pinning string without playing")
        else:
            self._handle = self._output.play_tone(string.frequency_hz, self._envelope, duration_ms)
            self._string = string
            self._auto_stop = self._scheduler.call_later(duration_ms, self._finish)
            logger.info(f"Playing reference tone {string} ({string.frequency_hz}Hz) for {duration_ms:.0f}ms")

        self._session.pin_string(string)

    def _finish(self) -> None:
        self._auto_stop = None
        self.stop()

    def stop(self) -> None:
        """Stop the current tone. A no-op when nothing is playing."""
        if self._auto_stop is not None:
            self._scheduler.cancel(self._auto_stop)
            self._auto_stop = None

        handle, self._handle = self._handle, None
        self._string = None
        if handle is None or self._output is None:
            return
        try:
            self._output.stop(handle)
            logger.debug("Reference tone stopped")
        except Exception as e:  # pylint: disable=broad-except
            logger.warning(f"Error stopping reference tone: {e}")
