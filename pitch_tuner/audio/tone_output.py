"""Reference tone playback through the default output device."""

from __future__ import annotations
import sounddevice as sd
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..logger import get_logger
from ..core.interfaces import IToneOutput
from ..reference_tone import ToneEnvelope, render_tone

logger = get_logger(__name__)


@dataclass
class ToneHandle:
    frequency_hz: float
    duration_ms: float
    active: bool = True


class SoundDeviceToneOutput(IToneOutput):
    """Plays enveloped sine tones with sounddevice."""

    SAMPLE_RATE: ClassVar[int] = 44100

    def __init__(self, device_id: Optional[int] = None, sample_rate: Optional[int] = None):
        self._device_id = device_id
        self._sample_rate = int(sample_rate or self.SAMPLE_RATE)
        self._current: Optional[ToneHandle] = None

    def play_tone(
        self, frequency_hz: float, envelope: ToneEnvelope, duration_ms: float
    ) -> ToneHandle:
        samples = render_tone(frequency_hz, envelope, duration_ms, self._sample_rate)
        # sd.play replaces whatever is playing; the buffer ends on its own
        sd.play(samples, samplerate=self._sample_rate, device=self._device_id)
        if self._current is not None:
            self._current.active = False
        self._current = ToneHandle(frequency_hz, duration_ms)
        return self._current

    def stop(self, handle: ToneHandle) -> None:
        if handle is None or not handle.active:
            return
        handle.active = False
        if handle is self._current:
            sd.stop()
            self._current = None
