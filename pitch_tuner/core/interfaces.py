"""Defines the interfaces between the tuner core and its collaborators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..note_types import SampleFrame


class ICaptureStream(ABC):
    """An acquired capture stream that hands out sample frames."""

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the stream in Hz."""
        pass

    @property
    @abstractmethod
    def frame_size(self) -> int:
        """Number of samples in each frame."""
        pass

    @abstractmethod
    def read_frame(self) -> Optional[SampleFrame]:
        """Return the next frame, or None when no frame is available."""
        pass


class ICaptureSource(ABC):
    """Interface for audio capture devices."""

    @abstractmethod
    def acquire(self) -> ICaptureStream:
        """Open the device. Raises CaptureUnavailable on failure."""
        pass

    @abstractmethod
    def release(self, stream: ICaptureStream) -> None:
        """Close a stream. Safe to call more than once."""
        pass


class IToneOutput(ABC):
    """Interface for reference tone playback."""

    @abstractmethod
    def play_tone(self, frequency_hz: float, envelope: Any, duration_ms: float) -> Any:
        """Start a sine tone and return a handle for stopping it."""
        pass

    @abstractmethod
    def stop(self, handle: Any) -> None:
        """Stop a tone. Safe to call more than once."""
        pass


class IScheduler(ABC):
    """Interface for the frame scheduler."""

    @abstractmethod
    def schedule_next(self, callback: Callable[[], None]) -> Any:
        """Run callback on the next tick and return a cancellable handle."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Any:
        """Run callback once delay_ms has passed and return a cancellable handle."""
        pass

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a scheduled callback. Safe to call more than once."""
        pass
