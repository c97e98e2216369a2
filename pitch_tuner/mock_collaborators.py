from typing import List, Optional, Tuple

from .core.interfaces import ICaptureSource, ICaptureStream, IToneOutput
from .errors import CaptureUnavailable
from .note_types import SampleFrame


class MockCaptureStream(ICaptureStream):
    """Stream that returns queued frames one at a time, then None."""

    def __init__(self, sample_rate: int, frame_size: int):
        self._sample_rate = sample_rate
        self._frame_size = frame_size
        self.frames: List[SampleFrame] = []
        self.reads = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_size(self) -> int:
        return self._frame_size

    def read_frame(self) -> Optional[SampleFrame]:
        self.reads += 1
        if self.frames:
            return self.frames.pop(0)
        return None


class MockCapture(ICaptureSource):
    """A mock capture source for unit tests. Frames are pushed in by hand."""

    def __init__(self, sample_rate: int = 44100, frame_size: int = 4096, available: bool = True):
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.available = available
        self.stream: Optional[MockCaptureStream] = None
        self.acquired = 0
        self.released = 0

    def acquire(self) -> MockCaptureStream:
        if not self.available:
            raise CaptureUnavailable("Microphone permission denied")
        self.acquired += 1
        self.stream = MockCaptureStream(self.sample_rate, self.frame_size)
        return self.stream

    def release(self, stream: MockCaptureStream) -> None:
        self.released += 1

    def push(self, frame: SampleFrame) -> None:
        self.stream.frames.append(frame)


class MockToneOutput(IToneOutput):
    """Records tone requests instead of playing them."""

    def __init__(self, fail_on_stop: bool = False):
        self.played: List[Tuple[float, object, float]] = []
        self.stopped: List[int] = []
        self.fail_on_stop = fail_on_stop

    def play_tone(self, frequency_hz, envelope, duration_ms) -> int:
        self.played.append((frequency_hz, envelope, duration_ms))
        return len(self.played)

    def stop(self, handle) -> None:
        if self.fail_on_stop:
            raise RuntimeError("output already closed")
        self.stopped.append(handle)
