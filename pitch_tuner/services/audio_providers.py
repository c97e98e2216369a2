import soundfile as sf
import numpy as np
from typing import Optional

from ..core.interfaces import ICaptureSource, ICaptureStream
from ..errors import CaptureUnavailable
from ..logger import get_logger
from ..note_types import SampleFrame

logger = get_logger(__name__)


class BufferedCaptureStream(ICaptureStream):
    """Hands out fixed-size windows over an in-memory sample buffer."""

    def __init__(
        self,
        samples: np.ndarray,
        sample_rate: int,
        frame_size: int,
        hop_size: Optional[int] = None,
        loop: bool = False,
    ):
        self._samples = samples
        self._sample_rate = int(sample_rate)
        self._frame_size = int(frame_size)
        self._hop_size = int(hop_size or frame_size)
        self._loop = loop
        self._position = 0
        self.closed = False

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def exhausted(self) -> bool:
        """True once every full frame has been read (never, when looping)."""
        if self.closed:
            return True
        if self._loop:
            return False
        return self._position + self._frame_size > self._samples.size

    def read_frame(self) -> Optional[SampleFrame]:
        if self.closed:
            return None

        end = self._position + self._frame_size
        if end > self._samples.size:
            if not self._loop or self._samples.size < self._frame_size:
                return None
            self._position = 0
            end = self._frame_size

        frame = SampleFrame(self._samples[self._position : end], self._sample_rate)
        self._position += self._hop_size
        return frame


class BufferedCapture(ICaptureSource):
    """Provides frames from a sample array, e.g. a synthesized test signal."""

    def __init__(
        self,
        samples,
        sample_rate: int,
        frame_size: int = 4096,
        hop_size: Optional[int] = None,
        loop: bool = False,
        gain: float = 1.0,
    ):
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim > 1:
            # Mix down to mono
            samples = samples.mean(axis=1)
        if gain != 1.0:
            samples = samples * gain
        self._samples = samples.astype(np.float32)
        self._sample_rate = int(sample_rate)
        self._frame_size = int(frame_size)
        self._hop_size = hop_size
        self._loop = loop

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def acquire(self) -> BufferedCaptureStream:
        if self._samples.size < self._frame_size:
            raise CaptureUnavailable(
                f"Need at least {self._frame_size} samples, got {self._samples.size}"
            )
        return BufferedCaptureStream(
            self._samples, self._sample_rate, self._frame_size, self._hop_size, self._loop
        )

    def release(self, stream: BufferedCaptureStream) -> None:
        stream.closed = True


class WavFileCapture(BufferedCapture):
    """Provides frames by reading from a WAV (or any libsndfile) file."""

    def __init__(
        self,
        file_path: str,
        frame_size: int = 4096,
        hop_size: Optional[int] = None,
        loop: bool = False,
        gain: float = 1.0,
    ):
        self._file_path = file_path
        try:
            data, sample_rate = sf.read(file_path, dtype="float32", always_2d=True)
        except (RuntimeError, OSError) as e:
            # soundfile raises LibsndfileError (a RuntimeError) for unreadable files
            raise CaptureUnavailable(f"Cannot read audio file {file_path}: {e}") from e

        logger.info(
            f"Loaded {file_path}: {data.shape[0]} frames, {data.shape[1]} channel(s), {sample_rate}Hz"
        )
        super().__init__(data, sample_rate, frame_size, hop_size, loop, gain)

    @property
    def file_path(self) -> str:
        return self._file_path
