"""Live audio capture for the tuner."""

from __future__ import annotations
import threading
import numpy as np
import sounddevice as sd
from typing import Optional, ClassVar

from ..logger import get_logger
from ..core.interfaces import ICaptureSource, ICaptureStream
from ..errors import CaptureUnavailable
from ..note_types import SampleFrame

logger = get_logger(__name__)


class SoundDeviceStream(ICaptureStream):
    """An open input stream that keeps the most recent frame_size samples.

    Like an analyser node, read_frame() always returns the latest window, so
    a slow frame loop skips audio instead of falling behind.
    """

    def __init__(self, sample_rate: int, frame_size: int) -> None:
        self._sample_rate = sample_rate
        self._frame_size = frame_size
        self._buffer = np.zeros(frame_size, dtype=np.float32)
        self._filled = 0
        self._lock = threading.Lock()
        self._stream: Optional[sd.InputStream] = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_size(self) -> int:
        return self._frame_size

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info,
        status: sd.CallbackFlags,
    ) -> None:
        """Callback for processing audio data from the input stream.

        Note:
            This is called from the PortAudio thread, so it only copies the
            samples into the rolling buffer.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        # Extract mono audio data (take first channel if multi-channel)
        audio_data = indata[:, 0] if indata.ndim > 1 else indata
        audio_data = audio_data[-self._frame_size :]
        count = audio_data.size
        if count == 0:
            return

        with self._lock:
            self._buffer = np.roll(self._buffer, -count)
            self._buffer[-count:] = audio_data
            self._filled = min(self._frame_size, self._filled + count)

    def read_frame(self) -> Optional[SampleFrame]:
        with self._lock:
            if self._filled < self._frame_size:
                return None
            samples = self._buffer.copy()
        return SampleFrame(samples, self._sample_rate)


class SoundDeviceCapture(ICaptureSource):
    """Audio capture using the sounddevice library."""

    # Audio configuration
    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    FRAME_SIZE: ClassVar[int] = 4096  # Samples per analysis frame
    BLOCK_SIZE: ClassVar[int] = 1024  # Samples per PortAudio callback

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frame_size: Optional[int] = None,
        block_size: Optional[int] = None,
    ) -> None:
        """Initialize the capture source. The device is not opened until acquire().

        Args:
            device_id: Audio input device ID, or None for the default input
            sample_rate: Sample rate in Hz, or None for default (44100)
            frame_size: Samples per analysis frame, or None for default (4096)
            block_size: Samples per device callback, or None for default (1024)
        """
        self._device_id = device_id
        self._sample_rate = int(sample_rate or self.SAMPLE_RATE)
        self._frame_size = int(frame_size or self.FRAME_SIZE)
        self._block_size = int(block_size or self.BLOCK_SIZE)

    def acquire(self) -> SoundDeviceStream:
        """Open the input stream.

        Raises:
            CaptureUnavailable: If the device cannot be opened
        """
        stream = SoundDeviceStream(self._sample_rate, self._frame_size)
        try:
            sd.check_input_settings(
                device=self._device_id, samplerate=self._sample_rate, channels=1
            )
            stream._stream = sd.InputStream(
                device=self._device_id,
                samplerate=self._sample_rate,
                blocksize=self._block_size,
                channels=1,
                dtype="float32",
                callback=stream._audio_callback,
            )
            stream._stream.start()
        except Exception as e:
            logger.error(f"Failed to open audio input: {e}")
            if stream._stream is not None:
                stream._stream.close()
                stream._stream = None
            raise CaptureUnavailable(str(e)) from e

        logger.info(
            f"Audio input started: device={self._device_id if self._device_id is not None else 'default'}, "
            f"rate={self._sample_rate}Hz, frame={self._frame_size}"
        )
        return stream

    def release(self, stream: SoundDeviceStream) -> None:
        """Stop and close the stream. Does nothing if it is already closed."""
        if stream._stream is None:
            return

        try:
            if stream._stream.active:
                stream._stream.stop()
            stream._stream.close()
            logger.info("Audio input stopped")
        except Exception as e:
            logger.error(f"Error stopping audio input: {e}")
        finally:
            stream._stream = None
