import numpy as np
import pytest
import soundfile as sf

from pitch_tuner.errors import CaptureUnavailable
from pitch_tuner.pitch_estimator import PitchEstimator
from pitch_tuner.services.audio_providers import BufferedCapture, WavFileCapture
from pitch_tuner.tunings import STANDARD_TUNING

SAMPLE_RATE = 44100


def sine(frequency, seconds=0.5, amplitude=0.5, sample_rate=SAMPLE_RATE):
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t)


class TestBufferedCapture:
    def test_frames_cover_the_buffer(self):
        capture = BufferedCapture(np.arange(10), SAMPLE_RATE, frame_size=4)
        stream = capture.acquire()

        first = stream.read_frame()
        second = stream.read_frame()

        assert list(first.samples) == [0, 1, 2, 3]
        assert list(second.samples) == [4, 5, 6, 7]
        assert stream.read_frame() is None
        assert stream.exhausted

    def test_hop_size(self):
        stream = BufferedCapture(np.arange(10), SAMPLE_RATE, frame_size=4, hop_size=2).acquire()

        starts = []
        frame = stream.read_frame()
        while frame is not None:
            starts.append(int(frame.samples[0]))
            frame = stream.read_frame()

        assert starts == [0, 2, 4, 6]

    def test_loop(self):
        stream = BufferedCapture(np.arange(6), SAMPLE_RATE, frame_size=4, loop=True).acquire()

        stream.read_frame()
        wrapped = stream.read_frame()

        assert list(wrapped.samples) == [0, 1, 2, 3]
        assert not stream.exhausted

    def test_stereo_is_mixed_down(self):
        stereo = np.column_stack([np.full(8, 0.2), np.full(8, 0.4)])

        frame = BufferedCapture(stereo, SAMPLE_RATE, frame_size=8).acquire().read_frame()

        assert frame.samples == pytest.approx(np.full(8, 0.3))

    def test_gain(self):
        capture = BufferedCapture(np.full(4, 0.25), SAMPLE_RATE, frame_size=4, gain=2.0)

        assert capture.acquire().read_frame().samples == pytest.approx(np.full(4, 0.5))

    def test_too_short_for_one_frame(self):
        with pytest.raises(CaptureUnavailable):
            BufferedCapture(np.zeros(100), SAMPLE_RATE, frame_size=4096).acquire()

    def test_release_closes_stream(self):
        capture = BufferedCapture(np.zeros(16), SAMPLE_RATE, frame_size=4)
        stream = capture.acquire()

        capture.release(stream)

        assert stream.read_frame() is None
        assert stream.exhausted

    def test_stream_properties(self):
        stream = BufferedCapture(np.zeros(16), 22050, frame_size=4).acquire()

        assert stream.sample_rate == 22050
        assert stream.frame_size == 4


class TestWavFileCapture:
    @pytest.mark.parametrize("string", list(STANDARD_TUNING), ids=str)
    def test_open_strings(self, tmp_path, string):
        path = tmp_path / f"{string}.wav"
        sf.write(str(path), sine(string.frequency_hz), SAMPLE_RATE)

        stream = WavFileCapture(str(path)).acquire()
        estimate = PitchEstimator().estimate(stream.read_frame())

        assert estimate.frequency_hz == pytest.approx(string.frequency_hz, rel=0.02)

    def test_stereo_file(self, tmp_path):
        path = tmp_path / "stereo.wav"
        tone = sine(196.0)
        sf.write(str(path), np.column_stack([tone, tone]), SAMPLE_RATE)

        capture = WavFileCapture(str(path), frame_size=2048)
        frame = capture.acquire().read_frame()

        assert capture.sample_rate == SAMPLE_RATE
        assert capture.file_path == str(path)
        assert frame.size == 2048

    def test_missing_file(self, tmp_path):
        with pytest.raises(CaptureUnavailable):
            WavFileCapture(str(tmp_path / "missing.wav"))

    def test_not_audio(self, tmp_path):
        path = tmp_path / "notes.wav"
        path.write_text("not audio")

        with pytest.raises(CaptureUnavailable):
            WavFileCapture(str(path))
