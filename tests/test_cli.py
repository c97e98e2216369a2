import numpy as np
import pytest
import soundfile as sf

from pitch_tuner.cli import main as cli
from pitch_tuner.core.factory import ComponentFactory
from pitch_tuner.mock_collaborators import MockCapture, MockToneOutput
from pitch_tuner.note_types import SessionState
from pitch_tuner.tunings import STANDARD_TUNING

SAMPLE_RATE = 44100


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)


@pytest.fixture
def a_string_wav(tmp_path):
    t = np.arange(SAMPLE_RATE) / SAMPLE_RATE
    path = tmp_path / "a_string.wav"
    sf.write(str(path), 0.5 * np.sin(2 * np.pi * 110.0 * t), SAMPLE_RATE)
    return str(path)


def run(tmp_path, *args):
    return cli.main(["--config-dir", str(tmp_path / "config"), *args])


def test_presets(tmp_path, capsys):
    assert run(tmp_path, "presets") == 0

    out = capsys.readouterr().out
    assert "standard" in out
    assert "Drop D" in out
    assert "D#2 G#2 C#3 F#3 A#3 D#4" in out


def test_analyze(tmp_path, capsys, a_string_wav):
    assert run(tmp_path, "analyze", a_string_wav) == 0

    out = capsys.readouterr().out
    assert "A2" in out
    assert "110.0Hz" in out
    assert "+0 cents" in out


def test_analyze_against_pinned_string(tmp_path, capsys, a_string_wav):
    assert run(tmp_path, "analyze", a_string_wav, "--string", "E2") == 0

    out = capsys.readouterr().out
    assert "[manual]" in out
    assert "target E2" in out


def test_analyze_unknown_string(tmp_path, capsys, a_string_wav):
    assert run(tmp_path, "analyze", a_string_wav, "--string", "C5") == 1


def test_analyze_missing_file(tmp_path, capsys):
    assert run(tmp_path, "analyze", str(tmp_path / "missing.wav")) == 1

    assert "missing.wav" in capsys.readouterr().err


def test_unknown_tuning(tmp_path, capsys, a_string_wav):
    assert run(tmp_path, "analyze", a_string_wav, "--tuning", "banjo") == 1

    assert "banjo" in capsys.readouterr().err


def test_no_command(tmp_path, capsys):
    assert run(tmp_path) == 1


def test_format_state_while_waiting():
    line = cli.format_state(SessionState(tuning=STANDARD_TUNING, listening=True))

    assert "listening" in line


@pytest.mark.parametrize(
    "extra, expected", [((), {}), (("--device", "3"), {"device_id": 3})], ids=["config", "flag"]
)
def test_listen_device_only_overrides_config_when_given(tmp_path, monkeypatch, extra, expected):
    requested = []

    def fake_live_capture(self, **kwargs):
        requested.append(kwargs)
        return MockCapture(available=False)

    monkeypatch.setattr(ComponentFactory, "create_live_capture", fake_live_capture)

    assert run(tmp_path, "listen", *extra) == 1
    assert requested == [expected]


def test_tone_does_not_open_the_microphone(tmp_path, monkeypatch, capsys):
    output = MockToneOutput()

    def no_live_capture(self, **kwargs):
        raise AssertionError("tone must not open a capture device")

    monkeypatch.setattr(ComponentFactory, "create_live_capture", no_live_capture)
    monkeypatch.setattr(ComponentFactory, "create_tone_output", lambda self, **kwargs: output)

    assert run(tmp_path, "tone", "G3", "--duration-ms", "10") == 0

    assert [played[0] for played in output.played] == [196.0]
    assert output.stopped == [1]
    assert "Playing G3" in capsys.readouterr().out
