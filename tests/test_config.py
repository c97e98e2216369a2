import json

import pytest

from pitch_tuner.core.config import DEFAULT_CONFIGS, ConfigManager
from pitch_tuner.core.factory import ComponentFactory
from pitch_tuner.core.scheduler import FrameScheduler
from pitch_tuner.mock_collaborators import MockCapture
from pitch_tuner.tunings import DROP_D_TUNING


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(str(tmp_path))


class TestConfigManager:
    def test_writes_defaults(self, config_manager, tmp_path):
        for name, defaults in DEFAULT_CONFIGS.items():
            saved = json.loads((tmp_path / f"{name}.json").read_text())
            assert saved == defaults
            assert config_manager.get_config(name) == defaults

    def test_get_config_returns_copy(self, config_manager):
        config = config_manager.get_config("session")
        config["volume_scale"] = 1.0

        assert config_manager.get_config("session")["volume_scale"] == 500.0

    def test_unknown_config_is_empty(self, config_manager):
        assert config_manager.get_config("visualizer") == {}

    def test_update_persists(self, config_manager, tmp_path):
        assert config_manager.update_config("pitch_estimator", {"peak_tolerance": 0.0})

        reloaded = ConfigManager(str(tmp_path))
        assert reloaded.get_config("pitch_estimator")["peak_tolerance"] == 0.0

    def test_update_unknown(self, config_manager):
        assert not config_manager.update_config("visualizer", {"fps": 30})

    def test_reset(self, config_manager):
        config_manager.update_config("session", {"default_tuning": "open_g"})

        assert config_manager.reset_config("session")
        assert config_manager.get_config("session") == DEFAULT_CONFIGS["session"]

    def test_missing_keys_are_filled(self, tmp_path):
        (tmp_path / "audio_input.json").write_text(json.dumps({"frame_size": 2048}))

        config = ConfigManager(str(tmp_path)).get_config("audio_input")

        assert config["frame_size"] == 2048
        assert config["sample_rate"] == 44100

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_unreadable_file_falls_back_to_defaults(self, tmp_path, content):
        (tmp_path / "session.json").write_text(content)

        config = ConfigManager(str(tmp_path)).get_config("session")

        assert config == DEFAULT_CONFIGS["session"]


class TestComponentFactory:
    def test_pitch_estimator_from_config(self, config_manager):
        config_manager.update_config("pitch_estimator", {"acceptance_threshold": 0.95})
        factory = ComponentFactory(config_manager)

        estimator = factory.create_pitch_estimator()

        assert estimator.acceptance_threshold == 0.95
        assert estimator.silence_threshold == 0.01

    def test_pitch_estimator_overrides(self, config_manager):
        estimator = ComponentFactory(config_manager).create_pitch_estimator(peak_tolerance=0)

        assert estimator.peak_tolerance == 0.0

    def test_tone_envelope(self, config_manager):
        config_manager.update_config("reference_tone", {"peak": 0.2})

        envelope = ComponentFactory(config_manager).create_tone_envelope()

        assert envelope.peak == 0.2
        assert envelope.attack_ms == 100
        assert envelope.release_ms == 200

    def test_session_uses_default_tuning(self, config_manager):
        config_manager.update_config("session", {"default_tuning": "drop_d"})
        factory = ComponentFactory(config_manager)

        session = factory.create_session(MockCapture(), FrameScheduler())

        assert session.state.tuning is DROP_D_TUNING
        assert not session.is_listening

    def test_session_tuning_argument_wins(self, config_manager):
        session = ComponentFactory(config_manager).create_session(
            MockCapture(), FrameScheduler(), tuning="drop_d"
        )

        assert session.state.tuning is DROP_D_TUNING
