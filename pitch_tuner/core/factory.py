"""Factory for creating Pitch Tuner components."""

from typing import Any, Optional

from ..logger import get_logger
from ..pitch_estimator import PitchEstimator
from ..reference_tone import ToneEnvelope
from ..services.audio_providers import WavFileCapture
from ..session import DetectionSession
from .config import ConfigManager
from .interfaces import ICaptureSource, IScheduler, IToneOutput
from .scheduler import FrameScheduler

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating Pitch Tuner components from configuration."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

    def create_pitch_estimator(self, **kwargs) -> PitchEstimator:
        """Create a pitch estimator.

        Args:
            **kwargs: Overrides for the 'pitch_estimator' configuration

        Returns:
            Pitch estimator instance
        """
        config = self.config_manager.get_config("pitch_estimator")
        config.update(kwargs)
        return PitchEstimator(**config)

    def create_tone_envelope(self) -> ToneEnvelope:
        config = self.config_manager.get_config("reference_tone")
        return ToneEnvelope(
            peak=config["peak"],
            attack_ms=config["attack_ms"],
            release_ms=config["release_ms"],
        )

    def create_live_capture(self, **kwargs) -> ICaptureSource:
        """Create a microphone capture source.

        sounddevice is imported here so that file analysis and tests work
        on machines without PortAudio.
        """
        from ..audio.audio_input import SoundDeviceCapture

        config = self.config_manager.get_config("audio_input")
        config.update(kwargs)
        instance = SoundDeviceCapture(**config)
        logger.info("Created live audio capture")
        return instance

    def create_file_capture(self, file_path: str, **kwargs) -> ICaptureSource:
        config = self.config_manager.get_config("audio_input")
        kwargs.setdefault("frame_size", config["frame_size"])
        instance = WavFileCapture(file_path, **kwargs)
        logger.info(f"Created file capture for {file_path}")
        return instance

    def create_tone_output(self, **kwargs) -> IToneOutput:
        from ..audio.tone_output import SoundDeviceToneOutput

        config = self.config_manager.get_config("reference_tone")
        kwargs.setdefault("sample_rate", config["sample_rate"])
        return SoundDeviceToneOutput(**kwargs)

    def create_session(
        self,
        capture: Optional[ICaptureSource],
        scheduler: Optional[IScheduler] = None,
        tone_output: Optional[IToneOutput] = None,
        **kwargs: Any,
    ) -> DetectionSession:
        """Create a detection session wired to the given collaborators.

        Args:
            capture: Capture source to listen to, or None for a tone-only session
            scheduler: Frame scheduler, or None for a FrameScheduler
            tone_output: Tone output, or None to disable reference tones
            **kwargs: Overrides for the 'session' configuration

        Returns:
            Detection session instance
        """
        config = self.config_manager.get_config("session")
        config.update(kwargs)
        tuning = config.pop("default_tuning", "standard")
        config.setdefault("tuning", tuning)

        instance = DetectionSession(
            capture=capture,
            scheduler=scheduler or FrameScheduler(),
            tone_output=tone_output,
            estimator=self.create_pitch_estimator(),
            tone_envelope=self.create_tone_envelope(),
            tone_duration_ms=self.config_manager.get_config("reference_tone")["duration_ms"],
            **config,
        )
        logger.info("Created detection session")
        return instance
