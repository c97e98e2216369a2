"""Detection session: owns the tuner state and drives the per-frame cycle.

Every change to the session goes through `transition`, a pure function from
(state, command) to the next state. The DetectionSession class wraps it with
the side effects: acquiring and releasing the capture stream, scheduling the
frame loop and stopping the reference tone.
"""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, Iterator, Optional, Type, Union

import numpy as np

from .core.interfaces import ICaptureSource, ICaptureStream, IScheduler, IToneOutput
from .errors import CaptureUnavailable
from .logger import get_logger
from .note_types import Mode, PitchEstimate, SampleFrame, SessionState, StringSpec, TuningPreset
from .note_utils import frequency_to_note, round_half_up
from .pitch_estimator import PitchEstimator
from .reference_tone import ReferenceToneController, ToneEnvelope
from .spectrum import SpectrumAnalyzer
from .string_matcher import StringMatcher
from .tunings import STANDARD_TUNING, get_tuning

logger = get_logger(__name__)


# Commands


@dataclass(frozen=True)
class StartListening:
    pass


@dataclass(frozen=True)
class StopListening:
    pass


@dataclass(frozen=True)
class SetMode:
    mode: Mode


@dataclass(frozen=True)
class SetSelectedString:
    string: Optional[StringSpec]


@dataclass(frozen=True)
class SetTuning:
    tuning: TuningPreset


@dataclass(frozen=True)
class ApplyFrame:
    """Results of analysing one frame, folded into the state."""

    estimate: PitchEstimate
    volume: float
    spectrum: np.ndarray
    min_frequency: float = 0.0
    max_frequency: float = 1000.0


Command = Union[StartListening, StopListening, SetMode, SetSelectedString, SetTuning, ApplyFrame]


def _start_listening(state: SessionState, command: StartListening) -> SessionState:
    return dataclasses.replace(state, listening=True)


def _stop_listening(state: SessionState, command: StopListening) -> SessionState:
    # Mode, tuning and the pinned string survive; only readings are cleared
    return dataclasses.replace(
        state,
        listening=False,
        frequency=0.0,
        note=None,
        deviation=0,
        closest_string=None,
        volume=0.0,
        spectrum=np.zeros(0, dtype=np.uint8),
    )


def _set_mode(state: SessionState, command: SetMode) -> SessionState:
    return dataclasses.replace(state, mode=Mode(command.mode))


def _set_selected_string(state: SessionState, command: SetSelectedString) -> SessionState:
    return dataclasses.replace(state, selected_string=command.string)


def _set_tuning(state: SessionState, command: SetTuning) -> SessionState:
    # A selection from the old tuning would give deviations against the wrong string
    return dataclasses.replace(
        state,
        tuning=command.tuning,
        selected_string=None,
        closest_string=None,
        deviation=0,
    )


def _apply_frame(state: SessionState, command: ApplyFrame) -> SessionState:
    if not state.listening:
        return state

    state = dataclasses.replace(state, volume=command.volume, spectrum=command.spectrum)

    estimate = command.estimate
    if not estimate.valid or not (
        command.min_frequency < estimate.frequency_hz < command.max_frequency
    ):
        # Keep showing the last reading instead of flickering to zero
        return state

    frequency = estimate.frequency_hz
    state = dataclasses.replace(
        state,
        frequency=round_half_up(frequency * 10) / 10,
        note=frequency_to_note(frequency),
    )

    if state.mode is Mode.AUTO:
        match = StringMatcher.match(frequency, state.tuning)
        return dataclasses.replace(
            state,
            closest_string=match.string,
            selected_string=match.string,
            deviation=round_half_up(match.cents_deviation),
        )

    if state.selected_string is not None:
        deviation = StringMatcher.match_against(frequency, state.selected_string)
        return dataclasses.replace(
            state,
            closest_string=state.selected_string,
            deviation=round_half_up(deviation),
        )

    return state


TRANSITIONS: Dict[Type, Callable[[SessionState, Any], SessionState]] = {
    StartListening: _start_listening,
    StopListening: _stop_listening,
    SetMode: _set_mode,
    SetSelectedString: _set_selected_string,
    SetTuning: _set_tuning,
    ApplyFrame: _apply_frame,
}


def transition(state: SessionState, command: Command) -> SessionState:
    """Return the state that results from applying a command.

    Raises:
        TypeError: If the command type has no transition
    """
    handler = TRANSITIONS.get(type(command))
    if handler is None:
        raise TypeError(f"Unknown session command: {command!r}")
    return handler(state, command)


class _CycleToken:
    """Marks one listening run; cancelled when listening stops."""

    __slots__ = ("cancelled",)

    def __init__(self):
        self.cancelled = False


class DetectionSession:
    """Runs pitch detection over frames from a capture source.

    Frames are processed one per scheduler tick, strictly in order. All
    commands and the frame cycle take the same lock, so a command never
    lands in the middle of a frame.
    """

    def __init__(
        self,
        capture: Optional[ICaptureSource],
        scheduler: IScheduler,
        tone_output: Optional[IToneOutput] = None,
        estimator: Optional[PitchEstimator] = None,
        spectrum_analyzer: Optional[SpectrumAnalyzer] = None,
        tuning: Union[str, TuningPreset] = STANDARD_TUNING,
        min_frequency: float = 0.0,
        max_frequency: float = 1000.0,
        volume_scale: float = 500.0,
        tone_envelope: Optional[ToneEnvelope] = None,
        tone_duration_ms: Optional[float] = None,
    ) -> None:
        """Initialize the session in the idle state.

        Args:
            capture: Audio capture source, or None for a session that only plays tones
            scheduler: Drives the per-frame cycle and tone timeouts
            tone_output: Reference tone playback, or None to disable playback
            estimator: Pitch estimator, or None for default thresholds
            spectrum_analyzer: Spectrum snapshot builder, or None for the default
            tuning: Initial tuning preset or its key (default: standard)
            min_frequency: Estimates at or below this are ignored (Hz)
            max_frequency: Estimates at or above this are ignored (Hz)
            volume_scale: Multiplier from frame RMS to the 0-100 volume level
        """
        if min_frequency >= max_frequency:
            raise ValueError("min_frequency must be below max_frequency")

        self._capture = capture
        self._scheduler = scheduler
        self._estimator = estimator or PitchEstimator()
        self._spectrum = spectrum_analyzer or SpectrumAnalyzer()
        self._min_frequency = float(min_frequency)
        self._max_frequency = float(max_frequency)
        self._volume_scale = float(volume_scale)

        self._lock = threading.RLock()
        self._state = SessionState(tuning=get_tuning(tuning))
        self._stream: Optional[ICaptureStream] = None
        self._token: Optional[_CycleToken] = None
        self._loop: Optional[Iterator[None]] = None
        self._handle: Any = None

        self.reference_tone = ReferenceToneController(
            self, tone_output, scheduler, envelope=tone_envelope, duration_ms=tone_duration_ms
        )

    @property
    def state(self) -> SessionState:
        """The latest state snapshot."""
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state.listening

    @property
    def lock(self) -> threading.RLock:
        """Serialises commands and frames; hold it to apply several commands as one."""
        return self._lock

    @property
    def stream(self) -> Optional[ICaptureStream]:
        """The acquired capture stream while listening, else None."""
        return self._stream

    def dispatch(self, command: Command) -> SessionState:
        """Apply a command to the state and return the new snapshot."""
        with self._lock:
            self._state = transition(self._state, command)
            return self._state

    # Lifecycle

    def start_listening(self) -> None:
        """Acquire the capture stream and start the frame loop.

        Raises:
            CaptureUnavailable: If the device cannot be opened; the session
                stays idle
        """
        with self._lock:
            if self._state.listening:
                logger.warning("Session is already listening")
                return

            if self._capture is None:
                raise CaptureUnavailable("No capture source configured")

            try:
                stream = self._capture.acquire()
            except CaptureUnavailable as e:
                logger.error(f"Could not start listening: {e}")
                raise

            self._stream = stream
            self._spectrum.reset()
            self.dispatch(StartListening())

            token = _CycleToken()
            self._token = token
            self._loop = self._frame_loop(token)
            self._handle = self._scheduler.schedule_next(partial(self._tick, token))
            logger.info(
                f"Listening at {stream.sample_rate}Hz, {stream.frame_size} samples per frame, "
                f"tuning '{self._state.tuning.name}'"
            )

    def stop_listening(self) -> None:
        """Stop the frame loop, release the capture stream and clear readings.

        Safe to call when not listening. Any frame callback that is still
        pending becomes a no-op.
        """
        with self._lock:
            if self._token is not None:
                self._token.cancelled = True
                self._token = None
            if self._handle is not None:
                self._scheduler.cancel(self._handle)
                self._handle = None
            self._loop = None

            stream, self._stream = self._stream, None
            if stream is not None:
                try:
                    self._capture.release(stream)
                except Exception as e:  # pylint: disable=broad-except
                    logger.error(f"Error releasing capture stream: {e}", exc_info=True)

            was_listening = self._state.listening
            self.dispatch(StopListening())
            self._spectrum.reset()
            self.reference_tone.stop()
            if was_listening:
                logger.info("Stopped listening")

    def _frame_loop(self, token: _CycleToken) -> Iterator[None]:
        """One iteration per scheduler tick, for as long as this run lasts.

        A frame that fails is logged and skipped.
        """
        while not token.cancelled and self._state.listening:
            try:
                frame = self._stream.read_frame() if self._stream is not None else None
                if frame is not None:
                    self.process_frame(frame)
            except Exception as e:  # pylint: disable=broad-except
                logger.error(f"Error processing frame: {e}", exc_info=True)
            yield

    def _tick(self, token: _CycleToken) -> None:
        with self._lock:
            if token.cancelled or token is not self._token or self._loop is None:
                return
            try:
                next(self._loop)
            except StopIteration:
                return
            if not token.cancelled:
                self._handle = self._scheduler.schedule_next(partial(self._tick, token))

    def process_frame(self, frame: SampleFrame) -> SessionState:
        """Run one estimation cycle on a frame and fold the result into the state.

        Frames that arrive while idle are ignored.
        """
        with self._lock:
            if not self._state.listening:
                return self._state

            volume = min(100.0, frame.rms * self._volume_scale)
            spectrum = self._spectrum.analyze(frame)
            estimate = self._estimator.estimate(frame)
            if estimate.valid:
                logger.debug(f"Frame pitch {estimate.frequency_hz:.2f}Hz, volume {volume:.1f}")

            return self.dispatch(
                ApplyFrame(
                    estimate=estimate,
                    volume=volume,
                    spectrum=spectrum,
                    min_frequency=self._min_frequency,
                    max_frequency=self._max_frequency,
                )
            )

    # Commands

    def set_mode(self, mode: Union[Mode, str]) -> None:
        """Switch between auto (nearest string) and manual (pinned string)."""
        state = self.dispatch(SetMode(Mode(mode)))
        logger.info(f"Mode set to {state.mode.value}")

    def set_selected_string(self, string: Optional[StringSpec]) -> None:
        """Pin a string for manual mode. It does not have to be in the current tuning."""
        self.dispatch(SetSelectedString(string))
        logger.debug(f"Selected string: {string}")

    def set_tuning(self, tuning: Union[str, TuningPreset]) -> None:
        """Replace the tuning preset; clears the selection and match readings.

        Raises:
            UnknownTuning: If a key is given that the catalog does not know
        """
        state = self.dispatch(SetTuning(get_tuning(tuning)))
        logger.info(f"Tuning set to '{state.tuning.name}'")

    def pin_string(self, string: StringSpec) -> None:
        """Switch to manual mode and select a string in one step.

        No frame is applied between the two changes.
        """
        with self._lock:
            self.dispatch(SetMode(Mode.MANUAL))
            self.dispatch(SetSelectedString(string))
        logger.info(f"Pinned string {string}")

    def play_reference_tone(self, string: StringSpec, duration_ms: Optional[float] = None) -> None:
        """Play a reference tone for a string; pins manual mode to it."""
        with self._lock:
            self.reference_tone.play(string, duration_ms)

    def stop_reference_tone(self) -> None:
        with self._lock:
            self.reference_tone.stop()
