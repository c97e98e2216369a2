"""Exceptions raised by the tuner core and its collaborators."""


class TunerError(Exception):
    """Base class for Pitch Tuner errors."""


class CaptureUnavailable(TunerError):
    """The audio capture device could not be acquired (permission or hardware)."""


class InvalidFrequency(TunerError, ValueError):
    """A frequency was not a finite, positive number."""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Frequency must be a finite positive number, got {frequency!r}")


class UnknownTuning(TunerError, KeyError):
    """No tuning preset is registered under the requested name."""

    def __str__(self):
        return f"Unknown tuning preset: {self.args[0]!r}"
