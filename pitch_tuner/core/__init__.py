"""Core components for the Pitch Tuner application."""

# Import interfaces for easier access
from .interfaces import (
    ICaptureSource,
    ICaptureStream,
    IScheduler,
    IToneOutput,
)

__all__ = ["ICaptureSource", "ICaptureStream", "IScheduler", "IToneOutput"]
