"""
Check that every package module imports cleanly.

The pitch_tuner.audio modules load PortAudio through sounddevice, so they
are skipped here; they are only imported when live capture or playback is
requested.
"""

import importlib
import pkgutil

import pytest

import pitch_tuner

SKIPPED_PACKAGES = ("pitch_tuner.audio",)


def find_modules():
    """List the dotted names of all modules under pitch_tuner."""
    modules = []
    for info in pkgutil.walk_packages(pitch_tuner.__path__, prefix="pitch_tuner."):
        if info.name.startswith(SKIPPED_PACKAGES):
            continue
        modules.append(info.name)
    return modules


@pytest.mark.parametrize("module_name", find_modules())
def test_module_imports(module_name):
    assert importlib.import_module(module_name) is not None


def test_public_names():
    for name in pitch_tuner.__all__:
        assert hasattr(pitch_tuner, name), name
