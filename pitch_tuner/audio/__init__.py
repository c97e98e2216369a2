"""sounddevice-backed capture and playback (requires PortAudio)."""
