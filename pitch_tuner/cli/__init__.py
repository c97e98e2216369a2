"""Command-line interface for Pitch Tuner."""
