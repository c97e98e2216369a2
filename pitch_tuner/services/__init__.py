"""File and in-memory audio providers."""
