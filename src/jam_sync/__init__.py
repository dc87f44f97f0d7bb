"""Synchronized group playback ("jam sessions") for a social music platform."""

__version__ = "0.1.0"
