"""Application services for jam session playback and synchronization."""
