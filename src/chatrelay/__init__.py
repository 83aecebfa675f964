"""Chat relay between a game session and Discord, with spam throttling and dedup."""

__version__ = "0.1.0"
