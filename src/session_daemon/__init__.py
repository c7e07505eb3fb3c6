"""Session daemon: watches coding-assistant session files and streams their state."""

__version__ = "0.1.0"
