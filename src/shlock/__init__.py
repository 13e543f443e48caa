"""shlock: run a command under a named, host-wide exclusive lock."""

__version__ = "1.0.0"
