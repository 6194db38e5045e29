"""Periodic Reincarnation - configuration for restarting failed jobs."""

__version__ = "1.0.0"
