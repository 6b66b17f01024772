"""Collect hardware and OS facts from remote Windows hosts and upsert them into SQL."""

__version__ = "0.1.0"
