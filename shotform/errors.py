"""Exceptions raised at the edges of shotform (ingestion, clock, decoding)."""

from __future__ import annotations


class ShotFormError(Exception):
    """Base class for all shotform errors."""


class KeypointFormatError(ShotFormError, ValueError):
    """Pose input does not match the fixed joint layout."""


class TimestampOrderError(ShotFormError, ValueError):
    """A frame arrived with a timestamp not strictly after the previous one."""

    def __init__(self, t: float, last_t: float):
        super().__init__(f"timestamp {t!r} is not after previous frame at {last_t!r}")
        self.t      = t
        self.last_t = last_t


class AttemptDecodeError(ShotFormError, ValueError):
    """An exported attempt payload could not be decoded."""
