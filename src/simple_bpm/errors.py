"""Exception hierarchy for tempo estimation."""

from __future__ import annotations


class SimpleBpmError(Exception):
    """Base class for all errors raised by simple_bpm."""


class InvalidConfig(SimpleBpmError, ValueError):
    """An estimator configuration violates its invariants."""


class EmptyInput(SimpleBpmError, ValueError):
    """The sample stream produced an empty energy envelope."""


class AudioReadError(SimpleBpmError):
    """An audio file could not be read or converted to mono samples."""


class InvalidInput(SimpleBpmError, ValueError):
    """The sample stream is not a finite mono sequence."""
