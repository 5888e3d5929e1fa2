"""Tempo (bpm) estimation from raw audio samples.

Energy envelope extraction followed by a randomized autodifference scan over
candidate beat intervals.
"""

from .config import EstimatorConfig
from .errors import AudioReadError, EmptyInput, InvalidConfig, InvalidInput, SimpleBpmError
from .estimator import SimpleEstimator

__all__ = [
    "EstimatorConfig",
    "SimpleEstimator",
    "SimpleBpmError",
    "InvalidConfig",
    "EmptyInput",
    "InvalidInput",
    "AudioReadError",
    "config",
    "units",
    "envelope",
    "scorer",
    "search",
    "estimator",
    "audio",
    "bench",
    "cli",
    "service",
]

__version__ = "0.1.0"
