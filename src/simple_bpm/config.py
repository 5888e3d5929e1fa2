"""Estimator configuration and accuracy presets."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, fields
from dataclasses import replace as _replace

from .errors import InvalidConfig
from .units import bpm_to_interval, interval_to_bpm

# stride, steps, samples_per_candidate
# Measured on a 206 bpm reference track:
#   level  mean bpm  mean sq err  err of mean (%)  mean time (ms)
#   0      207.89    37.51        1.41             83.26
#   1      206.91    16.64        0.93             171.10
#   2      206.14     4.98        0.55             328.31
ACCURACY_PRESETS: dict[int, tuple[int, int, int]] = {
    0: (2048, 800, 2048),
    1: (128, 1600, 2048),
    2: (256, 800, 8192),
}


@dataclass(frozen=True)
class EstimatorConfig:
    lower_bpm: float = 50.0
    upper_bpm: float = 450.0
    stride: int = 64  # raw samples per envelope sample
    sample_rate: float = 44100.0  # Hz
    steps: int = 800  # candidate intervals
    samples_per_candidate: int = 1024  # random midpoints per candidate

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidConfig(f"{f.name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidConfig(f"{f.name} must be finite, got {value!r}")
        for name in ("stride", "steps", "samples_per_candidate"):
            value = getattr(self, name)
            if int(value) != value:
                raise InvalidConfig(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidConfig(f"{name} must be >= 1, got {value!r}")
            object.__setattr__(self, name, int(value))
        if self.lower_bpm <= 0 or self.upper_bpm <= 0:
            raise InvalidConfig(
                f"bpm bounds must be positive, got [{self.lower_bpm}, {self.upper_bpm}]"
            )
        if self.lower_bpm >= self.upper_bpm:
            raise InvalidConfig(
                f"lower_bpm ({self.lower_bpm}) must be below upper_bpm ({self.upper_bpm})"
            )
        if self.sample_rate <= 0:
            raise InvalidConfig(f"sample_rate must be positive, got {self.sample_rate}")

    @classmethod
    def with_settings(
        cls, stride: int, steps: int, samples_per_candidate: int
    ) -> "EstimatorConfig":
        """Default bpm range and sample rate with custom search resolution."""
        return cls(stride=stride, steps=steps, samples_per_candidate=samples_per_candidate)

    @classmethod
    def with_accuracy(cls, level: int) -> "EstimatorConfig":
        """Pick a preset; higher levels are slower and more accurate.

        Levels 0/1/2 roughly correspond to low/medium/high accuracy. Any other
        level falls back to the default configuration.
        """
        preset = ACCURACY_PRESETS.get(level)
        if preset is None:
            return cls()
        return cls.with_settings(*preset)

    def replace(self, **changes: float) -> "EstimatorConfig":
        """Return a validated copy with the given fields changed."""
        return _replace(self, **changes)

    def bpm_to_interval(self, bpm: float) -> float:
        return bpm_to_interval(bpm, self.sample_rate, self.stride)

    def interval_to_bpm(self, interval: float) -> float:
        return interval_to_bpm(interval, self.sample_rate, self.stride)
