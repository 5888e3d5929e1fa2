"""Energy envelope extraction.

An asymmetric leaky integrator (fast attack, slow release) follows the
absolute amplitude of the input, similar to a peak programme meter. Every
`stride` samples the meter is read, giving a low-resolution overview of the
track's energy over time.
"""

from __future__ import annotations

import math
from typing import Iterable, Iterator

import numpy as np

from .errors import InvalidInput

ATTACK = 8.0
RELEASE = 512.0

# Samples converted to Python floats at a time when iterating arrays.
_CHUNK = 1 << 16


class EnvelopeFollower:
    """Streaming envelope follower with O(1) state.

    Feed samples in any number of chunks; `envelope()` returns the
    subsampled meter readings collected so far.
    """

    def __init__(self, stride: int) -> None:
        if stride < 1:
            raise ValueError("stride must be >= 1")
        self.stride = int(stride)
        self.v = 0.0
        self._count = 0
        self._out: list[float] = []

    def feed(self, samples: Iterable[float]) -> None:
        v = self.v
        count = self._count
        stride = self.stride
        out = self._out
        for s in samples:
            z = abs(s)
            if z > v:
                v += (z - v) / ATTACK
            else:
                v -= (v - z) / RELEASE
            count += 1
            if count == stride:
                out.append(v)
                count = 0
        self.v = v
        self._count = count
        if not math.isfinite(v):
            # NaN and inf never leave the follower state once they enter it.
            raise InvalidInput("sample stream contains NaN or infinite values")

    def envelope(self) -> np.ndarray:
        env = np.asarray(self._out, dtype=np.float32)
        env.setflags(write=False)
        return env


def _iter_floats(samples: Iterable[float]) -> Iterator[float]:
    if isinstance(samples, np.ndarray):
        if samples.ndim > 1:
            raise InvalidInput(
                f"expected mono samples, got array of shape {samples.shape}; down-mix first"
            )
        flat = samples.reshape(-1)
        for i in range(0, flat.size, _CHUNK):
            yield from flat[i : i + _CHUNK].tolist()
    else:
        yield from samples


def extract_envelope(samples: Iterable[float], stride: int) -> np.ndarray:
    """Build the energy envelope of a mono sample stream.

    Args:
        samples: finite iterable of amplitude samples; consumed exactly once.
        stride: raw samples per envelope sample (>=1).

    Returns:
        Read-only float32 array of length floor(N / stride).
    """
    follower = EnvelopeFollower(stride)
    follower.feed(_iter_floats(samples))
    return follower.envelope()


def extract_envelope_chunks(chunks: Iterable[np.ndarray], stride: int) -> np.ndarray:
    """Same as `extract_envelope` for a stream of sample blocks."""
    follower = EnvelopeFollower(stride)
    for chunk in chunks:
        follower.feed(_iter_floats(np.asarray(chunk, dtype=np.float32)))
    return follower.envelope()
