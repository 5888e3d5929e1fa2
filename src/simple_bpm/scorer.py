"""Autodifference metric for a candidate beat interval.

At the true beat period the energy at integer multiples of the interval
matches the energy at the midpoint, while energy half and quarter of a beat
away differs from it. Lower scores are better.
"""

from __future__ import annotations

import math

import numpy as np

BEATS = np.array([-32.0, -16.0, -8.0, -4.0, -2.0, -1.0, 1.0, 2.0, 4.0, 8.0, 16.0, 32.0])
NOBEATS = np.array([-0.5, -0.25, 0.25, 0.5])

BEAT_WEIGHTS = 1.0 / np.abs(BEATS)
NOBEAT_WEIGHTS = np.abs(NOBEATS)
TOTAL_WEIGHT = float(BEAT_WEIGHTS.sum() + NOBEAT_WEIGHTS.sum())


def sample(envelope: np.ndarray, offset: float) -> float:
    """Read the envelope at floor(offset); outside the envelope reads 0.0.

    No interpolation: midpoints are random, so the rounding error averages out.
    """
    n = math.floor(offset)
    if 0 <= n < len(envelope):
        return float(envelope[n])
    return 0.0


def autodifference(envelope: np.ndarray, interval: float, midpoint: float) -> float:
    """Score one (interval, midpoint) pair."""
    v = sample(envelope, midpoint)

    beat_diff = 0.0
    beat_weight = 0.0
    for b in BEATS:
        y = sample(envelope, midpoint + b * interval)
        w = 1.0 / abs(b)
        beat_diff += w * abs(y - v)
        beat_weight += w

    nonbeat_diff = 0.0
    nonbeat_weight = 0.0
    for b in NOBEATS:
        y = sample(envelope, midpoint + b * interval)
        w = abs(b)
        nonbeat_diff -= w * abs(y - v)
        nonbeat_weight += w

    return (beat_diff + nonbeat_diff) / (beat_weight + nonbeat_weight)


def sample_many(envelope: np.ndarray, offsets: np.ndarray) -> np.ndarray:
    """Vectorized `sample` over an array of offsets of any shape."""
    n = np.floor(offsets)
    valid = (n >= 0) & (n < envelope.size)
    idx = np.where(valid, n, 0).astype(np.intp)
    if envelope.size == 0:
        return np.zeros(offsets.shape, dtype=np.float64)
    return np.where(valid, envelope[idx].astype(np.float64), 0.0)


def autodifference_total(
    envelope: np.ndarray, interval: float, midpoints: np.ndarray
) -> float:
    """Sum of `autodifference` over a batch of midpoints."""
    mids = np.asarray(midpoints, dtype=np.float64)
    if mids.size == 0:
        return 0.0
    v = sample_many(envelope, mids)
    y_beat = sample_many(envelope, mids[None, :] + (BEATS * interval)[:, None])
    y_nobeat = sample_many(envelope, mids[None, :] + (NOBEATS * interval)[:, None])
    beat_diff = BEAT_WEIGHTS @ np.abs(y_beat - v)
    nonbeat_diff = NOBEAT_WEIGHTS @ np.abs(y_nobeat - v)
    scores = (beat_diff - nonbeat_diff) / TOTAL_WEIGHT
    return float(scores.sum())
