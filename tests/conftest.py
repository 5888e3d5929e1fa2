from __future__ import annotations

from typing import Callable

import numpy as np
import pytest


def make_click_track(
    bpm: float,
    fs: float,
    duration: float,
    burst_sec: float = 0.05,
    seed: int = 0,
) -> np.ndarray:
    """Decaying noise bursts at a fixed tempo, float32 mono."""
    rng = np.random.RandomState(seed)
    n = int(fs * duration)
    x = np.zeros(n, dtype=np.float32)
    period = fs * 60.0 / bpm
    burst = max(1, int(fs * burst_sec))
    shape = np.exp(-np.arange(burst) / (burst / 4.0))
    k = 0
    while True:
        start = int(round(k * period))
        if start >= n:
            break
        stop = min(n, start + burst)
        x[start:stop] = (rng.uniform(-1.0, 1.0, burst) * shape)[: stop - start]
        k += 1
    return x


@pytest.fixture
def click_track() -> Callable[..., np.ndarray]:
    return make_click_track
