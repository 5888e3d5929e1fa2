"""Interval-space scan for the beat period with the minimum autodifference."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from .config import EstimatorConfig
from .errors import EmptyInput, InvalidInput
from .scorer import autodifference_total

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything that draws uniform floats in [low, high); numpy Generators do."""

    def uniform(self, low: float, high: float, size: tuple[int, ...]) -> np.ndarray:
        ...


@dataclass
class SearchResult:
    interval: float  # envelope samples per beat
    score: float  # summed autodifference, lower is better
    index: int  # position of the winner in the candidate order


def candidate_intervals(cfg: EstimatorConfig) -> np.ndarray:
    """Linearly spaced intervals from slowest (lower_bpm) to fastest (upper_bpm).

    The order is fixed; ties are resolved in favour of the earlier (slower)
    candidate.
    """
    slowest = cfg.bpm_to_interval(cfg.lower_bpm)
    fastest = cfg.bpm_to_interval(cfg.upper_bpm)
    return np.linspace(slowest, fastest, cfg.steps, dtype=np.float64)


def draw_midpoints(rng: RandomSource, envelope_length: int, samples: int) -> np.ndarray:
    """One candidate's batch of uniform midpoints in [0, envelope_length)."""
    mids = np.asarray(rng.uniform(0.0, float(envelope_length), (samples,)), dtype=np.float64)
    # Guard against a float generator rounding up to the open upper bound.
    return np.minimum(mids, np.nextafter(float(envelope_length), 0.0), out=mids)


def score_candidates(
    envelope: np.ndarray,
    intervals: np.ndarray,
    rng: RandomSource,
    samples: int,
    workers: int = 1,
) -> np.ndarray:
    """Total score per candidate, index-aligned with `intervals`.

    Midpoint batches are drawn on the calling thread in candidate order and
    discarded once scored, so the draws under a fixed seed do not depend on
    `workers`.
    """
    scores = np.empty(intervals.size, dtype=np.float64)

    if workers <= 1:
        for i in range(intervals.size):
            mids = draw_midpoints(rng, envelope.size, samples)
            scores[i] = autodifference_total(envelope, float(intervals[i]), mids)
        return scores

    def _score(i: int, mids: np.ndarray) -> float:
        return autodifference_total(envelope, float(intervals[i]), mids)

    # Bounded batches keep at most a few midpoint rows per worker alive.
    batch = workers * 4
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bpm-scan") as pool:
        for start in range(0, intervals.size, batch):
            idx = range(start, min(start + batch, intervals.size))
            rows = [draw_midpoints(rng, envelope.size, samples) for _ in idx]
            scores[idx.start : idx.stop] = list(pool.map(_score, idx, rows))
    return scores


def select_best(intervals: np.ndarray, scores: np.ndarray) -> SearchResult:
    """Left fold keeping the first strictly lowest score."""
    best_score = float("inf")
    best_interval = float("nan")
    best_index = -1
    for i, (interval, score) in enumerate(zip(intervals.tolist(), scores.tolist())):
        if score < best_score:
            best_score, best_interval, best_index = score, interval, i
    return SearchResult(best_interval, best_score, best_index)


def scan_for_interval(
    envelope: np.ndarray,
    cfg: EstimatorConfig,
    rng: RandomSource,
    workers: int = 1,
) -> SearchResult:
    """Find the candidate interval with the minimum total autodifference."""
    if envelope.size == 0:
        raise EmptyInput("cannot scan an empty energy envelope")
    intervals = candidate_intervals(cfg)
    scores = score_candidates(
        envelope, intervals, rng, cfg.samples_per_candidate, workers=workers
    )
    result = select_best(intervals, scores)
    if result.index < 0:
        # Every score was NaN; only possible with a non-finite envelope.
        raise InvalidInput("no candidate produced a finite score")
    logger.debug(
        "Scanned %d candidates over %d envelope samples: interval=%.3f score=%.6g",
        intervals.size,
        envelope.size,
        result.interval,
        result.score,
    )
    return result
