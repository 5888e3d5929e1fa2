"""Tempo estimator: energy envelope followed by a randomized interval scan.

Derived from Mark Hill's bpm-tools algorithm
(http://www.pogo.org.uk/~mark/bpm-tools/).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

from .config import EstimatorConfig
from .envelope import extract_envelope
from .errors import EmptyInput
from .search import RandomSource, SearchResult, scan_for_interval

logger = logging.getLogger(__name__)


class SimpleEstimator:
    """Estimate the tempo of a mono sample stream.

    The configuration is fixed at construction. The random stream is owned by
    the estimator and advances across `analyse` calls; pass `seed` or an
    explicit `rng` for reproducible results.
    """

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        rng: Optional[RandomSource] = None,
        seed: Optional[int] = None,
        workers: int = 1,
    ) -> None:
        if rng is not None and seed is not None:
            raise ValueError("pass either rng or seed, not both")
        self.config = config or EstimatorConfig()
        self.rng: RandomSource = rng if rng is not None else np.random.default_rng(seed)
        self.workers = max(1, int(workers))
        self.last_result: Optional[SearchResult] = None

    @classmethod
    def default(cls, **kwargs) -> "SimpleEstimator":
        return cls(EstimatorConfig(), **kwargs)

    @classmethod
    def with_settings(
        cls, stride: int, steps: int, samples_per_candidate: int, **kwargs
    ) -> "SimpleEstimator":
        return cls(EstimatorConfig.with_settings(stride, steps, samples_per_candidate), **kwargs)

    @classmethod
    def with_accuracy(cls, level: int, **kwargs) -> "SimpleEstimator":
        return cls(EstimatorConfig.with_accuracy(level), **kwargs)

    def bpm_to_interval(self, bpm: float) -> float:
        return self.config.bpm_to_interval(bpm)

    def interval_to_bpm(self, interval: float) -> float:
        return self.config.interval_to_bpm(interval)

    def envelope(self, samples: Iterable[float]) -> np.ndarray:
        return extract_envelope(samples, self.config.stride)

    def analyse(self, samples: Iterable[float]) -> float:
        """Return the estimated tempo in bpm.

        Args:
            samples: mono amplitude samples at `config.sample_rate`. The whole
                stream is consumed before scanning starts.

        Raises:
            EmptyInput: the input is shorter than one stride.
        """
        cfg = self.config
        env = self.envelope(samples)
        if env.size == 0:
            raise EmptyInput(
                f"input produced no envelope samples (stride={cfg.stride})"
            )
        logger.debug("Envelope built: %d samples (stride=%d)", env.size, cfg.stride)
        result = scan_for_interval(env, cfg, self.rng, workers=self.workers)
        self.last_result = result
        bpm = self.interval_to_bpm(result.interval)
        # Round-trip error at the range endpoints can leave the bounds by an ulp.
        bpm = float(np.clip(bpm, cfg.lower_bpm, cfg.upper_bpm))
        logger.debug("Estimated tempo %.2f bpm (candidate %d/%d)", bpm, result.index + 1, cfg.steps)
        return bpm
