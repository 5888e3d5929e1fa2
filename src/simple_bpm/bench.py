"""Trial harness for comparing estimator settings against a known tempo.

Each setting first runs a few pre-trials; settings whose mean squared error
or mean run time exceed the limits are rejected before the full trial run.
"""

from __future__ import annotations

import csv
import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

import numpy as np

from .config import EstimatorConfig
from .errors import EmptyInput
from .estimator import SimpleEstimator

logger = logging.getLogger(__name__)

HEADER = [
    "Interval",
    "Steps",
    "Samples",
    "MeanBpm",
    "MeanSqErr",
    "ErrOfMean",
    "MinTime",
    "MeanTime",
]

DEFAULT_STRIDES = (16, 32, 48, 64, 96, 128, 256, 512, 1024, 2048, 4096)
DEFAULT_STEPS = (800, 1600, 3200, 6400)
DEFAULT_SAMPLES = (1024, 2048, 4096, 8192, 16384, 32768)


@dataclass
class EstimatorStat:
    stride: int
    steps: int
    samples_per_candidate: int
    mean_bpm: float
    mean_sq_err: float
    err_of_mean: float  # percent
    min_time_ms: float
    mean_time_ms: float

    def row(self) -> list[object]:
        return [
            self.stride,
            self.steps,
            self.samples_per_candidate,
            f"{self.mean_bpm:.2f}",
            f"{self.mean_sq_err:.2f}",
            f"{self.err_of_mean:.2f}",
            f"{self.min_time_ms:.2f}",
            f"{self.mean_time_ms:.2f}",
        ]


def _timed_runs(
    estimator: SimpleEstimator, samples: np.ndarray, count: int
) -> tuple[np.ndarray, np.ndarray]:
    bpms = np.empty(count, dtype=np.float64)
    times_ms = np.empty(count, dtype=np.float64)
    for i in range(count):
        t0 = time.perf_counter()
        bpms[i] = estimator.analyse(samples)
        times_ms[i] = (time.perf_counter() - t0) * 1e3
    return bpms, times_ms


def run_trial(
    estimator: SimpleEstimator,
    samples: np.ndarray,
    expected: float,
    trials: int,
    pretrials: int = 10,
    max_mse: float = 25.0,
    max_mean_time_ms: float = 500.0,
) -> Optional[EstimatorStat]:
    """Measure one estimator setting; None if rejected by the pre-trials."""
    if trials < 1:
        raise ValueError("trials must be >= 1")
    if not expected > 0:
        raise ValueError(f"expected tempo must be positive, got {expected}")
    cfg = estimator.config
    label = f"{cfg.stride:5}/{cfg.steps:5}/{cfg.samples_per_candidate:6}"

    if pretrials > 0:
        bpms, times_ms = _timed_runs(estimator, samples, pretrials)
        mse = float(np.mean((bpms - expected) ** 2))
        met = float(np.mean(times_ms))
        if mse > max_mse or met > max_mean_time_ms:
            logger.info("Rejecting %s -- MSE = %9.3f, Mean Time = %7.3f", label, mse, met)
            return None
        logger.info("Accepting %s -- MSE = %9.3f, Mean Time = %7.3f", label, mse, met)

    bpms, times_ms = _timed_runs(estimator, samples, trials)
    mean_bpm = float(np.mean(bpms))
    return EstimatorStat(
        stride=cfg.stride,
        steps=cfg.steps,
        samples_per_candidate=cfg.samples_per_candidate,
        mean_bpm=mean_bpm,
        mean_sq_err=float(np.mean((bpms - expected) ** 2)),
        err_of_mean=100.0 * abs(mean_bpm - expected) / expected,
        min_time_ms=float(np.min(times_ms)),
        mean_time_ms=float(np.mean(times_ms)),
    )


def sweep(
    samples: np.ndarray,
    expected: float,
    trials: int,
    base_config: Optional[EstimatorConfig] = None,
    strides: Optional[Sequence[int]] = None,
    steps: Optional[Sequence[int]] = None,
    samples_per_candidate: Optional[Sequence[int]] = None,
    seed: Optional[int] = None,
    **trial_kwargs: float,
) -> Iterator[EstimatorStat]:
    """Run `run_trial` over the settings grid and yield accepted stats."""
    base = base_config or EstimatorConfig()
    for n_samples in samples_per_candidate or DEFAULT_SAMPLES:
        for n_steps in steps or DEFAULT_STEPS:
            for stride in strides or DEFAULT_STRIDES:
                cfg = base.replace(
                    stride=stride, steps=n_steps, samples_per_candidate=n_samples
                )
                estimator = SimpleEstimator(cfg, seed=seed)
                try:
                    stat = run_trial(estimator, samples, expected, trials, **trial_kwargs)
                except EmptyInput:
                    logger.warning("Skipping stride %d: input shorter than one stride", stride)
                    continue
                if stat is not None:
                    yield stat


class StatWriter:
    """Write trial stats to CSV and a JSON metadata file."""

    def __init__(self, out_dir: Path, base_name: str = "optimise") -> None:
        self.out_dir = Path(out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self.csv_path = self.out_dir / f"{base_name}.csv"
        self.meta_path = self.out_dir / f"{base_name}.json"
        self._csv_file = None
        self._writer = None

    def open(self, header: Iterable[str] = HEADER) -> None:
        self._csv_file = self.csv_path.open("w", newline="")
        self._writer = csv.writer(self._csv_file)
        self._writer.writerow(list(header))

    def write_stat(self, stat: EstimatorStat) -> None:
        if self._writer is None:
            raise RuntimeError("StatWriter not opened")
        self._writer.writerow(stat.row())
        self._csv_file.flush()

    def write_meta(self, meta: dict) -> None:
        self.meta_path.write_text(json.dumps(meta, ensure_ascii=False, indent=2))

    def close(self) -> None:
        if self._csv_file is not None:
            self._csv_file.close()
            self._csv_file = None
            self._writer = None

    def __enter__(self) -> "StatWriter":
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def stats_to_meta(stats: Sequence[EstimatorStat], **extra: object) -> dict:
    meta = dict(extra)
    meta["accepted"] = [asdict(s) for s in stats]
    return meta
