"""Command line entry point.

Usage:
    simple-bpm analyse track.wav
    simple-bpm optimise track.wav 20 128.0 --out results/
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .audio import read_wav
from .bench import HEADER, StatWriter, stats_to_meta, sweep
from .config import EstimatorConfig
from .errors import SimpleBpmError
from .estimator import SimpleEstimator

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="simple-bpm", description="Estimate the tempo of a WAV file.")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    a = sub.add_parser("analyse", help="print the estimated bpm of a file")
    a.add_argument("file", type=Path)
    a.add_argument("--accuracy", type=int, default=None, help="preset level 0/1/2")
    a.add_argument("--lower", type=float, default=None, help="lowest bpm considered")
    a.add_argument("--upper", type=float, default=None, help="highest bpm considered")
    a.add_argument("--stride", type=int, default=None, help="raw samples per envelope sample")
    a.add_argument("--steps", type=int, default=None, help="number of candidate intervals")
    a.add_argument("--samples", type=int, default=None, help="random midpoints per candidate")
    a.add_argument("--seed", type=int, default=None)
    a.add_argument("--workers", type=int, default=1)

    o = sub.add_parser("optimise", help="sweep estimator settings against a known tempo")
    o.add_argument("file", type=Path)
    o.add_argument("trials", type=int)
    o.add_argument("expected", type=float)
    o.add_argument("--out", type=Path, default=None, help="directory for CSV/JSON results")
    o.add_argument("--seed", type=int, default=None)
    o.add_argument("--pretrials", type=int, default=10, help="runs used to screen each setting")
    o.add_argument("--max-mse", type=float, default=25.0, help="pre-trial mean squared error limit")
    o.add_argument(
        "--max-time-ms", type=float, default=500.0, help="pre-trial mean run time limit (ms)"
    )
    return p


def _config_from_args(args: argparse.Namespace, sample_rate: float) -> EstimatorConfig:
    cfg = (
        EstimatorConfig.with_accuracy(args.accuracy)
        if args.accuracy is not None
        else EstimatorConfig()
    )
    overrides = {
        "lower_bpm": args.lower,
        "upper_bpm": args.upper,
        "stride": args.stride,
        "steps": args.steps,
        "samples_per_candidate": args.samples,
    }
    changes = {k: v for k, v in overrides.items() if v is not None}
    return cfg.replace(sample_rate=sample_rate, **changes)


def _analyse(args: argparse.Namespace) -> int:
    logger.info("Reading from file: %s", args.file)
    samples, rate = read_wav(args.file)
    cfg = _config_from_args(args, rate)
    estimator = SimpleEstimator(cfg, seed=args.seed, workers=args.workers)
    bpm = estimator.analyse(samples)
    print(f"{bpm:.2f}")
    return 0


def _optimise(args: argparse.Namespace) -> int:
    if not args.expected > 0:
        logger.error("expected tempo must be positive, got %s", args.expected)
        return 2
    logger.info("Reading from file: %s", args.file)
    samples, rate = read_wav(args.file)
    base = EstimatorConfig(sample_rate=rate)
    writer = StatWriter(args.out) if args.out is not None else None
    print(", ".join(HEADER))
    accepted = []
    started = time.time()
    if writer is not None:
        writer.open()
    try:
        stats = sweep(
            samples,
            args.expected,
            args.trials,
            base_config=base,
            seed=args.seed,
            pretrials=args.pretrials,
            max_mse=args.max_mse,
            max_mean_time_ms=args.max_time_ms,
        )
        for stat in stats:
            print(", ".join(str(c) for c in stat.row()))
            accepted.append(stat)
            if writer is not None:
                writer.write_stat(stat)
        if writer is not None:
            writer.write_meta(
                stats_to_meta(
                    accepted,
                    file=str(args.file),
                    expected=args.expected,
                    trials=args.trials,
                    max_mse=args.max_mse,
                    max_time_ms=args.max_time_ms,
                    started=started,
                    ended=time.time(),
                )
            )
    finally:
        if writer is not None:
            writer.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )
    try:
        if args.command == "analyse":
            return _analyse(args)
        return _optimise(args)
    except SimpleBpmError as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
