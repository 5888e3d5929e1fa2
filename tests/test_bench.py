from __future__ import annotations

import csv
import json

import pytest

from simple_bpm.bench import HEADER, StatWriter, run_trial, stats_to_meta, sweep
from simple_bpm.config import EstimatorConfig
from simple_bpm.estimator import SimpleEstimator

FS = 8000.0


def _small_config(**kw) -> EstimatorConfig:
    base = dict(sample_rate=FS, stride=16, steps=100, samples_per_candidate=128)
    base.update(kw)
    return EstimatorConfig(**base)


def test_run_trial_reports_stats(click_track) -> None:
    x = click_track(120.0, FS, 8.0)
    est = SimpleEstimator(_small_config(), seed=0)
    stat = run_trial(est, x, expected=120.0, trials=3, pretrials=1,
                     max_mse=1e9, max_mean_time_ms=1e9)
    assert stat is not None
    assert (stat.stride, stat.steps, stat.samples_per_candidate) == (16, 100, 128)
    assert 50.0 <= stat.mean_bpm <= 450.0
    assert stat.mean_sq_err >= 0.0
    assert 0.0 <= stat.min_time_ms <= stat.mean_time_ms
    assert stat.err_of_mean == 100.0 * abs(stat.mean_bpm - 120.0) / 120.0


def test_run_trial_rejects_over_limit(click_track) -> None:
    x = click_track(120.0, FS, 4.0)
    est = SimpleEstimator(_small_config(), seed=0)
    assert run_trial(est, x, expected=120.0, trials=2, pretrials=2, max_mse=-1.0) is None
    assert run_trial(est, x, expected=120.0, trials=2, pretrials=2,
                     max_mse=1e9, max_mean_time_ms=0.0) is None


def test_sweep_skips_strides_longer_than_input(click_track) -> None:
    x = click_track(120.0, FS, 2.0)
    stats = list(
        sweep(
            x,
            120.0,
            trials=1,
            base_config=_small_config(),
            strides=[16, 32, 100000],
            steps=[50],
            samples_per_candidate=[64],
            seed=1,
            pretrials=0,
        )
    )
    assert [s.stride for s in stats] == [16, 32]


def test_stat_writer_outputs(tmp_path, click_track) -> None:
    x = click_track(120.0, FS, 2.0)
    stat = run_trial(SimpleEstimator(_small_config(), seed=0), x, 120.0, trials=1, pretrials=0)
    assert stat is not None
    with StatWriter(tmp_path / "out") as w:
        w.write_stat(stat)
        w.write_meta(stats_to_meta([stat], expected=120.0))
    rows = list(csv.reader((tmp_path / "out" / "optimise.csv").read_text().splitlines()))
    assert rows[0] == HEADER
    assert rows[1][:3] == ["16", "100", "128"]
    meta = json.loads((tmp_path / "out" / "optimise.json").read_text())
    assert meta["expected"] == 120.0
    assert meta["accepted"][0]["stride"] == 16


def test_run_trial_requires_positive_expected(click_track) -> None:
    x = click_track(120.0, FS, 2.0)
    est = SimpleEstimator(_small_config(), seed=0)
    for expected in (0.0, -120.0, float("nan")):
        with pytest.raises(ValueError):
            run_trial(est, x, expected=expected, trials=1, pretrials=0)
