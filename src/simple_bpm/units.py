"""Conversion between bpm and envelope-space beat intervals."""

from __future__ import annotations


def bpm_to_interval(bpm: float, sample_rate: float, stride: int) -> float:
    """Beats-per-minute to a beat period measured in envelope samples."""
    beats_per_second = bpm / 60.0
    samples_per_beat = sample_rate / beats_per_second
    return samples_per_beat / float(stride)


def interval_to_bpm(interval: float, sample_rate: float, stride: int) -> float:
    """Beat period in envelope samples to beats-per-minute."""
    samples_per_beat = interval * float(stride)
    beats_per_second = sample_rate / samples_per_beat
    return beats_per_second * 60.0
