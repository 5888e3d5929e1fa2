"""WAV file reading (scipy-based)."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np
from scipy.io import wavfile

from .errors import AudioReadError


def to_float_mono(data: np.ndarray) -> np.ndarray:
    """Scale PCM to [-1, 1) float32 and down-mix channels by their mean.

    Args:
        data: N or NxC array as returned by `scipy.io.wavfile.read`.
    """
    x = np.asarray(data)
    if x.dtype == np.uint8:
        y = (x.astype(np.float32) - 128.0) / 128.0
    elif np.issubdtype(x.dtype, np.integer):
        y = x.astype(np.float32) / float(-np.iinfo(x.dtype).min)
    elif np.issubdtype(x.dtype, np.floating):
        y = x.astype(np.float32)
    else:
        raise AudioReadError(f"unsupported sample type {x.dtype}")
    if y.ndim == 2:
        y = y.mean(axis=1, dtype=np.float32)
    elif y.ndim != 1:
        raise AudioReadError(f"expected 1D or 2D sample data, got shape {y.shape}")
    return y


def read_wav(path: str | Path) -> Tuple[np.ndarray, float]:
    """Read a WAV file as mono float32 samples.

    Returns:
        (samples, sample_rate_hz)
    """
    p = Path(path)
    try:
        rate, data = wavfile.read(p)
    except (OSError, ValueError) as e:
        raise AudioReadError(f"failed to read {p}: {e}") from e
    return to_float_mono(data), float(rate)
