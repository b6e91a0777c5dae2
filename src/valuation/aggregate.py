from __future__ import annotations

from typing import Iterable

import numpy as np

from valuation.config import AggregationConfig
from valuation.data_models import AggregateResult, ConfidenceLabel, SourceQuote
from valuation.heuristic import round_half_up


_DEFAULT_CONFIG = AggregationConfig()


def drop_outliers(values: np.ndarray, max_deviation: float) -> np.ndarray:
    """Keep values within ``max_deviation`` (relative) of the median.

    Falls back to the full array when nothing survives, including a zero median.
    """
    median = float(np.median(values))
    if median == 0:
        return values
    kept = values[np.abs(values - median) / median <= max_deviation]
    return kept if kept.size else values


def trimmed_slice(values: np.ndarray, trim_fraction: float) -> np.ndarray:
    """Symmetric trim of an ascending array; never returns an empty slice."""
    n = len(values)
    k = int(np.floor(n * trim_fraction))
    end = max(n - k, k + 1)
    return values[k:end]


def confidence_label(stdev: float, config: AggregationConfig = _DEFAULT_CONFIG) -> ConfidenceLabel:
    if stdev < config.high_confidence_stdev:
        return "high"
    if stdev < config.medium_confidence_stdev:
        return "medium"
    return "low"


def aggregate(
    quotes: Iterable[SourceQuote],
    config: AggregationConfig = _DEFAULT_CONFIG,
) -> AggregateResult | None:
    """Combine provider quotes into a trimmed mean with a confidence label.

    Quotes further than 25% from the median are discarded, then 20% is trimmed
    from each end of what remains. Returns ``None`` for an empty collection.
    Input order is irrelevant: values are sorted before anything else.
    """
    values = np.sort(np.array([float(q.value) for q in quotes], dtype=float))
    if values.size == 0:
        return None

    base = drop_outliers(values, config.max_median_deviation)
    trimmed = trimmed_slice(base, config.trim_fraction)
    avg = round_half_up(float(trimmed.sum()) / len(trimmed))

    variance = float(np.mean((trimmed - avg) ** 2))
    stdev = float(np.sqrt(variance))

    return AggregateResult(
        low=avg - config.display_band,
        high=avg + config.display_band,
        avg=avg,
        confidence=confidence_label(stdev, config),
        stdev=stdev,
        sample_size=int(values.size),
    )
