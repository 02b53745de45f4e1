# -*- coding: utf-8 -*-
"""
Time-Series Pattern Analyzer - cumulative (year-to-date) detection.

Decides from an indicator's embedded sample series whether it is reported
as a running year-to-date total. A YTD series climbs through the year and
drops back near zero every January, so three signals are measured:

    - Seasonal reset: January(N+1) < 0.2 x December(N) at most year
      boundaries (> 50%).
    - Monotonic within year: > 80% of consecutive within-year steps do
      not decrease.
    - High December/January ratio: mean December / January > 5.

``is_cumulative`` requires all three; ``cumulative_confidence`` weighs them
0.4 / 0.3 / 0.3. The two can diverge (two signals give 0.6 or 0.7 without
a cumulative verdict) and callers rely on both.

Downstream, the analysis drives a suggested temporal-aggregation
correction and a short narrative for reviewers.

Example:
    >>> from econlang.indicator_quality.time_series_analyzer import analyze_time_series_pattern
    >>> analysis = analyze_time_series_pattern(points)
    >>> analysis.is_cumulative, analysis.cumulative_confidence
    (True, 1.0)
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from econlang.exceptions import InvalidSchema
from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.key_resolver import ensure_records
from econlang.indicator_quality.metrics import (
    record_processing_duration,
    record_time_series,
)
from econlang.indicator_quality.models import (
    CUMULABLE_INDICATOR_TYPES,
    IndicatorRecord,
    TemporalAggregation,
    TimeSeriesAnalysis,
    TimeSeriesEvidence,
    TimeSeriesPoint,
    ValidationResult,
    normalize_tag,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MIN_TIME_SERIES_POINTS",
    "analyze_time_series_pattern",
    "format_analysis_narrative",
    "suggest_temporal_aggregation",
    "validate_record",
    "validate_records",
]

MIN_TIME_SERIES_POINTS = 6

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")

# Decision thresholds
_RESET_FRACTION = 0.2
_RESET_PCT_THRESHOLD = 50.0
_MONOTONIC_PCT_THRESHOLD = 80.0
_DEC_JAN_RATIO_THRESHOLD = 5.0

_RESET_WEIGHT = 0.4
_MONOTONIC_WEIGHT = 0.3
_RATIO_WEIGHT = 0.3

_NO_PATTERN = "No clear temporal pattern detected from time series data."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _valid_date(value: Optional[str]) -> bool:
    """True when the string starts with a real ``YYYY-MM-DD`` date."""
    if not value or not _DATE_PREFIX.match(value):
        return False
    try:
        date.fromisoformat(value[:10])
    except ValueError:
        return False
    return True


def _clean_points(points: Any) -> List[Tuple[str, float]]:
    """Drop unusable points and sort the rest by date string (stable)."""
    if points is None:
        return []
    if isinstance(points, (str, bytes, Mapping)) or not isinstance(points, Iterable):
        raise InvalidSchema(
            message="Sample series must be an iterable of points",
            component="TimeSeriesPatternAnalyzer",
            expected_type="Iterable[TimeSeriesPoint | Mapping]",
            received_type=type(points).__name__,
        )

    cleaned: List[Tuple[str, float]] = []
    for point in points:
        if isinstance(point, Mapping):
            point = TimeSeriesPoint.model_validate(dict(point))
        elif not isinstance(point, TimeSeriesPoint):
            continue
        if point.value is None or not _valid_date(point.date):
            continue
        cleaned.append((point.date, point.value))
    cleaned.sort(key=lambda p: p[0])
    return cleaned


def _first_in_month(year_points: List[Tuple[str, float]], month: str) -> Optional[float]:
    for day, value in year_points:
        if day[5:7] == month:
            return value
    return None


def _insufficient() -> TimeSeriesAnalysis:
    return TimeSeriesAnalysis(
        is_cumulative=False,
        cumulative_confidence=0.0,
        has_seasonal_reset=False,
        is_monotonic_within_year=False,
        evidence=TimeSeriesEvidence(),
    )


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


def analyze_time_series_pattern(
    points: Any,
    min_points: int = MIN_TIME_SERIES_POINTS,
) -> TimeSeriesAnalysis:
    """Classify a sample series as cumulative (YTD) or not.

    Points with a missing or non-numeric value, or without a valid
    ``YYYY-MM-DD`` date prefix, are dropped before analysis.

    Args:
        points: Iterable of ``TimeSeriesPoint`` or ``{"date", "value"}``
            mappings; None is treated as empty.
        min_points: Valid points needed for a verdict.

    Returns:
        TimeSeriesAnalysis; the all-false, zero-confidence sentinel with
        empty evidence when fewer than ``min_points`` valid points remain.

    Raises:
        InvalidSchema: If ``points`` is not an iterable.
    """
    cleaned = _clean_points(points)
    if len(cleaned) < min_points:
        return _insufficient()

    by_year: Dict[str, List[Tuple[str, float]]] = {}
    for day, value in cleaned:
        by_year.setdefault(day[:4], []).append((day, value))
    years = sorted(by_year)

    increases = 0
    comparisons = 0
    ratios: List[float] = []
    for year in years:
        year_points = by_year[year]
        if len(year_points) < 2:
            continue
        for (_, prev), (_, curr) in zip(year_points, year_points[1:]):
            comparisons += 1
            if curr >= prev:
                increases += 1

        jan = _first_in_month(year_points, "01")
        dec = _first_in_month(year_points, "12")
        if jan and dec and jan > 0:
            ratios.append(dec / jan)

    boundaries = 0
    resets = 0
    for this_year, next_year in zip(years, years[1:]):
        dec = _first_in_month(by_year[this_year], "12")
        jan = _first_in_month(by_year[next_year], "01")
        if dec and jan:
            boundaries += 1
            if jan < dec * _RESET_FRACTION:
                resets += 1

    dec_jan_ratio = sum(ratios) / len(ratios) if ratios else 0.0
    increase_pct = increases / comparisons * 100 if comparisons else 0.0
    reset_pct = resets / boundaries * 100 if boundaries else 0.0

    has_reset = reset_pct > _RESET_PCT_THRESHOLD
    is_monotonic = increase_pct > _MONOTONIC_PCT_THRESHOLD
    high_ratio = dec_jan_ratio > _DEC_JAN_RATIO_THRESHOLD

    confidence = 0.0
    if has_reset:
        confidence += _RESET_WEIGHT
    if is_monotonic:
        confidence += _MONOTONIC_WEIGHT
    if high_ratio:
        confidence += _RATIO_WEIGHT

    return TimeSeriesAnalysis(
        is_cumulative=has_reset and is_monotonic and high_ratio,
        cumulative_confidence=round(confidence, 4),
        has_seasonal_reset=has_reset,
        is_monotonic_within_year=is_monotonic,
        evidence=TimeSeriesEvidence(
            dec_jan_ratio=dec_jan_ratio,
            within_year_increase_pct=increase_pct,
            year_boundaries=boundaries,
            reset_at_boundary_pct=reset_pct,
        ),
    )


def format_analysis_narrative(analysis: TimeSeriesAnalysis) -> str:
    """Render an analysis as a short reviewer-facing narrative."""
    ev = analysis.evidence
    if analysis.cumulative_confidence == 0 and not ev.dec_jan_ratio:
        return _NO_PATTERN

    if analysis.is_cumulative:
        lines = [
            "Time series analysis indicates CUMULATIVE (YTD) pattern with "
            f"{analysis.cumulative_confidence * 100:.0f}% confidence:"
        ]
    else:
        lines = ["Time series analysis indicates NON-cumulative pattern:"]

    if ev.dec_jan_ratio:
        line = f"  - Dec/Jan ratio: {ev.dec_jan_ratio:.1f}x"
        if ev.dec_jan_ratio > _DEC_JAN_RATIO_THRESHOLD:
            line += " (typical of cumulative)"
        lines.append(line)
    if ev.within_year_increase_pct is not None:
        line = f"  - Within-year increases: {ev.within_year_increase_pct:.0f}%"
        if ev.within_year_increase_pct > _MONOTONIC_PCT_THRESHOLD:
            line += " (monotonically increasing)"
        lines.append(line)
    if ev.reset_at_boundary_pct is not None and ev.year_boundaries:
        line = (
            f"  - Year boundary resets: {ev.reset_at_boundary_pct:.0f}% of "
            f"{ev.year_boundaries} boundaries"
        )
        if ev.reset_at_boundary_pct > _RESET_PCT_THRESHOLD:
            line += " (resets to zero)"
        lines.append(line)

    return "\n".join(lines)


def suggest_temporal_aggregation(
    analysis: TimeSeriesAnalysis,
    current: Optional[str],
) -> Optional[str]:
    """Suggest a corrected temporal-aggregation tag, if the data disagrees.

    Args:
        analysis: Pattern analysis of the record's series.
        current: The record's current temporal-aggregation tag.

    Returns:
        ``"period-cumulative"``, ``"period-total"`` or None.
    """
    cumulative = TemporalAggregation.PERIOD_CUMULATIVE.value
    tag = normalize_tag(current)
    if analysis.is_cumulative and analysis.cumulative_confidence > 0.7:
        if tag != cumulative:
            return cumulative
    elif not analysis.is_cumulative and analysis.cumulative_confidence > 0.6:
        if tag == cumulative:
            return TemporalAggregation.PERIOD_TOTAL.value
    return None


# ---------------------------------------------------------------------------
# Record validation
# ---------------------------------------------------------------------------


def _verdict(analysis: TimeSeriesAnalysis) -> str:
    if analysis.evidence.is_empty():
        return "insufficient"
    return "cumulative" if analysis.is_cumulative else "non_cumulative"


def validate_record(
    record: IndicatorRecord,
    config: Optional[IndicatorQualityConfig] = None,
) -> ValidationResult:
    """Analyze one record's sample series.

    Args:
        record: Record to validate.
        config: Active configuration (defaults when None).

    Returns:
        ValidationResult keyed by the record id.
    """
    cfg = config or IndicatorQualityConfig()
    analysis = analyze_time_series_pattern(
        record.sample_series, min_points=cfg.min_time_series_points,
    )
    record_time_series(_verdict(analysis), enabled=cfg.enable_metrics)
    return ValidationResult(
        record_id=record.id,
        analysis=analysis,
        suggested_temporal=suggest_temporal_aggregation(
            analysis, record.temporal_aggregation,
        ),
        validation_reasoning=format_analysis_narrative(analysis),
        data_points_analyzed=len(record.sample_series),
    )


def validate_records(
    records: Any,
    config: Optional[IndicatorQualityConfig] = None,
) -> Dict[str, ValidationResult]:
    """Validate the temporal aggregation of every eligible record.

    A record is eligible when it carries a sample series and, with
    ``validate_cumulable_types_only`` on, its indicator type can be
    cumulative (flow, volume, balance, count) or is unknown.

    Args:
        records: Records or record mappings.
        config: Active configuration (defaults when None).

    Returns:
        ValidationResult per record id, in input order.

    Raises:
        InvalidSchema: If ``records`` is not an iterable of records.
    """
    start = time.perf_counter()
    cfg = (config or IndicatorQualityConfig()).validate()
    results: Dict[str, ValidationResult] = {}
    skipped_type = 0

    for record in ensure_records(records, metrics_enabled=cfg.enable_metrics):
        if not record.sample_series:
            continue
        indicator_type = normalize_tag(record.indicator_type)
        if (
            cfg.validate_cumulable_types_only
            and indicator_type is not None
            and indicator_type not in CUMULABLE_INDICATOR_TYPES
        ):
            skipped_type += 1
            continue
        result = validate_record(record, cfg)
        results[record.id] = result
        if result.suggested_temporal:
            logger.debug(
                "Record %s: temporal aggregation %s -> %s (confidence %.0f%%)",
                record.id, record.temporal_aggregation, result.suggested_temporal,
                result.analysis.cumulative_confidence * 100,
            )

    elapsed = time.perf_counter() - start
    record_processing_duration("time_series", elapsed, enabled=cfg.enable_metrics)
    logger.info(
        "Time series validation: validated=%d, skipped_non_cumulable=%d, "
        "suggestions=%d, elapsed=%.1fms",
        len(results), skipped_type,
        sum(1 for r in results.values() if r.suggested_temporal),
        elapsed * 1000,
    )
    return results
