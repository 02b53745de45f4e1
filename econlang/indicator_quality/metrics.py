# -*- coding: utf-8 -*-
"""
Prometheus Metrics - Indicator Quality Core

7 Prometheus metrics for monitoring consensus selection, scale outlier
detection and time-series validation. Metrics are observability only and
never influence results.

Metrics:
    1. econ_iq_groups_processed_total (Counter, labels: stage)
    2. econ_iq_selections_total (Counter, labels: dimension, outcome)
    3. econ_iq_records_dropped_total (Counter, labels: reason)
    4. econ_iq_scale_outliers_detected_total (Counter)
    5. econ_iq_time_series_analyzed_total (Counter, labels: verdict)
    6. econ_iq_processing_duration_seconds (Histogram, labels: operation)
    7. econ_iq_processing_errors_total (Counter, labels: error_type)
"""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Indicator groups processed by stage
iq_groups_processed_total = Counter(
    "econ_iq_groups_processed_total",
    "Total indicator groups processed",
    labelnames=["stage"],
)

# 2. Dimension selections by outcome (majority, tie-break, skipped, none)
iq_selections_total = Counter(
    "econ_iq_selections_total",
    "Total dimension selections made",
    labelnames=["dimension", "outcome"],
)

# 3. Records dropped from tallies by reason
iq_records_dropped_total = Counter(
    "econ_iq_records_dropped_total",
    "Total records dropped from tallies",
    labelnames=["reason"],
)

# 4. Scale outliers flagged
iq_scale_outliers_detected_total = Counter(
    "econ_iq_scale_outliers_detected_total",
    "Total records flagged as scale outliers",
)

# 5. Time series analyzed by verdict
iq_time_series_analyzed_total = Counter(
    "econ_iq_time_series_analyzed_total",
    "Total sample series analyzed",
    labelnames=["verdict"],
)

# 6. Processing duration by operation
iq_processing_duration_seconds = Histogram(
    "econ_iq_processing_duration_seconds",
    "Indicator quality processing duration in seconds",
    labelnames=["operation"],
    buckets=(
        0.001, 0.005, 0.01, 0.05, 0.1, 0.25,
        0.5, 1.0, 2.5, 5.0, 10.0,
    ),
)

# 7. Processing errors by type
iq_processing_errors_total = Counter(
    "econ_iq_processing_errors_total",
    "Total processing errors encountered",
    labelnames=["error_type"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_group_processed(stage: str, enabled: bool = True) -> None:
    """Record an indicator group passing through a stage.

    Args:
        stage: Stage name (consensus, scale_outlier).
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled:
        return
    iq_groups_processed_total.labels(stage=stage).inc()


def record_selection(dimension: str, outcome: str, enabled: bool = True) -> None:
    """Record one dimension selection.

    Args:
        dimension: currency, magnitude or time.
        outcome: majority, tie-break, skipped or none.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled:
        return
    iq_selections_total.labels(dimension=dimension, outcome=outcome).inc()


def record_dropped(reason: str, count: int = 1, enabled: bool = True) -> None:
    """Record records dropped from a tally.

    Args:
        reason: empty_key, filtered, invalid_record.
        count: Number of records dropped.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled or count <= 0:
        return
    iq_records_dropped_total.labels(reason=reason).inc(count)


def record_scale_outliers(count: int, enabled: bool = True) -> None:
    """Record flagged scale outliers.

    Args:
        count: Number of flagged records.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled or count <= 0:
        return
    iq_scale_outliers_detected_total.inc(count)


def record_time_series(verdict: str, enabled: bool = True) -> None:
    """Record one analyzed sample series.

    Args:
        verdict: cumulative, non_cumulative or insufficient.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled:
        return
    iq_time_series_analyzed_total.labels(verdict=verdict).inc()


def record_processing_duration(
    operation: str, seconds: float, enabled: bool = True,
) -> None:
    """Record processing duration.

    Args:
        operation: Operation name (auto_targets, scale_outliers,
            time_series, batch).
        seconds: Duration in seconds.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled:
        return
    iq_processing_duration_seconds.labels(operation=operation).observe(seconds)


def record_processing_error(error_type: str, enabled: bool = True) -> None:
    """Record a processing error.

    Args:
        error_type: Exception class name or short error label.
        enabled: Whether metrics are enabled in the active config.
    """
    if not enabled:
        return
    iq_processing_errors_total.labels(error_type=error_type).inc()


__all__ = [
    "iq_groups_processed_total",
    "iq_selections_total",
    "iq_records_dropped_total",
    "iq_scale_outliers_detected_total",
    "iq_time_series_analyzed_total",
    "iq_processing_duration_seconds",
    "iq_processing_errors_total",
    "record_group_processed",
    "record_selection",
    "record_dropped",
    "record_scale_outliers",
    "record_time_series",
    "record_processing_duration",
    "record_processing_error",
]
