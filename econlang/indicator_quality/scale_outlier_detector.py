# -*- coding: utf-8 -*-
"""
Scale Outlier Detector - order-of-magnitude outliers per indicator group.

After normalization, every record of an indicator group should sit at
roughly the same order of magnitude. A record that is 100x or more away
from the group's dominant magnitude almost always carries a wrong scale
(e.g. reported in units while its peers are in millions).

Algorithm:
    1. magnitude = floor(log10(|value|)); zero, NaN, inf and non-numeric
       values are excluded.
    2. Histogram the magnitudes (ascending magnitude order).
    3. The dominant magnitude has the highest count, the smaller magnitude
       on ties.
    4. Without a cluster holding ``cluster_threshold`` of the valid values
       nothing is flagged.
    5. Values at ``|magnitude - dominant| >= magnitude_difference_threshold``
       are flagged.

Flagged records are annotated copy-on-write with a ``scale-outlier``
quality warning and, in filter mode, moved to a side list.

Example:
    >>> from econlang.indicator_quality.scale_outlier_detector import detect_scale_outliers
    >>> result = detect_scale_outliers([("a", 1e5), ("b", 1e3), ("c", 2e3), ("d", 300), ("e", 5e3)])
    >>> result.outlier_ids
    ['a']
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.key_resolver import (
    KeyResolver,
    ensure_records,
    group_records,
)
from econlang.indicator_quality.metrics import (
    record_group_processed,
    record_processing_duration,
    record_scale_outliers,
)
from econlang.indicator_quality.models import (
    SCALE_OUTLIER_WARNING_TYPE,
    IndicatorRecord,
    QualityWarning,
    ScaleOutlierResult,
    ScaleOutlierWarning,
    coerce_float,
)

logger = logging.getLogger(__name__)

__all__ = [
    "order_of_magnitude",
    "detect_scale_outliers",
    "partition_scale_outliers",
    "annotate_scale_outlier",
    "apply_scale_outlier_detection",
    "format_scale_outlier_result",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def order_of_magnitude(value: Any) -> Optional[int]:
    """Return ``floor(log10(|value|))``, or None for zero and invalid values.

    Args:
        value: Number to measure.

    Returns:
        Integer order of magnitude or None.
    """
    f = coerce_float(value)
    if f is None or f == 0.0:
        return None
    return int(math.floor(math.log10(abs(f))))


# ---------------------------------------------------------------------------
# Group-level detection
# ---------------------------------------------------------------------------


def detect_scale_outliers(
    items: Sequence[Tuple[str, Any]],
    config: Optional[IndicatorQualityConfig] = None,
    indicator_key: Optional[str] = None,
) -> ScaleOutlierResult:
    """Flag values whose order of magnitude is far from the group's cluster.

    Args:
        items: ``(record_id, value)`` pairs of one indicator group.
        config: Active configuration (defaults when None).
        indicator_key: Group key echoed on the result.

    Returns:
        ScaleOutlierResult for the group.
    """
    cfg = config or IndicatorQualityConfig()
    items = list(items)

    if not items:
        return ScaleOutlierResult(
            indicator_key=indicator_key, reason="No items to analyze",
        )
    if len(items) < cfg.min_outlier_group_size:
        return ScaleOutlierResult(
            indicator_key=indicator_key,
            reason=(
                "Too few items for outlier detection "
                f"(need at least {cfg.min_outlier_group_size})"
            ),
        )

    measured: List[Tuple[int, str, float, int]] = []
    for position, (record_id, raw) in enumerate(items):
        magnitude = order_of_magnitude(raw)
        if magnitude is None:
            continue
        measured.append((position, str(record_id), coerce_float(raw), magnitude))

    if not measured:
        return ScaleOutlierResult(
            indicator_key=indicator_key, reason="No valid values to analyze",
        )

    counts = Counter(m for _, _, _, m in measured)
    distribution = {m: counts[m] for m in sorted(counts)}
    # Ascending iteration with strict > keeps the smaller magnitude on ties.
    dominant, dominant_count = None, 0
    for magnitude, count in distribution.items():
        if count > dominant_count:
            dominant, dominant_count = magnitude, count

    cluster_pct = dominant_count / len(measured)
    if cluster_pct < cfg.cluster_threshold:
        return ScaleOutlierResult(
            indicator_key=indicator_key,
            reason=(
                f"No clear majority cluster ({cluster_pct * 100:.0f}% < "
                f"{cfg.cluster_threshold * 100:.0f}% threshold)"
            ),
            distribution=distribution,
        )

    warnings: List[ScaleOutlierWarning] = []
    for position, record_id, value, magnitude in measured:
        difference = abs(magnitude - dominant)
        if difference >= cfg.magnitude_difference_threshold:
            warnings.append(ScaleOutlierWarning(
                record_id=record_id,
                position=position,
                value=value,
                magnitude=magnitude,
                dominant_magnitude=dominant,
                magnitude_difference=difference,
                distribution=distribution,
            ))

    if warnings:
        reason = (
            f"{len(warnings)} value(s) are "
            f"{10 ** cfg.magnitude_difference_threshold}x+ different from "
            f"majority scale ({dominant_count}/{len(measured)} at magnitude "
            f"{dominant})"
        )
    else:
        reason = "No outliers detected"

    return ScaleOutlierResult(
        indicator_key=indicator_key,
        has_outliers=bool(warnings),
        outlier_ids=[w.record_id for w in warnings],
        reason=reason,
        dominant_magnitude=dominant,
        distribution=distribution,
        warnings=warnings,
    )


def partition_scale_outliers(
    records: Iterable[IndicatorRecord],
    outlier_ids: Iterable[str],
) -> Tuple[List[IndicatorRecord], List[IndicatorRecord]]:
    """Split records into ``(kept, flagged)`` preserving relative order."""
    flagged_ids = set(outlier_ids)
    kept: List[IndicatorRecord] = []
    flagged: List[IndicatorRecord] = []
    for record in records:
        (flagged if record.id in flagged_ids else kept).append(record)
    return kept, flagged


def annotate_scale_outlier(
    record: IndicatorRecord,
    warning: ScaleOutlierWarning,
) -> IndicatorRecord:
    """Return a copy of a record carrying a ``scale-outlier`` warning."""
    note = QualityWarning(
        type=SCALE_OUTLIER_WARNING_TYPE,
        severity="warning",
        message=(
            f"Value {warning.value:.2e} is {warning.magnitude_difference} "
            f"orders of magnitude from the group's dominant magnitude "
            f"{warning.dominant_magnitude}"
        ),
        details=warning.model_dump(mode="json"),
    )
    return record.model_copy(
        update={"quality_warnings": [*record.quality_warnings, note]}
    )


# ---------------------------------------------------------------------------
# Batch-level detection
# ---------------------------------------------------------------------------


def apply_scale_outlier_detection(
    records: Iterable[Any],
    config: Optional[IndicatorQualityConfig] = None,
    key_resolver: Optional[KeyResolver] = None,
) -> Tuple[List[IndicatorRecord], List[IndicatorRecord], Dict[str, ScaleOutlierResult]]:
    """Detect scale outliers in every indicator group of a batch.

    Only each record's ``normalized`` value is analyzed; records without
    one stay out of the histogram and are never flagged.

    Args:
        records: Records or record mappings.
        config: Active configuration (defaults when None).
        key_resolver: Optional custom key resolver.

    Returns:
        ``(records, filtered_records, results)``: the batch in input order
        with flagged records annotated, the records moved aside when
        ``filter_scale_outliers`` is on, and the verdict per group.

    Raises:
        InvalidSchema: If ``records`` is not an iterable of records.
    """
    start = time.perf_counter()
    cfg = (config or IndicatorQualityConfig()).validate()
    valid = ensure_records(records, metrics_enabled=cfg.enable_metrics)
    groups = group_records(
        valid,
        resolver=key_resolver,
        allow_list=cfg.allow_list,
        deny_list=cfg.deny_list,
        metrics_enabled=cfg.enable_metrics,
    )

    results: Dict[str, ScaleOutlierResult] = {}
    annotated: Dict[int, IndicatorRecord] = {}
    flagged_total = 0

    for key, members in groups.items():
        measured = [r for r in members if r.normalized is not None]
        items = [(r.id, r.normalized) for r in measured]
        result = detect_scale_outliers(items, cfg, indicator_key=key)
        results[key] = result
        record_group_processed("scale_outlier", enabled=cfg.enable_metrics)
        if not result.has_outliers:
            continue

        for warning in result.warnings:
            record = measured[warning.position]
            annotated[id(record)] = annotate_scale_outlier(record, warning)
            flagged_total += 1
        logger.debug("Scale outliers in %r: %s", key, result.reason)

    output: List[IndicatorRecord] = []
    filtered: List[IndicatorRecord] = []
    for record in valid:
        copy = annotated.get(id(record))
        if copy is None:
            output.append(record)
        elif cfg.filter_scale_outliers:
            filtered.append(copy)
        else:
            output.append(copy)

    record_scale_outliers(flagged_total, enabled=cfg.enable_metrics)
    elapsed = time.perf_counter() - start
    record_processing_duration("scale_outliers", elapsed, enabled=cfg.enable_metrics)
    logger.info(
        "Scale outlier detection: groups=%d, flagged=%d, filtered=%d, elapsed=%.1fms",
        len(results), flagged_total, len(filtered), elapsed * 1000,
    )
    return output, filtered, results


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_scale_outlier_result(result: ScaleOutlierResult) -> str:
    """Render a group verdict for logs and review output.

    Args:
        result: Verdict to render.

    Returns:
        Plain-text summary, one detail line per flagged record.
    """
    if not result.has_outliers:
        return f"No scale outliers detected. {result.reason}"

    distribution = json.dumps(
        {str(k): v for k, v in result.distribution.items()},
        separators=(",", ":"),
    )
    lines = [
        f"Scale outliers detected: {result.reason}",
        f"  Outliers: {', '.join(result.outlier_ids)}",
        f"  Magnitude distribution: {distribution}",
    ]
    if result.warnings:
        lines.append("  Details:")
        for w in result.warnings:
            lines.append(
                f"    - {w.record_id}: {w.value:.2e} (magnitude {w.magnitude}, "
                f"{w.magnitude_difference} orders different)"
            )
    return "\n".join(lines)
