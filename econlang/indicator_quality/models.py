# -*- coding: utf-8 -*-
"""
Indicator Quality Data Models

Pydantic v2 data models for the indicator quality core: input records and
their sample series, unit tokens handed in by the unit parser, per-group
auto-target selections, scale outlier warnings and results, time-series
analyses and validation results, and the batch report.

Enumerations (1):
    - TemporalAggregation

Input models (3):
    - UnitTokens, TimeSeriesPoint, IndicatorRecord

Result models (8):
    - QualityWarning, AutoTargetSelection, ScaleOutlierWarning,
      ScaleOutlierResult, TimeSeriesEvidence, TimeSeriesAnalysis,
      ValidationResult, IndicatorQualityReport

Input models coerce leniently: a malformed numeric field becomes ``None``,
a non-string override or tag is treated as absent and unknown top-level
keys are folded into ``metadata``, so one bad observation never aborts a
batch.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Magnitude token used when a record carries no scale information.
DEFAULT_MAGNITUDE: str = "ones"

#: Temporal aggregation tags that remove the time dimension.
TIME_EXEMPT_AGGREGATIONS: frozenset = frozenset({
    "point-in-time",
    "not-applicable",
    "period-cumulative",
})

#: Indicator types without a time axis (consulted when no tag is present).
TIME_EXEMPT_INDICATOR_TYPES: frozenset = frozenset({
    "stock",
    "balance",
    "capacity",
    "price",
    "ratio",
    "index",
    "percentage",
    "rate",
})

#: Indicator types whose "ones" magnitude is replaced when possible.
COUNT_LIKE_INDICATOR_TYPES: frozenset = frozenset({"count", "volume"})

#: Indicator types that can be reported as running year-to-date totals.
CUMULABLE_INDICATOR_TYPES: frozenset = frozenset({
    "flow",
    "volume",
    "balance",
    "count",
})

#: Quality warning type attached to scale outliers.
SCALE_OUTLIER_WARNING_TYPE: str = "scale-outlier"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def coerce_float(value: Any) -> Optional[float]:
    """Convert a value to a finite float, or None.

    Booleans, NaN, infinities and unparseable strings all yield None.

    Args:
        value: Value to convert.

    Returns:
        Float or None if conversion fails.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
    else:
        try:
            f = float(str(value).strip())
        except (ValueError, TypeError):
            return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


def normalize_tag(value: Optional[str]) -> Optional[str]:
    """Lowercase and trim an opaque classification tag; empty -> None."""
    if value is None:
        return None
    tag = str(value).strip().lower()
    return tag or None


# =============================================================================
# Enumerations
# =============================================================================


class TemporalAggregation(str, Enum):
    """Temporal aggregation tags produced by the upstream classifier.

    Treated as an opaque enum: only membership in
    ``TIME_EXEMPT_AGGREGATIONS`` and the cumulative suggestion use it.
    """

    POINT_IN_TIME = "point-in-time"
    PERIOD_RATE = "period-rate"
    PERIOD_CUMULATIVE = "period-cumulative"
    PERIOD_AVERAGE = "period-average"
    PERIOD_TOTAL = "period-total"
    NOT_APPLICABLE = "not-applicable"


# =============================================================================
# Input models
# =============================================================================


class UnitTokens(BaseModel):
    """Tokens extracted from a unit string by the unit parser collaborator.

    Attributes:
        currency: Currency token (e.g. "USD").
        scale: Magnitude token (e.g. "millions").
        time_scale: Time token (e.g. "month").
    """

    currency: Optional[str] = Field(None, description="Currency token")
    scale: Optional[str] = Field(None, description="Magnitude token")
    time_scale: Optional[str] = Field(None, description="Time-scale token")

    model_config = ConfigDict(frozen=True, extra="ignore")


class TimeSeriesPoint(BaseModel):
    """One observation of an indicator's sample series.

    Attributes:
        date: ISO date string (``YYYY-MM-DD``), possibly malformed.
        value: Observed value, None when missing or non-numeric.
    """

    date: Optional[str] = Field(None, description="ISO-8601 date string")
    value: Optional[float] = Field(None, description="Observed value")

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Optional[str]:
        """Keep the date as a string; anything else is missing."""
        if v is None:
            return None
        return str(v)

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Optional[float]:
        """Coerce to a finite float or None."""
        return coerce_float(v)


class QualityWarning(BaseModel):
    """Annotation attached to a record by a downstream check.

    Attributes:
        type: Warning type (e.g. "scale-outlier").
        severity: Severity label.
        message: Human-readable description.
        details: Structured details for audit.
    """

    type: str = Field(..., description="Warning type")
    severity: str = Field(default="warning", description="Severity label")
    message: str = Field(default="", description="Human-readable message")
    details: Dict[str, Any] = Field(
        default_factory=dict, description="Structured details",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class IndicatorRecord(BaseModel):
    """One economic-indicator observation.

    Per-dimension field precedence used by the dimension tally:

    ============  =======================  =======================  =========
    dimension     first                    second                   default
    ============  =======================  =======================  =========
    currency      ``currency_code``        unit-parser currency     absent
    magnitude     ``scale``                unit-parser scale        ``ones``
    time          unit-parser time scale   ``periodicity``          absent
    ============  =======================  =======================  =========

    Records are frozen; later stages return annotated copies.

    Attributes:
        id: Record identifier.
        name: Indicator name, the default grouping key.
        value: Raw observed value.
        normalized: Value after currency/magnitude/time normalization.
        unit: Free-text unit string, parsed by the unit parser.
        currency_code: Explicit currency override.
        scale: Explicit magnitude override.
        periodicity: Explicit reporting periodicity.
        indicator_type: Upstream indicator-type classification.
        temporal_aggregation: Upstream temporal-aggregation classification.
        sample_series: Embedded chronological sample values.
        metadata: Arbitrary extra metadata, including unknown top-level keys.
        quality_warnings: Warnings attached by downstream checks.
    """

    id: str = Field(..., description="Record identifier")
    name: Optional[str] = Field(None, description="Indicator name")
    value: Optional[float] = Field(None, description="Raw observed value")
    normalized: Optional[float] = Field(
        None, description="Value after normalization",
    )
    unit: Optional[str] = Field(None, description="Free-text unit string")
    currency_code: Optional[str] = Field(
        None, description="Explicit currency override",
    )
    scale: Optional[str] = Field(None, description="Explicit magnitude override")
    periodicity: Optional[str] = Field(
        None, description="Explicit reporting periodicity",
    )
    indicator_type: Optional[str] = Field(
        None, description="Upstream indicator-type tag",
    )
    temporal_aggregation: Optional[str] = Field(
        None, description="Upstream temporal-aggregation tag",
    )
    sample_series: List[TimeSeriesPoint] = Field(
        default_factory=list, description="Embedded sample series",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Arbitrary extra metadata",
    )
    quality_warnings: List[QualityWarning] = Field(
        default_factory=list, description="Warnings attached downstream",
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def fold_extra_keys(cls, data: Any) -> Any:
        """Move unknown top-level keys into ``metadata``.

        Keys already present in ``metadata`` win over top-level duplicates.
        """
        if not isinstance(data, Mapping):
            return data
        extra = {k: v for k, v in data.items() if k not in cls.model_fields}
        if not extra:
            return data
        known = {k: v for k, v in data.items() if k in cls.model_fields}
        metadata = known.get("metadata")
        known["metadata"] = {
            **extra,
            **(dict(metadata) if isinstance(metadata, Mapping) else {}),
        }
        return known

    @field_validator(
        "name", "unit", "currency_code", "scale", "periodicity",
        "indicator_type", "temporal_aggregation",
        mode="before",
    )
    @classmethod
    def drop_non_string(cls, v: Any) -> Optional[str]:
        """Treat a non-string override or tag as absent."""
        return v if isinstance(v, str) else None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept integer ids."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("value", "normalized", mode="before")
    @classmethod
    def coerce_numeric(cls, v: Any) -> Optional[float]:
        """Coerce to a finite float or None."""
        return coerce_float(v)

    @field_validator("sample_series", mode="before")
    @classmethod
    def drop_non_mapping_points(cls, v: Any) -> List[Any]:
        """Keep only entries that can describe a dated point."""
        if v is None:
            return []
        if isinstance(v, (str, bytes)) or not hasattr(v, "__iter__"):
            return []
        return [
            p for p in v
            if isinstance(p, (Mapping, TimeSeriesPoint))
        ]

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Treat a missing or non-mapping metadata block as empty."""
        return dict(v) if isinstance(v, Mapping) else {}


# =============================================================================
# Result models
# =============================================================================


class AutoTargetSelection(BaseModel):
    """Consensus normalization target for one indicator group.

    Attributes:
        indicator_key: Group identity string.
        currency: Selected currency, if any.
        magnitude: Selected magnitude, if any.
        time_scale: Selected time scale, if any.
        shares: Per-dimension token shares (``currency``, ``magnitude``,
            ``time``), each summing to 1.0 when non-empty.
        reason: Semicolon-joined audit trail, one clause per dimension.
        record_count: Number of records tallied for the group.
        provenance_hash: SHA-256 of the selection content.
    """

    indicator_key: str = Field(..., description="Group identity string")
    currency: Optional[str] = Field(None, description="Selected currency")
    magnitude: Optional[str] = Field(None, description="Selected magnitude")
    time_scale: Optional[str] = Field(None, description="Selected time scale")
    shares: Dict[str, Dict[str, float]] = Field(
        default_factory=lambda: {"currency": {}, "magnitude": {}, "time": {}},
        description="Per-dimension token shares",
    )
    reason: str = Field(default="", description="Audit trail")
    record_count: int = Field(default=0, ge=0, description="Records tallied")
    provenance_hash: str = Field(default="", description="SHA-256 hash")

    model_config = ConfigDict(extra="forbid")


class ScaleOutlierWarning(BaseModel):
    """A record whose order of magnitude is far from its group's cluster.

    Attributes:
        record_id: Flagged record.
        position: Index of the flagged item within the analyzed group.
        value: Value that was analyzed.
        magnitude: ``floor(log10(|value|))``.
        dominant_magnitude: Magnitude of the dominant cluster.
        magnitude_difference: Absolute distance between the two.
        distribution: Histogram of magnitudes across the group.
    """

    record_id: str = Field(..., description="Flagged record id")
    position: int = Field(default=0, ge=0, description="Index within the group")
    value: float = Field(..., description="Analyzed value")
    magnitude: int = Field(..., description="Order of magnitude")
    dominant_magnitude: int = Field(..., description="Dominant magnitude")
    magnitude_difference: int = Field(..., ge=0, description="Magnitude gap")
    distribution: Dict[int, int] = Field(
        default_factory=dict, description="Magnitude histogram",
    )

    model_config = ConfigDict(extra="forbid")


class ScaleOutlierResult(BaseModel):
    """Scale outlier verdict for one group.

    Attributes:
        indicator_key: Group identity string, when known.
        has_outliers: Whether any record was flagged.
        outlier_ids: Flagged record ids in input order.
        reason: Human-readable explanation.
        dominant_magnitude: Dominant magnitude, if a cluster was found.
        distribution: Histogram of magnitudes.
        warnings: One warning per flagged record.
    """

    indicator_key: Optional[str] = Field(None, description="Group key")
    has_outliers: bool = Field(default=False, description="Any flagged")
    outlier_ids: List[str] = Field(default_factory=list, description="Flagged ids")
    reason: str = Field(default="", description="Explanation")
    dominant_magnitude: Optional[int] = Field(None, description="Dominant magnitude")
    distribution: Dict[int, int] = Field(
        default_factory=dict, description="Magnitude histogram",
    )
    warnings: List[ScaleOutlierWarning] = Field(
        default_factory=list, description="Per-record warnings",
    )

    model_config = ConfigDict(extra="forbid")


class TimeSeriesEvidence(BaseModel):
    """Statistical evidence behind a cumulative verdict.

    All fields are None for the insufficient-data sentinel.
    """

    dec_jan_ratio: Optional[float] = Field(
        None, description="Mean December / January ratio",
    )
    within_year_increase_pct: Optional[float] = Field(
        None, description="Percent of within-year steps that do not decrease",
    )
    year_boundaries: Optional[int] = Field(
        None, description="Year boundaries with December and January points",
    )
    reset_at_boundary_pct: Optional[float] = Field(
        None, description="Percent of boundaries where January resets",
    )

    model_config = ConfigDict(extra="forbid")

    def is_empty(self) -> bool:
        """True for the sentinel evidence block."""
        return (
            self.dec_jan_ratio is None
            and self.within_year_increase_pct is None
            and self.year_boundaries is None
            and self.reset_at_boundary_pct is None
        )


class TimeSeriesAnalysis(BaseModel):
    """Cumulative (YTD) pattern analysis of one sample series."""

    is_cumulative: bool = Field(default=False)
    cumulative_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    has_seasonal_reset: bool = Field(default=False)
    is_monotonic_within_year: bool = Field(default=False)
    evidence: TimeSeriesEvidence = Field(default_factory=TimeSeriesEvidence)

    model_config = ConfigDict(extra="forbid")


class ValidationResult(BaseModel):
    """Time-series validation of one record, merged back by record id.

    Attributes:
        record_id: Validated record.
        analysis: Pattern analysis.
        suggested_temporal: Suggested temporal-aggregation correction.
        validation_reasoning: Narrative rendering of the analysis.
        data_points_analyzed: Number of points supplied.
    """

    record_id: str = Field(..., description="Validated record id")
    analysis: TimeSeriesAnalysis = Field(..., description="Pattern analysis")
    suggested_temporal: Optional[str] = Field(
        None, description="Suggested temporal-aggregation tag",
    )
    validation_reasoning: str = Field(default="", description="Narrative")
    data_points_analyzed: int = Field(default=0, ge=0, description="Points supplied")

    model_config = ConfigDict(extra="forbid")


class IndicatorQualityReport(BaseModel):
    """Output of one batch run of the indicator quality service.

    Attributes:
        auto_targets: Selection per indicator key.
        records: Input records, annotated with quality warnings.
        filtered_records: Records moved aside by outlier filtering.
        scale_outliers: Outlier verdict per indicator key.
        validations: Time-series validation per record id.
        provenance_hash: SHA-256 over the report content.
    """

    auto_targets: Dict[str, AutoTargetSelection] = Field(default_factory=dict)
    records: List[IndicatorRecord] = Field(default_factory=list)
    filtered_records: List[IndicatorRecord] = Field(default_factory=list)
    scale_outliers: Dict[str, ScaleOutlierResult] = Field(default_factory=dict)
    validations: Dict[str, ValidationResult] = Field(default_factory=dict)
    provenance_hash: str = Field(default="")

    model_config = ConfigDict(extra="forbid")


__all__ = [
    "DEFAULT_MAGNITUDE",
    "TIME_EXEMPT_AGGREGATIONS",
    "TIME_EXEMPT_INDICATOR_TYPES",
    "COUNT_LIKE_INDICATOR_TYPES",
    "CUMULABLE_INDICATOR_TYPES",
    "SCALE_OUTLIER_WARNING_TYPE",
    "coerce_float",
    "normalize_tag",
    "TemporalAggregation",
    "UnitTokens",
    "TimeSeriesPoint",
    "QualityWarning",
    "IndicatorRecord",
    "AutoTargetSelection",
    "ScaleOutlierWarning",
    "ScaleOutlierResult",
    "TimeSeriesEvidence",
    "TimeSeriesAnalysis",
    "ValidationResult",
    "IndicatorQualityReport",
]
