# -*- coding: utf-8 -*-
"""
EconLang Indicator Quality Core
===============================

Normalization-target consensus and data-quality checks for batches of
economic-indicator observations:

- Key resolution: group records by normalized indicator name
- Dimension tally: currency / magnitude / time-scale token counts per group
- Consensus selection: majority target per dimension with configurable
  tie-break policies, time exemption and count-unit avoidance
- Scale outlier detection: order-of-magnitude outliers per group
- Time-series pattern analysis: cumulative (YTD) detection from sample
  series with a reviewer narrative and temporal-aggregation suggestions
- SHA-256 provenance hashes on every selection and batch report
- 7 Prometheus metrics for observability
- Configuration with ECON_IQ_ env prefix

Key Components:
    - config: IndicatorQualityConfig with ECON_IQ_ env prefix
    - models: Pydantic v2 records and results
    - key_resolver: Indicator group identity
    - dimension_tally: Per-group token counts
    - consensus_selector: Auto-target selection
    - scale_outlier_detector: Order-of-magnitude outliers
    - time_series_analyzer: Cumulative pattern detection
    - provenance: Canonical JSON SHA-256 hashing
    - metrics: Prometheus metrics
    - setup: IndicatorQualityService facade

Example:
    >>> from econlang.indicator_quality import IndicatorQualityService
    >>> service = IndicatorQualityService()
    >>> report = service.process_batch([
    ...     {"id": "1", "name": "GDP", "currency_code": "USD", "scale": "millions"},
    ... ])
    >>> report.auto_targets["gdp"].magnitude
    'millions'
"""

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from econlang.indicator_quality.config import (
    ALL_DIMENSIONS,
    TIE_BREAK_POLICIES,
    IndicatorQualityConfig,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from econlang.indicator_quality.models import (
    AutoTargetSelection,
    IndicatorQualityReport,
    IndicatorRecord,
    QualityWarning,
    ScaleOutlierResult,
    ScaleOutlierWarning,
    TemporalAggregation,
    TimeSeriesAnalysis,
    TimeSeriesEvidence,
    TimeSeriesPoint,
    UnitTokens,
    ValidationResult,
)

# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------
from econlang.indicator_quality.key_resolver import (
    KeyResolver,
    group_records,
    normalize_key,
    resolve_key,
)
from econlang.indicator_quality.dimension_tally import (
    DimensionTally,
    UnitParser,
    tally_group,
    tally_groups,
)
from econlang.indicator_quality.consensus_selector import (
    ConsensusSelector,
    compute_auto_targets,
    select_auto_target,
)
from econlang.indicator_quality.scale_outlier_detector import (
    apply_scale_outlier_detection,
    detect_scale_outliers,
    format_scale_outlier_result,
    partition_scale_outliers,
)
from econlang.indicator_quality.time_series_analyzer import (
    analyze_time_series_pattern,
    format_analysis_narrative,
    suggest_temporal_aggregation,
    validate_records,
)

# ---------------------------------------------------------------------------
# Provenance
# ---------------------------------------------------------------------------
from econlang.indicator_quality.provenance import compute_provenance_hash

# ---------------------------------------------------------------------------
# Service facade
# ---------------------------------------------------------------------------
from econlang.indicator_quality.setup import IndicatorQualityService

__all__ = [
    # Configuration
    "ALL_DIMENSIONS",
    "TIE_BREAK_POLICIES",
    "IndicatorQualityConfig",
    # Models
    "AutoTargetSelection",
    "IndicatorQualityReport",
    "IndicatorRecord",
    "QualityWarning",
    "ScaleOutlierResult",
    "ScaleOutlierWarning",
    "TemporalAggregation",
    "TimeSeriesAnalysis",
    "TimeSeriesEvidence",
    "TimeSeriesPoint",
    "UnitTokens",
    "ValidationResult",
    # Engines
    "KeyResolver",
    "group_records",
    "normalize_key",
    "resolve_key",
    "DimensionTally",
    "UnitParser",
    "tally_group",
    "tally_groups",
    "ConsensusSelector",
    "compute_auto_targets",
    "select_auto_target",
    "apply_scale_outlier_detection",
    "detect_scale_outliers",
    "format_scale_outlier_result",
    "partition_scale_outliers",
    "analyze_time_series_pattern",
    "format_analysis_narrative",
    "suggest_temporal_aggregation",
    "validate_records",
    # Provenance
    "compute_provenance_hash",
    # Service
    "IndicatorQualityService",
]
