# -*- coding: utf-8 -*-
"""
Indicator Quality Service Setup

Provides the ``IndicatorQualityService`` facade, which wires the key
resolver, dimension tally, consensus selector, scale outlier detector and
time-series pattern analyzer into single calls, and a batch entry point
returning an ``IndicatorQualityReport``.

Usage:
    >>> from econlang.indicator_quality.setup import IndicatorQualityService
    >>> service = IndicatorQualityService(unit_parser=parse_unit)
    >>> report = service.process_batch(records)
    >>> report.auto_targets["gdp"].currency
    'USD'
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from econlang.exceptions import EconLangException, MissingData
from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.consensus_selector import ConsensusSelector
from econlang.indicator_quality.dimension_tally import UnitParser
from econlang.indicator_quality.key_resolver import KeyResolver, ensure_records
from econlang.indicator_quality.metrics import (
    record_processing_duration,
    record_processing_error,
)
from econlang.indicator_quality.models import (
    AutoTargetSelection,
    IndicatorQualityReport,
    IndicatorRecord,
    ScaleOutlierResult,
    ValidationResult,
)
from econlang.indicator_quality.provenance import compute_provenance_hash
from econlang.indicator_quality.scale_outlier_detector import (
    apply_scale_outlier_detection,
)
from econlang.indicator_quality.time_series_analyzer import validate_records

logger = logging.getLogger(__name__)

_ROOT_LOGGER = "econlang"


class IndicatorQualityService:
    """Unified facade over the indicator quality core.

    Holds the configuration and the caller's collaborators (key resolver,
    unit parser). The only retained state is the latest auto-target map,
    exposed through ``get_auto_target``; it never feeds back into a
    computation.

    Attributes:
        config: Validated IndicatorQualityConfig.
        key_resolver: Optional custom key resolver.
        unit_parser: Optional unit parser collaborator.
        selector: ConsensusSelector bound to ``config``.

    Example:
        >>> service = IndicatorQualityService(IndicatorQualityConfig(target_currency="EUR"))
        >>> targets = service.compute_auto_targets(records)
    """

    def __init__(
        self,
        config: Optional[IndicatorQualityConfig] = None,
        key_resolver: Optional[KeyResolver] = None,
        unit_parser: Optional[UnitParser] = None,
    ) -> None:
        """Initialize the service facade.

        Args:
            config: Optional configuration. Uses defaults if None.
            key_resolver: Optional custom key resolver.
            unit_parser: Optional unit parser collaborator.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = (config or IndicatorQualityConfig()).validate()
        self.key_resolver = key_resolver
        self.unit_parser = unit_parser
        self.selector = ConsensusSelector(self.config)
        self._auto_targets: Dict[str, AutoTargetSelection] = {}

        logging.getLogger(_ROOT_LOGGER).setLevel(self.config.log_level.upper())
        logger.info("IndicatorQualityService facade created")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def compute_auto_targets(self, records: Any) -> Dict[str, AutoTargetSelection]:
        """Compute the consensus target of every indicator group.

        Args:
            records: Records or record mappings.

        Returns:
            Selection per indicator key.

        Raises:
            InvalidSchema: If ``records`` is not an iterable of records.
        """
        try:
            targets = self.selector.compute(
                records,
                key_resolver=self.key_resolver,
                unit_parser=self.unit_parser,
            )
        except EconLangException as exc:
            record_processing_error(type(exc).__name__, enabled=self.config.enable_metrics)
            raise
        self._auto_targets = dict(targets)
        return targets

    def detect_scale_outliers(
        self,
        records: Any,
    ) -> Tuple[List[IndicatorRecord], List[IndicatorRecord], Dict[str, ScaleOutlierResult]]:
        """Flag scale outliers per indicator group.

        Returns:
            ``(records, filtered_records, results)`` as produced by
            ``apply_scale_outlier_detection``.
        """
        try:
            return apply_scale_outlier_detection(
                records, self.config, key_resolver=self.key_resolver,
            )
        except EconLangException as exc:
            record_processing_error(type(exc).__name__, enabled=self.config.enable_metrics)
            raise

    def validate_time_series(self, records: Any) -> Dict[str, ValidationResult]:
        """Validate temporal aggregation from embedded sample series."""
        try:
            return validate_records(records, self.config)
        except EconLangException as exc:
            record_processing_error(type(exc).__name__, enabled=self.config.enable_metrics)
            raise

    def process_batch(self, records: Any) -> IndicatorQualityReport:
        """Run every stage over one batch.

        Auto-targets and time-series validation see the full batch; scale
        outlier filtering only decides which records the report lists as
        kept.

        Args:
            records: Records or record mappings.

        Returns:
            IndicatorQualityReport with a provenance hash over its content.

        Raises:
            InvalidSchema: If ``records`` is not an iterable of records.
        """
        start = time.perf_counter()
        try:
            valid = ensure_records(records, metrics_enabled=self.config.enable_metrics)
        except EconLangException as exc:
            record_processing_error(type(exc).__name__, enabled=self.config.enable_metrics)
            raise

        auto_targets = self.compute_auto_targets(valid)
        kept, filtered, outliers = self.detect_scale_outliers(valid)
        validations = self.validate_time_series(valid)

        report = IndicatorQualityReport(
            auto_targets=auto_targets,
            records=kept,
            filtered_records=filtered,
            scale_outliers=outliers,
            validations=validations,
        )
        report = report.model_copy(update={
            "provenance_hash": compute_provenance_hash(
                report.model_dump(mode="json", exclude={"provenance_hash"})
            ),
        })

        elapsed = time.perf_counter() - start
        record_processing_duration("batch", elapsed, enabled=self.config.enable_metrics)
        logger.info(
            "Batch processed: records=%d, groups=%d, outlier_groups=%d, "
            "validations=%d, elapsed=%.1fms",
            len(valid),
            len(auto_targets),
            sum(1 for r in outliers.values() if r.has_outliers),
            len(validations),
            elapsed * 1000,
        )
        return report

    # ------------------------------------------------------------------
    # Convenience getters
    # ------------------------------------------------------------------

    def get_auto_target(self, indicator_key: str) -> AutoTargetSelection:
        """Return the latest selection computed for an indicator key.

        Raises:
            MissingData: If no selection exists for the key.
        """
        selection = self._auto_targets.get(indicator_key)
        if selection is None:
            raise MissingData(
                message=f"No auto-target computed for indicator '{indicator_key}'",
                component="IndicatorQualityService",
                missing_keys=[indicator_key],
            )
        return selection

    def health_check(self) -> Dict[str, Any]:
        """Report the service status.

        Returns:
            Health status dict.
        """
        return {
            "status": "healthy",
            "service": "indicator-quality",
            "auto_targets": len(self._auto_targets),
            "metrics_enabled": self.config.enable_metrics,
        }


__all__ = [
    "IndicatorQualityService",
]
