# -*- coding: utf-8 -*-
"""Tests for the IndicatorQualityService facade."""

import logging

import pytest

from econlang.exceptions import ConfigurationError, InvalidSchema, MissingData
from econlang.indicator_quality import IndicatorQualityService
from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.models import IndicatorQualityReport


def _batch(ytd_series):
    return [
        {"id": "1", "name": "Exports", "unit": "USD Million per month",
         "normalized": 1200.0, "indicator_type": "flow",
         "temporal_aggregation": "period-total", "sample_series": ytd_series},
        {"id": "2", "name": "exports ", "unit": "USD Million per month",
         "normalized": 1350.0, "indicator_type": "flow"},
        {"id": "3", "name": "EXPORTS", "unit": "EUR Million per month",
         "normalized": 1500.0, "indicator_type": "flow"},
        {"id": "4", "name": "Exports", "unit": "USD per month",
         "normalized": 1_400_000_000.0, "indicator_type": "flow"},
        {"id": "5", "name": "CPI", "unit": "Index", "indicator_type": "index",
         "temporal_aggregation": "point-in-time", "normalized": 101.3},
    ]


class TestIndicatorQualityService:
    """Tests for the service facade."""

    def test_process_batch(self, unit_parser, ytd_series):
        """One call produces targets, outliers and validations."""
        service = IndicatorQualityService(
            IndicatorQualityConfig(enable_metrics=False), unit_parser=unit_parser,
        )
        report = service.process_batch(_batch(ytd_series))

        assert isinstance(report, IndicatorQualityReport)
        exports = report.auto_targets["exports"]
        assert exports.currency == "USD"
        assert exports.magnitude == "millions"
        assert exports.time_scale == "month"
        assert report.auto_targets["cpi"].time_scale is None
        assert "time=skipped(point-in-time)" in report.auto_targets["cpi"].reason

        assert report.scale_outliers["exports"].outlier_ids == ["4"]
        flagged = next(r for r in report.records if r.id == "4")
        assert flagged.quality_warnings[0].type == "scale-outlier"
        assert report.filtered_records == []

        assert list(report.validations) == ["1"]
        assert report.validations["1"].suggested_temporal == "period-cumulative"
        assert len(report.provenance_hash) == 64

    def test_report_hash_is_reproducible(self, unit_parser, ytd_series):
        """Two runs over the same batch give the same report hash."""
        config = IndicatorQualityConfig(enable_metrics=False)
        first = IndicatorQualityService(config, unit_parser=unit_parser).process_batch(
            _batch(ytd_series),
        )
        second = IndicatorQualityService(config, unit_parser=unit_parser).process_batch(
            _batch(ytd_series),
        )
        assert first.provenance_hash == second.provenance_hash
        assert first == second

    def test_filter_mode(self, unit_parser, ytd_series):
        """Filtering moves flagged records out of the kept list."""
        service = IndicatorQualityService(
            IndicatorQualityConfig(enable_metrics=False, filter_scale_outliers=True),
            unit_parser=unit_parser,
        )
        report = service.process_batch(_batch(ytd_series))
        assert [r.id for r in report.filtered_records] == ["4"]
        assert "4" not in {r.id for r in report.records}

    def test_get_auto_target(self, unit_parser, ytd_series):
        """The latest selections are available by key."""
        service = IndicatorQualityService(
            IndicatorQualityConfig(enable_metrics=False), unit_parser=unit_parser,
        )
        service.compute_auto_targets(_batch(ytd_series))
        assert service.get_auto_target("exports").currency == "USD"

    def test_get_unknown_auto_target(self):
        """Unknown keys raise MissingData."""
        service = IndicatorQualityService(IndicatorQualityConfig(enable_metrics=False))
        with pytest.raises(MissingData) as exc_info:
            service.get_auto_target("gdp")
        assert exc_info.value.context["missing_keys"] == ["gdp"]

    def test_invalid_batch(self):
        """Structural errors propagate from every operation."""
        service = IndicatorQualityService(IndicatorQualityConfig(enable_metrics=False))
        with pytest.raises(InvalidSchema):
            service.process_batch("not records")
        with pytest.raises(InvalidSchema):
            service.validate_time_series(None)

    def test_invalid_config(self):
        """The facade validates its configuration."""
        with pytest.raises(ConfigurationError):
            IndicatorQualityService(IndicatorQualityConfig(currency_tie_break="prefer-GBP"))

    def test_log_level_applied(self):
        """The configured level is set on the package logger."""
        IndicatorQualityService(IndicatorQualityConfig(enable_metrics=False, log_level="debug"))
        assert logging.getLogger("econlang").level == logging.DEBUG
        IndicatorQualityService(IndicatorQualityConfig(enable_metrics=False))
        assert logging.getLogger("econlang").level == logging.INFO

    def test_metrics_enabled_run(self, unit_parser, ytd_series):
        """Metric emission does not change results."""
        quiet = IndicatorQualityService(
            IndicatorQualityConfig(enable_metrics=False), unit_parser=unit_parser,
        ).process_batch(_batch(ytd_series))
        loud = IndicatorQualityService(
            IndicatorQualityConfig(enable_metrics=True), unit_parser=unit_parser,
        ).process_batch(_batch(ytd_series))
        assert quiet.provenance_hash == loud.provenance_hash

    def test_health_check(self):
        """Health check reports the service status."""
        status = IndicatorQualityService(IndicatorQualityConfig(enable_metrics=False)).health_check()
        assert status["status"] == "healthy"
        assert status["service"] == "indicator-quality"
