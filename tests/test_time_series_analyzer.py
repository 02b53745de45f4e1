# -*- coding: utf-8 -*-
"""Tests for cumulative (YTD) time-series pattern analysis."""

import pytest

from econlang.exceptions import InvalidSchema
from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.models import TimeSeriesAnalysis, TimeSeriesPoint
from econlang.indicator_quality.time_series_analyzer import (
    analyze_time_series_pattern,
    format_analysis_narrative,
    suggest_temporal_aggregation,
    validate_record,
    validate_records,
)


def _config(**overrides):
    overrides.setdefault("enable_metrics", False)
    return IndicatorQualityConfig(**overrides)


class TestAnalyzeTimeSeriesPattern:
    """Tests for analyze_time_series_pattern."""

    def test_ytd_series_is_cumulative(self, ytd_series):
        """Climbing years that reset each January are cumulative."""
        analysis = analyze_time_series_pattern(ytd_series)

        assert analysis.is_cumulative is True
        assert analysis.cumulative_confidence >= 0.9
        assert analysis.cumulative_confidence == pytest.approx(1.0)
        assert analysis.has_seasonal_reset is True
        assert analysis.is_monotonic_within_year is True
        assert analysis.evidence.dec_jan_ratio == pytest.approx(12.0)
        assert analysis.evidence.within_year_increase_pct == pytest.approx(100.0)
        assert analysis.evidence.year_boundaries == 2
        assert analysis.evidence.reset_at_boundary_pct == pytest.approx(100.0)

    def test_declining_series_is_not_cumulative(self, declining_series):
        """A decreasing series without Dec/Jan pairs has zero confidence."""
        analysis = analyze_time_series_pattern(declining_series)

        assert analysis.is_cumulative is False
        assert analysis.cumulative_confidence == 0.0
        assert analysis.has_seasonal_reset is False
        assert analysis.is_monotonic_within_year is False
        assert not analysis.evidence.dec_jan_ratio
        assert not analysis.evidence.within_year_increase_pct
        assert not analysis.evidence.year_boundaries
        assert not analysis.evidence.reset_at_boundary_pct

    def test_confidence_can_diverge_from_verdict(self, monthly_points):
        """Two signals without a reset give 0.6 confidence but no verdict."""
        points = monthly_points(
            [2021, 2022],
            lambda year: [(year - 2021) * 1200.0 + 100.0 * m for m in range(1, 13)],
        )
        analysis = analyze_time_series_pattern(points)

        assert analysis.is_cumulative is False
        assert analysis.has_seasonal_reset is False
        assert analysis.is_monotonic_within_year is True
        assert analysis.cumulative_confidence == pytest.approx(0.6)

    def test_too_few_points_is_sentinel(self):
        """Fewer than six valid points return the empty sentinel."""
        points = [{"date": f"2023-0{m}-01", "value": m} for m in range(1, 6)]
        analysis = analyze_time_series_pattern(points)

        assert analysis.is_cumulative is False
        assert analysis.cumulative_confidence == 0.0
        assert analysis.evidence.is_empty()

    def test_invalid_points_are_dropped(self):
        """Bad dates and values do not count toward the minimum."""
        points = [{"date": f"2023-0{m}-01", "value": m} for m in range(1, 6)]
        points += [
            {"date": "2023-13-01", "value": 6},
            {"date": "June 2023", "value": 7},
            {"date": None, "value": 8},
            {"date": "2023-08-01", "value": "n/a"},
            {"date": "2023-09-01"},
        ]
        assert analyze_time_series_pattern(points).evidence.is_empty()

    def test_input_order_does_not_matter(self, ytd_series):
        """Points are sorted by date before analysis."""
        shuffled = list(reversed(ytd_series))
        assert analyze_time_series_pattern(shuffled) == analyze_time_series_pattern(ytd_series)

    def test_accepts_point_models(self, ytd_series):
        """TimeSeriesPoint instances are analyzed like mappings."""
        points = [TimeSeriesPoint(**p) for p in ytd_series]
        assert analyze_time_series_pattern(points).is_cumulative is True

    def test_none_is_sentinel(self):
        """A missing series is treated as empty."""
        assert analyze_time_series_pattern(None).evidence.is_empty()

    def test_non_iterable_raises(self):
        """A scalar series is a structural error."""
        with pytest.raises(InvalidSchema):
            analyze_time_series_pattern(42)

    def test_custom_minimum(self):
        """The minimum point count is configurable."""
        points = [{"date": f"2023-0{m}-01", "value": m} for m in range(1, 5)]
        analysis = analyze_time_series_pattern(points, min_points=4)
        assert analysis.is_monotonic_within_year is True


class TestFormatAnalysisNarrative:
    """Tests for format_analysis_narrative."""

    def test_cumulative_narrative(self, ytd_series):
        """Cumulative analyses list every signal."""
        text = format_analysis_narrative(analyze_time_series_pattern(ytd_series))
        assert text.split("\n") == [
            "Time series analysis indicates CUMULATIVE (YTD) pattern with 100% confidence:",
            "  - Dec/Jan ratio: 12.0x (typical of cumulative)",
            "  - Within-year increases: 100% (monotonically increasing)",
            "  - Year boundary resets: 100% of 2 boundaries (resets to zero)",
        ]

    def test_no_pattern_narrative(self, declining_series):
        """Zero confidence and no ratio give the fixed sentence."""
        text = format_analysis_narrative(analyze_time_series_pattern(declining_series))
        assert text == "No clear temporal pattern detected from time series data."

    def test_non_cumulative_narrative(self, monthly_points):
        """Non-cumulative analyses omit the confidence and qualifiers."""
        points = monthly_points(
            [2021, 2022],
            lambda year: [(year - 2021) * 1200.0 + 100.0 * m for m in range(1, 13)],
        )
        lines = format_analysis_narrative(analyze_time_series_pattern(points)).split("\n")
        assert lines[0] == "Time series analysis indicates NON-cumulative pattern:"
        assert lines[-1] == "  - Year boundary resets: 0% of 1 boundaries"
        assert all(line == line.rstrip() for line in lines)


class TestSuggestTemporalAggregation:
    """Tests for suggest_temporal_aggregation."""

    def test_suggests_cumulative(self):
        """Confident cumulative series tagged otherwise are corrected."""
        analysis = TimeSeriesAnalysis(is_cumulative=True, cumulative_confidence=1.0)
        assert suggest_temporal_aggregation(analysis, "period-total") == "period-cumulative"
        assert suggest_temporal_aggregation(analysis, None) == "period-cumulative"

    def test_already_cumulative(self):
        """A matching tag needs no suggestion."""
        analysis = TimeSeriesAnalysis(is_cumulative=True, cumulative_confidence=1.0)
        assert suggest_temporal_aggregation(analysis, "period-cumulative") is None

    def test_suggests_total_for_mislabelled_cumulative(self):
        """Confidently non-cumulative series tagged cumulative become totals."""
        analysis = TimeSeriesAnalysis(is_cumulative=False, cumulative_confidence=0.7)
        assert suggest_temporal_aggregation(analysis, "period-cumulative") == "period-total"

    def test_weak_evidence_has_no_suggestion(self):
        """Confidence at or below the thresholds suggests nothing."""
        weak = TimeSeriesAnalysis(is_cumulative=False, cumulative_confidence=0.6)
        assert suggest_temporal_aggregation(weak, "period-cumulative") is None


class TestValidateRecords:
    """Tests for record-level validation."""

    def test_validate_record(self, record_factory, ytd_series):
        """A record's series is analyzed and explained."""
        record = record_factory(
            "r1", indicator_type="flow", temporal_aggregation="period-total",
            sample_series=ytd_series,
        )
        result = validate_record(record, _config())

        assert result.record_id == "r1"
        assert result.analysis.is_cumulative is True
        assert result.suggested_temporal == "period-cumulative"
        assert result.validation_reasoning.startswith("Time series analysis indicates CUMULATIVE")
        assert result.data_points_analyzed == 36

    def test_only_cumulable_types_by_default(self, record_factory, ytd_series):
        """Non-cumulable types and records without series are skipped."""
        records = [
            record_factory("flow", indicator_type="flow", sample_series=ytd_series),
            record_factory("price", indicator_type="price", sample_series=ytd_series),
            record_factory("untyped", sample_series=ytd_series),
            record_factory("empty", indicator_type="flow"),
        ]
        results = validate_records(records, _config())
        assert list(results) == ["flow", "untyped"]

    def test_all_types_when_filter_disabled(self, record_factory, ytd_series):
        """Turning the filter off validates every record with a series."""
        records = [
            record_factory("price", indicator_type="price", sample_series=ytd_series),
        ]
        results = validate_records(records, _config(validate_cumulable_types_only=False))
        assert list(results) == ["price"]

    def test_short_series_reports_supplied_points(self, record_factory):
        """Insufficient series still produce a result with zero confidence."""
        record = record_factory(
            "short", indicator_type="count",
            sample_series=[{"date": "2023-01-01", "value": 1}, {"date": "bad", "value": 2}],
        )
        result = validate_records([record], _config())["short"]
        assert result.analysis.cumulative_confidence == 0.0
        assert result.data_points_analyzed == 2
        assert result.suggested_temporal is None
