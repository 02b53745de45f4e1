# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

from typing import Any, Dict, List, Optional

import pytest

from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.models import IndicatorRecord, UnitTokens


_CURRENCIES = {"USD", "EUR", "GBP", "JPY", "AMD", "XOF"}
_SCALES = {
    "hundreds": "hundreds",
    "thousand": "thousands",
    "thousands": "thousands",
    "million": "millions",
    "millions": "millions",
    "billion": "billions",
    "billions": "billions",
}
_TIMES = {
    "per month": "month",
    "per quarter": "quarter",
    "per year": "year",
    "/month": "month",
    "/quarter": "quarter",
    "/year": "year",
}


def fake_parse_unit(unit: str) -> UnitTokens:
    """Small unit parser: "USD Million per month" -> USD / millions / month.

    Raises ValueError for the literal unit "unparseable".
    """
    if unit == "unparseable":
        raise ValueError("cannot parse unit")
    lowered = unit.lower()
    currency = next(
        (tok for tok in unit.replace("/", " ").split() if tok.upper() in _CURRENCIES),
        None,
    )
    scale = next(
        (canon for word, canon in _SCALES.items() if word in lowered.split()),
        None,
    )
    time_scale = next(
        (canon for marker, canon in _TIMES.items() if marker in lowered),
        None,
    )
    return UnitTokens(
        currency=currency.upper() if currency else None,
        scale=scale,
        time_scale=time_scale,
    )


def make_record(record_id: str, name: Optional[str] = "GDP", **fields: Any) -> IndicatorRecord:
    """Build an IndicatorRecord with sensible defaults."""
    return IndicatorRecord(id=record_id, name=name, **fields)


def monthly_series(years: List[int], values_for_year) -> List[Dict[str, Any]]:
    """Jan..Dec points per year; ``values_for_year(year)`` yields 12 values."""
    points = []
    for year in years:
        for month, value in enumerate(values_for_year(year), start=1):
            points.append({"date": f"{year}-{month:02d}-01", "value": value})
    return points


@pytest.fixture
def unit_parser():
    """Fake unit parser collaborator."""
    return fake_parse_unit


@pytest.fixture
def config():
    """Default configuration with metrics disabled."""
    return IndicatorQualityConfig(enable_metrics=False)


@pytest.fixture
def record_factory():
    """Factory building IndicatorRecord instances."""
    return make_record


@pytest.fixture
def monthly_points():
    """Builder for Jan..Dec monthly points, see ``monthly_series``."""
    return monthly_series


@pytest.fixture
def ytd_series():
    """Three years of cumulative (YTD) monthly points.

    December is 12x January each year and each January restarts at the
    monthly level, so Jan(N+1) is well under 0.2x Dec(N).
    """
    return monthly_series(
        [2021, 2022, 2023],
        lambda year: [100.0 * month for month in range(1, 13)],
    )


@pytest.fixture
def declining_series():
    """Two years of February..November points, strictly decreasing.

    No year has both a January and a December point.
    """
    return [
        {"date": f"{year}-{month:02d}-15", "value": 1000.0 - 50.0 * month}
        for year in (2022, 2023)
        for month in range(2, 12)
    ]
