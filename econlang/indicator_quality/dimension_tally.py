# -*- coding: utf-8 -*-
"""
Dimension Tally - token counts per indicator group.

For each group, counts the currency, magnitude and time-scale tokens
observed across its records, applying the per-dimension field precedence:

- currency: explicit ``currency_code`` before the unit-parser token; only
  plausible ISO-4217 codes (``^[A-Z]{3}$``) vote.
- magnitude: explicit ``scale`` before the unit-parser token; "ones" when
  neither is present.
- time: the unit-parser token before the explicit ``periodicity``. This is
  the opposite order to currency and magnitude and is kept as is.

Unit strings are parsed by a caller-supplied unit parser; this module only
counts the tokens it returns.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from econlang.indicator_quality.models import (
    DEFAULT_MAGNITUDE,
    IndicatorRecord,
    UnitTokens,
    normalize_tag,
)

logger = logging.getLogger(__name__)

__all__ = [
    "UnitParser",
    "DimensionTally",
    "parse_unit_tokens",
    "extract_currency",
    "extract_magnitude",
    "extract_time_scale",
    "tally_group",
    "tally_groups",
]

#: Unit parser collaborator: unit string -> tokens.
UnitParser = Callable[[str], Any]

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ISO_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

_SCALE_ALIASES: Dict[str, str] = {
    "one": "ones",
    "ones": "ones",
    "unit": "ones",
    "units": "ones",
    "hundred": "hundreds",
    "hundreds": "hundreds",
    "thousand": "thousands",
    "thousands": "thousands",
    "million": "millions",
    "millions": "millions",
    "billion": "billions",
    "billions": "billions",
    "trillion": "trillions",
    "trillions": "trillions",
}

_PERIODICITY_ALIASES: Dict[str, str] = {
    "yearly": "year",
    "annual": "year",
    "annually": "year",
    "biannually": "year",
    "semi-annual": "year",
    "semiannual": "year",
    "year": "year",
    "quarterly": "quarter",
    "quarter": "quarter",
    "monthly": "month",
    "month": "month",
    "weekly": "week",
    "week": "week",
    "daily": "day",
    "day": "day",
    "hourly": "hour",
    "hour": "hour",
}

_EMPTY_TOKENS = UnitTokens()


# ---------------------------------------------------------------------------
# Token extraction
# ---------------------------------------------------------------------------


def parse_unit_tokens(
    record: IndicatorRecord,
    unit_parser: Optional[UnitParser] = None,
) -> UnitTokens:
    """Run the unit parser over a record's unit string.

    A missing parser, a missing unit, or a parser that rejects the unit
    with ``ValueError``/``TypeError`` all yield empty tokens.

    Args:
        record: Record whose unit is parsed.
        unit_parser: Collaborator returning ``UnitTokens`` or a mapping
            with ``currency``/``scale``/``time_scale`` keys.

    Returns:
        Parsed tokens.
    """
    if unit_parser is None or not record.unit:
        return _EMPTY_TOKENS
    try:
        parsed = unit_parser(record.unit)
    except (ValueError, TypeError) as exc:
        logger.debug("Unit parser rejected %r for record %s: %s", record.unit, record.id, exc)
        return _EMPTY_TOKENS
    if parsed is None:
        return _EMPTY_TOKENS
    if isinstance(parsed, UnitTokens):
        return parsed
    if isinstance(parsed, Mapping):
        return UnitTokens.model_validate(dict(parsed))
    return UnitTokens(
        currency=getattr(parsed, "currency", None),
        scale=getattr(parsed, "scale", None),
        time_scale=getattr(parsed, "time_scale", None),
    )


def _iso_currency(candidate: Optional[str]) -> Optional[str]:
    if candidate is None:
        return None
    code = str(candidate).strip().upper()
    if ISO_CURRENCY_PATTERN.match(code):
        return code
    return None


def extract_currency(record: IndicatorRecord, tokens: UnitTokens) -> Optional[str]:
    """Currency vote of a record: explicit code, then unit token.

    Candidates that are not three-letter codes are treated as absent, so
    a bad explicit code falls through to the unit token.
    """
    for candidate in (record.currency_code, tokens.currency):
        code = _iso_currency(candidate)
        if code:
            return code
    return None


def extract_magnitude(record: IndicatorRecord, tokens: UnitTokens) -> str:
    """Magnitude vote of a record: explicit scale, then unit token, then "ones"."""
    for candidate in (record.scale, tokens.scale):
        tag = normalize_tag(candidate)
        if tag:
            return _SCALE_ALIASES.get(tag, tag)
    return DEFAULT_MAGNITUDE


def extract_time_scale(record: IndicatorRecord, tokens: UnitTokens) -> Optional[str]:
    """Time vote of a record: unit token first, explicit periodicity second."""
    unit_time = normalize_tag(tokens.time_scale)
    if unit_time:
        return unit_time
    periodicity = normalize_tag(record.periodicity)
    if periodicity:
        return _PERIODICITY_ALIASES.get(periodicity)
    return None


# ---------------------------------------------------------------------------
# DimensionTally
# ---------------------------------------------------------------------------


@dataclass
class DimensionTally:
    """Token counts for one indicator group.

    Attributes:
        indicator_key: Group identity string.
        size: Number of records tallied (the share denominator).
        currency: Currency token counts, in first-seen order.
        magnitude: Magnitude token counts, in first-seen order.
        time: Time-scale token counts, in first-seen order.
        indicator_type: First indicator-type tag seen in the group.
        temporal_aggregation: First temporal-aggregation tag seen.
    """

    indicator_key: str
    size: int = 0
    currency: Counter = field(default_factory=Counter)
    magnitude: Counter = field(default_factory=Counter)
    time: Counter = field(default_factory=Counter)
    indicator_type: Optional[str] = None
    temporal_aggregation: Optional[str] = None

    def add(self, record: IndicatorRecord, tokens: UnitTokens) -> None:
        """Count one record's votes."""
        currency = extract_currency(record, tokens)
        if currency:
            self.currency[currency] += 1
        self.magnitude[extract_magnitude(record, tokens)] += 1
        time_scale = extract_time_scale(record, tokens)
        if time_scale:
            self.time[time_scale] += 1
        self.size += 1

        if self.indicator_type is None:
            self.indicator_type = normalize_tag(record.indicator_type)
        if self.temporal_aggregation is None:
            self.temporal_aggregation = normalize_tag(record.temporal_aggregation)

    def counts(self, dimension: str) -> Counter:
        """Token counts for ``currency``, ``magnitude`` or ``time``."""
        if dimension == "currency":
            return self.currency
        if dimension == "magnitude":
            return self.magnitude
        if dimension == "time":
            return self.time
        raise KeyError(dimension)

    def shares(self, dimension: str) -> Dict[str, float]:
        """Token shares over the observed tokens; empty when none observed."""
        counts = self.counts(dimension)
        total = sum(counts.values())
        if total == 0:
            return {}
        return {token: count / total for token, count in counts.items()}

    def top(self, dimension: str) -> Tuple[Optional[str], int, float]:
        """Most frequent token with its count and share of the group size.

        Ties go to the token seen first.
        """
        best: Optional[str] = None
        best_count = 0
        for token, count in self.counts(dimension).items():
            if count > best_count:
                best, best_count = token, count
        share = best_count / max(self.size, 1)
        return best, best_count, share


def tally_group(
    indicator_key: str,
    records: Iterable[IndicatorRecord],
    unit_parser: Optional[UnitParser] = None,
) -> DimensionTally:
    """Tally the dimension tokens of one group.

    Args:
        indicator_key: Group identity string.
        records: Records of the group.
        unit_parser: Optional unit parser collaborator.

    Returns:
        Populated DimensionTally.
    """
    tally = DimensionTally(indicator_key=indicator_key)
    for record in records:
        tally.add(record, parse_unit_tokens(record, unit_parser))
    return tally


def tally_groups(
    groups: Dict[str, List[IndicatorRecord]],
    unit_parser: Optional[UnitParser] = None,
) -> Dict[str, DimensionTally]:
    """Tally every group, preserving group order."""
    return {
        key: tally_group(key, records, unit_parser)
        for key, records in groups.items()
    }
