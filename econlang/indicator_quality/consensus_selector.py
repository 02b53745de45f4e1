# -*- coding: utf-8 -*-
"""
Consensus Selector - auto-target selection per indicator group.

Chooses one currency, magnitude and time-scale target per group of records
from the token tallies produced by the dimension tally:

1. Majority: the most frequent token wins when its share of the group size
   reaches ``min_majority_share``.
2. Tie-break: otherwise the dimension's configured policy decides
   (``prefer-targetCurrency``, ``prefer-USD``, ``prefer-millions``, ...).
3. Time exemption: stocks, prices, ratios and point-in-time or cumulative
   aggregations have no time axis; their time target is skipped.
4. Count avoidance: count and volume indicators do not settle on "ones"
   while a non-"ones" magnitude is observed in the group.

Every decision leaves a clause in the selection's ``reason``:

    currency=majority(USD,0.80); magnitude=tie-break(prefer-millions);
    time=skipped(point-in-time)

Example:
    >>> from econlang.indicator_quality.consensus_selector import ConsensusSelector
    >>> selector = ConsensusSelector()
    >>> targets = selector.compute(records, unit_parser=parse_unit)
    >>> targets["gdp"].currency
    'USD'
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from econlang.indicator_quality.config import ALL_DIMENSIONS, IndicatorQualityConfig
from econlang.indicator_quality.dimension_tally import (
    DimensionTally,
    UnitParser,
    tally_groups,
)
from econlang.indicator_quality.key_resolver import (
    KeyResolver,
    ensure_records,
    group_records,
)
from econlang.indicator_quality.metrics import (
    record_group_processed,
    record_processing_duration,
    record_selection,
)
from econlang.indicator_quality.models import (
    COUNT_LIKE_INDICATOR_TYPES,
    DEFAULT_MAGNITUDE,
    TIME_EXEMPT_AGGREGATIONS,
    TIME_EXEMPT_INDICATOR_TYPES,
    AutoTargetSelection,
    IndicatorRecord,
    normalize_tag,
)
from econlang.indicator_quality.provenance import compute_provenance_hash

logger = logging.getLogger(__name__)

# Fixed tokens of the prefer-<token> policies.
_FIXED_POLICY_TOKENS: Dict[str, str] = {
    "prefer-USD": "USD",
    "prefer-millions": "millions",
    "prefer-billions": "billions",
    "prefer-thousands": "thousands",
    "prefer-month": "month",
    "prefer-quarter": "quarter",
    "prefer-year": "year",
}


# ---------------------------------------------------------------------------
# Selection rules
# ---------------------------------------------------------------------------


def apply_tie_break(
    dimension: str,
    config: IndicatorQualityConfig,
) -> Optional[str]:
    """Resolve a dimension's tie-break policy to a token.

    Args:
        dimension: currency, magnitude or time.
        config: Active configuration.

    Returns:
        The preferred token, or None when the policy yields nothing
        (``none`` or a target policy without a configured target).
    """
    policy = config.tie_break_for(dimension)
    if policy in _FIXED_POLICY_TOKENS:
        return _FIXED_POLICY_TOKENS[policy]
    if policy == "prefer-targetCurrency":
        if config.target_currency and config.target_currency.strip():
            return config.target_currency.strip().upper()
        return None
    if policy == "prefer-targetMagnitude":
        return normalize_tag(config.target_magnitude)
    if policy == "prefer-targetTimeScale":
        return normalize_tag(config.target_time_scale)
    return None


def time_exemption(tally: DimensionTally) -> Optional[str]:
    """Return the tag or type that exempts a group from time selection.

    The temporal-aggregation tag decides whenever one is present; the
    indicator type is consulted only for untagged groups.
    """
    if tally.temporal_aggregation:
        if tally.temporal_aggregation in TIME_EXEMPT_AGGREGATIONS:
            return tally.temporal_aggregation
        return None
    if tally.indicator_type in TIME_EXEMPT_INDICATOR_TYPES:
        return tally.indicator_type
    return None


def count_alternative(
    tally: DimensionTally,
    config: IndicatorQualityConfig,
) -> Optional[Tuple[str, float, bool]]:
    """Best non-"ones" magnitude for a count-like group.

    Returns:
        ``(token, share, accepted)`` where ``accepted`` tells whether the
        share clears ``count_alternative_share_factor * min_majority_share``,
        or None when the group saw only "ones".
    """
    best: Optional[str] = None
    best_count = 0
    for token, count in tally.magnitude.items():
        if token == DEFAULT_MAGNITUDE:
            continue
        if count > best_count:
            best, best_count = token, count
    if best is None:
        return None
    share = best_count / max(tally.size, 1)
    floor = config.count_alternative_share_factor * config.min_majority_share
    return best, share, share >= floor


def _select_dimension(
    dimension: str,
    tally: DimensionTally,
    config: IndicatorQualityConfig,
) -> Tuple[Optional[str], str, str]:
    """Majority then tie-break for one dimension.

    Returns:
        ``(token, reason clause, outcome label)``.
    """
    top, _count, share = tally.top(dimension)
    if top is not None and share >= config.min_majority_share:
        return top, f"{dimension}=majority({top},{share:.2f})", "majority"

    chosen = apply_tie_break(dimension, config)
    if chosen:
        policy = config.tie_break_for(dimension)
        return chosen, f"{dimension}=tie-break({policy})", "tie-break"
    return None, f"{dimension}=none", "none"


def select_auto_target(
    tally: DimensionTally,
    config: Optional[IndicatorQualityConfig] = None,
) -> AutoTargetSelection:
    """Select the normalization target of one tallied group.

    Args:
        tally: Token counts of the group.
        config: Active configuration (defaults when None).

    Returns:
        AutoTargetSelection with shares, reason and provenance hash.
    """
    cfg = config or IndicatorQualityConfig()
    chosen: Dict[str, Optional[str]] = {d: None for d in ALL_DIMENSIONS}
    clauses: List[str] = []
    shares = {d: tally.shares(d) for d in ALL_DIMENSIONS}

    for dimension in ALL_DIMENSIONS:
        if dimension not in cfg.auto_target_dimensions:
            continue

        if dimension == "time":
            exempt = time_exemption(tally)
            if exempt:
                clauses.append(f"time=skipped({exempt})")
                record_selection("time", "skipped", enabled=cfg.enable_metrics)
                continue

        token, clause, outcome = _select_dimension(dimension, tally, cfg)

        if (
            dimension == "magnitude"
            and token == DEFAULT_MAGNITUDE
            and tally.indicator_type in COUNT_LIKE_INDICATOR_TYPES
        ):
            alternative = count_alternative(tally, cfg)
            if alternative is not None:
                alt_token, alt_share, accepted = alternative
                label = "count-alternative" if accepted else "count-fallback"
                clause = f"{clause}->{label}({alt_token},{alt_share:.2f})"
                token = alt_token

        chosen[dimension] = token
        clauses.append(clause)
        record_selection(dimension, outcome, enabled=cfg.enable_metrics)

    selection = AutoTargetSelection(
        indicator_key=tally.indicator_key,
        currency=chosen["currency"],
        magnitude=chosen["magnitude"],
        time_scale=chosen["time"],
        shares=shares,
        reason="; ".join(clauses),
        record_count=tally.size,
    )
    provenance_hash = compute_provenance_hash(
        selection.model_dump(mode="json", exclude={"provenance_hash"})
    )
    return selection.model_copy(update={"provenance_hash": provenance_hash})


# ---------------------------------------------------------------------------
# ConsensusSelector
# ---------------------------------------------------------------------------


class ConsensusSelector:
    """Auto-target selection over a batch of indicator records.

    Holds a validated configuration and no other state; every call is a
    pure function of its arguments.

    Attributes:
        config: Active configuration.

    Example:
        >>> selector = ConsensusSelector(IndicatorQualityConfig(target_currency="EUR"))
        >>> selector.compute(records)["balance of trade"].reason
        'currency=tie-break(prefer-targetCurrency); ...'
    """

    def __init__(self, config: Optional[IndicatorQualityConfig] = None) -> None:
        """Initialize the selector.

        Args:
            config: Optional configuration. Uses defaults if None.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = (config or IndicatorQualityConfig()).validate()
        logger.debug(
            "ConsensusSelector initialized: majority=%.2f, dims=%s",
            self.config.min_majority_share,
            ",".join(self.config.auto_target_dimensions),
        )

    def select(self, tally: DimensionTally) -> AutoTargetSelection:
        """Select the target of one tallied group."""
        return select_auto_target(tally, self.config)

    def compute(
        self,
        records: Iterable[Any],
        key_resolver: Optional[KeyResolver] = None,
        unit_parser: Optional[UnitParser] = None,
    ) -> Dict[str, AutoTargetSelection]:
        """Compute auto-targets for every indicator group in a batch.

        Args:
            records: Records or record mappings.
            key_resolver: Optional custom key resolver.
            unit_parser: Optional unit parser collaborator.

        Returns:
            Selection per indicator key, in order of first appearance.

        Raises:
            InvalidSchema: If ``records`` is not an iterable of records.
        """
        start = time.perf_counter()
        cfg = self.config
        valid: List[IndicatorRecord] = ensure_records(
            records, metrics_enabled=cfg.enable_metrics,
        )
        groups = group_records(
            valid,
            resolver=key_resolver,
            allow_list=cfg.allow_list,
            deny_list=cfg.deny_list,
            metrics_enabled=cfg.enable_metrics,
        )

        targets: Dict[str, AutoTargetSelection] = {}
        for key, tally in tally_groups(groups, unit_parser).items():
            targets[key] = self.select(tally)
            record_group_processed("consensus", enabled=cfg.enable_metrics)

        elapsed = time.perf_counter() - start
        record_processing_duration("auto_targets", elapsed, enabled=cfg.enable_metrics)
        logger.info(
            "Auto-targets computed: records=%d, groups=%d, elapsed=%.1fms",
            len(valid), len(targets), elapsed * 1000,
        )
        return targets


def compute_auto_targets(
    records: Iterable[Any],
    config: Optional[IndicatorQualityConfig] = None,
    key_resolver: Optional[KeyResolver] = None,
    unit_parser: Optional[UnitParser] = None,
) -> Dict[str, AutoTargetSelection]:
    """Compute auto-targets for a batch with a one-off selector."""
    return ConsensusSelector(config).compute(
        records, key_resolver=key_resolver, unit_parser=unit_parser,
    )


__all__ = [
    "apply_tie_break",
    "time_exemption",
    "count_alternative",
    "select_auto_target",
    "ConsensusSelector",
    "compute_auto_targets",
]
