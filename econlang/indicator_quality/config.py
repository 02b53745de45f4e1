# -*- coding: utf-8 -*-
"""
Indicator Quality Configuration

Configuration for the indicator quality core covering:
- Consensus selection (majority share, per-dimension tie-break policies,
  tie-break targets, enabled dimensions, count-like magnitude alternative)
- Indicator key filtering (allow / deny lists)
- Scale outlier detection (cluster threshold, magnitude gap, group size,
  filter mode)
- Time-series validation (minimum points, cumulable-type filter)
- Metrics and logging

All settings can be overridden via environment variables with the
``ECON_IQ_`` prefix (e.g. ``ECON_IQ_MIN_MAJORITY_SHARE``). Configuration is
always passed explicitly; there is no process-wide instance.

Example:
    >>> from econlang.indicator_quality.config import IndicatorQualityConfig
    >>> cfg = IndicatorQualityConfig(min_majority_share=0.6).validate()
    >>> print(cfg.min_majority_share, cfg.cluster_threshold)
    0.6 0.6
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from econlang.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "ECON_IQ_"

# ---------------------------------------------------------------------------
# Allowed values
# ---------------------------------------------------------------------------

ALL_DIMENSIONS: Tuple[str, ...] = ("currency", "magnitude", "time")

_LOG_LEVELS: Tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

#: Tie-break policies accepted per dimension.
TIE_BREAK_POLICIES: Dict[str, Tuple[str, ...]] = {
    "currency": ("prefer-targetCurrency", "prefer-USD", "none"),
    "magnitude": (
        "prefer-targetMagnitude",
        "prefer-millions",
        "prefer-billions",
        "prefer-thousands",
        "none",
    ),
    "time": (
        "prefer-targetTimeScale",
        "prefer-month",
        "prefer-quarter",
        "prefer-year",
        "none",
    ),
}


# ---------------------------------------------------------------------------
# IndicatorQualityConfig
# ---------------------------------------------------------------------------


@dataclass
class IndicatorQualityConfig:
    """Complete configuration for the indicator quality core.

    Attributes:
        min_majority_share: Share of a group's records a token needs to be
            selected by majority.
        auto_target_dimensions: Dimensions to select targets for.
        currency_tie_break: Currency policy when no majority exists.
        magnitude_tie_break: Magnitude policy when no majority exists.
        time_tie_break: Time-scale policy when no majority exists.
        target_currency: Target used by ``prefer-targetCurrency``.
        target_magnitude: Target used by ``prefer-targetMagnitude``.
        target_time_scale: Target used by ``prefer-targetTimeScale``.
        count_alternative_share_factor: Fraction of ``min_majority_share`` a
            non-"ones" magnitude needs to replace "ones" for count-like
            indicators without being a fallback.
        allow_list: Indicator keys forced in (empty admits all).
        deny_list: Indicator keys forced out.
        cluster_threshold: Share of a group that must sit at one order of
            magnitude for that magnitude to be dominant.
        magnitude_difference_threshold: Orders of magnitude from the
            dominant cluster at which a value is flagged.
        min_outlier_group_size: Smallest group scanned for scale outliers.
        filter_scale_outliers: Move flagged records to a side list.
        min_time_series_points: Valid points needed for a pattern verdict.
        validate_cumulable_types_only: Only validate records whose indicator
            type can be cumulative (or is unknown).
        enable_metrics: Emit Prometheus metrics.
        log_level: Logging level for the ``econlang`` logger.
    """

    # -- Consensus selection ---------------------------------------------------
    min_majority_share: float = 0.5
    auto_target_dimensions: Tuple[str, ...] = ALL_DIMENSIONS
    currency_tie_break: str = "prefer-targetCurrency"
    magnitude_tie_break: str = "prefer-millions"
    time_tie_break: str = "prefer-month"
    target_currency: Optional[str] = None
    target_magnitude: Optional[str] = None
    target_time_scale: Optional[str] = None
    count_alternative_share_factor: float = 0.3

    # -- Key filtering ---------------------------------------------------------
    allow_list: Tuple[str, ...] = field(default_factory=tuple)
    deny_list: Tuple[str, ...] = field(default_factory=tuple)

    # -- Scale outlier detection -----------------------------------------------
    cluster_threshold: float = 0.6
    magnitude_difference_threshold: int = 2
    min_outlier_group_size: int = 3
    filter_scale_outliers: bool = False

    # -- Time-series validation ------------------------------------------------
    min_time_series_points: int = 6
    validate_cumulable_types_only: bool = True

    # -- Observability ---------------------------------------------------------
    enable_metrics: bool = True
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def tie_break_for(self, dimension: str) -> str:
        """Return the configured tie-break policy for a dimension."""
        if dimension == "currency":
            return self.currency_tie_break
        if dimension == "magnitude":
            return self.magnitude_tie_break
        return self.time_tie_break

    def validate(self) -> IndicatorQualityConfig:
        """Check value ranges and policy names.

        Returns:
            The same instance, to allow chaining.

        Raises:
            ConfigurationError: If any field is out of range or unknown.
        """
        invalid: Dict[str, str] = {}

        if not 0.0 < self.min_majority_share <= 1.0:
            invalid["min_majority_share"] = "must be in (0, 1]"
        if not 0.0 < self.cluster_threshold <= 1.0:
            invalid["cluster_threshold"] = "must be in (0, 1]"
        if self.count_alternative_share_factor < 0.0:
            invalid["count_alternative_share_factor"] = "must be >= 0"
        if self.magnitude_difference_threshold < 1:
            invalid["magnitude_difference_threshold"] = "must be >= 1"
        if self.min_outlier_group_size < 1:
            invalid["min_outlier_group_size"] = "must be >= 1"
        if self.min_time_series_points < 2:
            invalid["min_time_series_points"] = "must be >= 2"
        if str(self.log_level).upper() not in _LOG_LEVELS:
            invalid["log_level"] = f"must be one of {', '.join(_LOG_LEVELS)}"

        unknown_dims = [
            d for d in self.auto_target_dimensions if d not in ALL_DIMENSIONS
        ]
        if unknown_dims:
            invalid["auto_target_dimensions"] = (
                f"unknown dimensions: {', '.join(unknown_dims)}"
            )

        for dimension, allowed in TIE_BREAK_POLICIES.items():
            policy = self.tie_break_for(dimension)
            if policy not in allowed:
                invalid[f"{dimension}_tie_break"] = (
                    f"'{policy}' not in {', '.join(allowed)}"
                )

        if invalid:
            raise ConfigurationError(
                message="Invalid indicator quality configuration",
                component="IndicatorQualityConfig",
                invalid_fields=invalid,
            )
        return self

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> IndicatorQualityConfig:
        """Build an IndicatorQualityConfig from environment variables.

        Every field can be overridden via ``ECON_IQ_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Tuple values are comma-separated. Invalid numbers are logged and
        replaced by the default.

        Returns:
            Populated IndicatorQualityConfig instance.
        """
        prefix = _ENV_PREFIX
        defaults = cls()

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _float(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                return float(val)
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%s, using default %f",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: Optional[str]) -> Optional[str]:
            val = _env(name)
            if val is None:
                return default
            return val

        def _tuple(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
            val = _env(name)
            if val is None:
                return default
            return tuple(part.strip() for part in val.split(",") if part.strip())

        config = cls(
            # Consensus selection
            min_majority_share=_float(
                "MIN_MAJORITY_SHARE", defaults.min_majority_share,
            ),
            auto_target_dimensions=_tuple(
                "AUTO_TARGET_DIMENSIONS", defaults.auto_target_dimensions,
            ),
            currency_tie_break=_str(
                "CURRENCY_TIE_BREAK", defaults.currency_tie_break,
            ),
            magnitude_tie_break=_str(
                "MAGNITUDE_TIE_BREAK", defaults.magnitude_tie_break,
            ),
            time_tie_break=_str(
                "TIME_TIE_BREAK", defaults.time_tie_break,
            ),
            target_currency=_str("TARGET_CURRENCY", defaults.target_currency),
            target_magnitude=_str("TARGET_MAGNITUDE", defaults.target_magnitude),
            target_time_scale=_str(
                "TARGET_TIME_SCALE", defaults.target_time_scale,
            ),
            count_alternative_share_factor=_float(
                "COUNT_ALTERNATIVE_SHARE_FACTOR",
                defaults.count_alternative_share_factor,
            ),
            # Key filtering
            allow_list=_tuple("ALLOW_LIST", defaults.allow_list),
            deny_list=_tuple("DENY_LIST", defaults.deny_list),
            # Scale outlier detection
            cluster_threshold=_float(
                "CLUSTER_THRESHOLD", defaults.cluster_threshold,
            ),
            magnitude_difference_threshold=_int(
                "MAGNITUDE_DIFFERENCE_THRESHOLD",
                defaults.magnitude_difference_threshold,
            ),
            min_outlier_group_size=_int(
                "MIN_OUTLIER_GROUP_SIZE", defaults.min_outlier_group_size,
            ),
            filter_scale_outliers=_bool(
                "FILTER_SCALE_OUTLIERS", defaults.filter_scale_outliers,
            ),
            # Time-series validation
            min_time_series_points=_int(
                "MIN_TIME_SERIES_POINTS", defaults.min_time_series_points,
            ),
            validate_cumulable_types_only=_bool(
                "VALIDATE_CUMULABLE_TYPES_ONLY",
                defaults.validate_cumulable_types_only,
            ),
            # Observability
            enable_metrics=_bool("ENABLE_METRICS", defaults.enable_metrics),
            log_level=_str("LOG_LEVEL", defaults.log_level),
        )

        logger.info(
            "IndicatorQualityConfig loaded: majority=%.2f, dims=%s, "
            "tie_breaks=[C=%s M=%s T=%s], cluster=%.2f, mag_diff=%d, "
            "min_group=%d, filter=%s, min_points=%d",
            config.min_majority_share,
            ",".join(config.auto_target_dimensions),
            config.currency_tie_break,
            config.magnitude_tie_break,
            config.time_tie_break,
            config.cluster_threshold,
            config.magnitude_difference_threshold,
            config.min_outlier_group_size,
            config.filter_scale_outliers,
            config.min_time_series_points,
        )
        return config


__all__ = [
    "ALL_DIMENSIONS",
    "TIE_BREAK_POLICIES",
    "IndicatorQualityConfig",
]
