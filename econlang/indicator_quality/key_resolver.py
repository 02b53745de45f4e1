# -*- coding: utf-8 -*-
"""
Key Resolver - indicator group identity for records.

Maps each record to the identity string of its indicator series so that
"GDP", " gdp " and "GDP " land in the same group. The default resolver
normalizes (trim, collapse whitespace, lowercase) the record name, falling
back to ``metadata["indicator_id"]`` and then the record id. A
caller-supplied resolver is trusted verbatim.

Records resolving to an empty key are dropped silently from every tally.

Example:
    >>> from econlang.indicator_quality.key_resolver import normalize_key
    >>> normalize_key("  Balance  of   Trade ")
    'balance of trade'
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from econlang.exceptions import InvalidSchema
from econlang.indicator_quality.metrics import record_dropped
from econlang.indicator_quality.models import IndicatorRecord

logger = logging.getLogger(__name__)

#: A caller-supplied key resolver; its output is never normalized.
KeyResolver = Callable[[IndicatorRecord], Any]

_METADATA_ID_FIELD = "indicator_id"


def normalize_key(raw: Any) -> str:
    """Trim, collapse internal whitespace and lowercase a key.

    Args:
        raw: Raw key value; None yields "".

    Returns:
        Normalized key string.
    """
    if raw is None:
        return ""
    return " ".join(str(raw).split()).lower()


def resolve_key(
    record: IndicatorRecord,
    resolver: Optional[KeyResolver] = None,
) -> str:
    """Resolve the indicator group key for a record.

    Args:
        record: Record to resolve.
        resolver: Optional custom resolver. Its output is used verbatim.

    Returns:
        Group key, "" when the record cannot be grouped.
    """
    if resolver is not None:
        key = resolver(record)
        return "" if key is None else str(key)

    for candidate in (
        record.name,
        record.metadata.get(_METADATA_ID_FIELD),
        record.id,
    ):
        key = normalize_key(candidate)
        if key:
            return key
    return ""


def ensure_records(records: Any, metrics_enabled: bool = True) -> List[IndicatorRecord]:
    """Validate the top-level batch and coerce its items to records.

    Items that are already ``IndicatorRecord`` pass through; mappings are
    validated; anything else is logged and skipped.

    Args:
        records: Iterable of records or record mappings.
        metrics_enabled: Whether skipped items are counted as
            ``invalid_record`` drops.

    Returns:
        List of valid records in input order.

    Raises:
        InvalidSchema: If ``records`` is not an iterable of items.
    """
    if (
        records is None
        or isinstance(records, (str, bytes, Mapping))
        or not isinstance(records, Iterable)
    ):
        raise InvalidSchema(
            message="Records must be an iterable of indicator records",
            component="KeyResolver",
            expected_type="Iterable[IndicatorRecord | Mapping]",
            received_type=type(records).__name__,
        )

    valid: List[IndicatorRecord] = []
    skipped = 0
    for position, item in enumerate(records):
        if isinstance(item, IndicatorRecord):
            valid.append(item)
            continue
        if isinstance(item, Mapping):
            try:
                valid.append(IndicatorRecord.model_validate(dict(item)))
                continue
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid record at position %d: %d validation error(s)",
                    position, exc.error_count(),
                )
        else:
            logger.warning(
                "Skipping record at position %d: unsupported type %s",
                position, type(item).__name__,
            )
        skipped += 1

    record_dropped("invalid_record", skipped, enabled=metrics_enabled)
    return valid


def build_key_filter(
    allow_list: Optional[Sequence[str]] = None,
    deny_list: Optional[Sequence[str]] = None,
    custom_resolver: bool = False,
) -> Callable[[str], bool]:
    """Build a predicate admitting keys per allow / deny lists.

    List entries are normalized like default keys unless a custom resolver
    is active, in which case they are matched verbatim. Deny wins over
    allow; an empty allow list admits every key.

    Args:
        allow_list: Keys forced in.
        deny_list: Keys forced out.
        custom_resolver: Whether a custom key resolver is active.

    Returns:
        Predicate over resolved keys.
    """
    prepare = (lambda k: str(k)) if custom_resolver else normalize_key
    allowed = frozenset(prepare(k) for k in (allow_list or ()))
    denied = frozenset(prepare(k) for k in (deny_list or ()))

    def _admit(key: str) -> bool:
        if key in denied:
            return False
        if allowed and key not in allowed:
            return False
        return True

    return _admit


def group_records(
    records: Iterable[IndicatorRecord],
    resolver: Optional[KeyResolver] = None,
    allow_list: Optional[Sequence[str]] = None,
    deny_list: Optional[Sequence[str]] = None,
    metrics_enabled: bool = True,
) -> Dict[str, List[IndicatorRecord]]:
    """Group records by indicator key.

    Args:
        records: Validated records.
        resolver: Optional custom key resolver.
        allow_list: Keys forced in.
        deny_list: Keys forced out.
        metrics_enabled: Whether to emit drop metrics.

    Returns:
        Ordered mapping of key -> records, in order of first appearance.
    """
    admit = build_key_filter(allow_list, deny_list, custom_resolver=resolver is not None)
    groups: Dict[str, List[IndicatorRecord]] = {}
    empty_keys = 0
    filtered = 0

    for record in records:
        key = resolve_key(record, resolver)
        if not key:
            empty_keys += 1
            continue
        if not admit(key):
            filtered += 1
            continue
        groups.setdefault(key, []).append(record)

    if empty_keys or filtered:
        logger.debug(
            "Grouping dropped %d record(s) with empty keys and %d filtered by allow/deny lists",
            empty_keys, filtered,
        )
    record_dropped("empty_key", empty_keys, enabled=metrics_enabled)
    record_dropped("filtered", filtered, enabled=metrics_enabled)
    return groups


__all__ = [
    "KeyResolver",
    "normalize_key",
    "resolve_key",
    "ensure_records",
    "build_key_filter",
    "group_records",
]
