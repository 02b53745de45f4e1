# -*- coding: utf-8 -*-
"""
Determinism tests for the indicator quality core.

Identical inputs and configuration must give byte-identical canonical JSON
and provenance hashes, independent of dict insertion order or repeated
runs.
"""

import hashlib
import json

import pytest

from econlang.indicator_quality.config import IndicatorQualityConfig
from econlang.indicator_quality.consensus_selector import compute_auto_targets
from econlang.indicator_quality.models import UnitTokens
from econlang.indicator_quality.provenance import canonical_json, compute_provenance_hash


class TestCanonicalJson:
    """Tests for canonical_json."""

    def test_key_order_is_irrelevant(self):
        """Dict insertion order does not change the output."""
        assert canonical_json({"b": 2, "a": 1}) == canonical_json({"a": 1, "b": 2})

    def test_compact_sorted_output(self):
        """Keys are sorted and separators compact."""
        assert canonical_json({"b": [1, 2], "a": "x"}) == '{"a":"x","b":[1,2]}'

    def test_models_and_sets(self):
        """Pydantic models and sets are serialised deterministically."""
        payload = {"tokens": UnitTokens(currency="USD"), "tags": {"b", "a"}}
        assert canonical_json(payload) == (
            '{"tags":["a","b"],"tokens":{"currency":"USD","scale":null,"time_scale":null}}'
        )

    def test_unsupported_type_raises(self):
        """Objects without a canonical form are rejected."""
        with pytest.raises(TypeError):
            canonical_json({"x": object()})


class TestProvenanceHash:
    """Tests for compute_provenance_hash."""

    def test_matches_sha256_of_canonical_json(self):
        """The hash is SHA-256 over canonical JSON."""
        data = {"indicator": "gdp", "share": 0.8}
        expected = hashlib.sha256(
            json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")
        ).hexdigest()
        assert compute_provenance_hash(data) == expected

    def test_repeated_runs_are_identical(self, record_factory, unit_parser):
        """Repeated selections over one batch hash identically."""
        records = [
            record_factory("1", unit="USD Million per month"),
            record_factory("2", unit="EUR Million per quarter"),
            record_factory("3", unit="USD Billion per month"),
        ]
        config = IndicatorQualityConfig(enable_metrics=False)
        hashes = {
            compute_auto_targets(records, config, unit_parser=unit_parser)["gdp"].provenance_hash
            for _ in range(5)
        }
        assert len(hashes) == 1
