"""Tests for EconLang Exception Hierarchy.

Test suite covering:
- Base exception functionality
- Configuration errors
- DataException hierarchy
- Exception serialization
"""

import json
from datetime import datetime

import pytest

from econlang.exceptions import (
    ConfigurationError,
    DataException,
    EconLangException,
    InvalidSchema,
    MissingData,
)


# ==============================================================================
# Base Exception Tests
# ==============================================================================

class TestEconLangException:
    """Tests for base EconLangException."""

    def test_create_basic_exception(self):
        """Can create basic exception with message."""
        exc = EconLangException("Something went wrong")

        assert exc.message == "Something went wrong"
        assert exc.error_code == "ECON_ECON_LANG_EXCEPTION"
        assert exc.component is None
        assert exc.context == {}
        assert isinstance(exc.timestamp, datetime)

    def test_explicit_error_code(self):
        """An explicit error code is kept."""
        exc = EconLangException("Test error", error_code="ECON_TEST_001")
        assert exc.error_code == "ECON_TEST_001"

    def test_exception_str_representation(self):
        """String form includes code, component and message."""
        exc = EconLangException(
            message="Test error",
            error_code="ECON_TEST_001",
            component="KeyResolver",
        )
        assert str(exc) == "[ECON_TEST_001] - Component: KeyResolver - Test error"

    def test_exception_to_dict(self):
        """Exception can be converted to dictionary."""
        exc = EconLangException(
            message="Test error",
            component="KeyResolver",
            context={"key": "value"},
        )
        exc_dict = exc.to_dict()

        assert exc_dict["error_type"] == "EconLangException"
        assert exc_dict["message"] == "Test error"
        assert exc_dict["component"] == "KeyResolver"
        assert exc_dict["context"] == {"key": "value"}
        assert "timestamp" in exc_dict

    def test_exception_to_json(self):
        """Exception can be serialized to JSON."""
        exc = EconLangException(message="Test error", context={"key": "value"})
        parsed = json.loads(exc.to_json())

        assert parsed["message"] == "Test error"
        assert parsed["context"]["key"] == "value"

    def test_repr(self):
        """repr names the class and code."""
        exc = EconLangException("boom", error_code="ECON_X")
        assert repr(exc).startswith("EconLangException(message='boom'")


# ==============================================================================
# Configuration Exception Tests
# ==============================================================================

class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_invalid_fields_in_context(self):
        """Invalid fields are stored in the context."""
        exc = ConfigurationError(
            message="Invalid configuration",
            component="IndicatorQualityConfig",
            invalid_fields={"min_majority_share": "must be in (0, 1]"},
        )
        assert exc.error_code == "ECON_CONFIGURATION_ERROR"
        assert exc.context["invalid_fields"] == {"min_majority_share": "must be in (0, 1]"}
        assert isinstance(exc, EconLangException)


# ==============================================================================
# Data Exception Tests
# ==============================================================================

class TestDataExceptions:
    """Tests for the DataException hierarchy."""

    def test_invalid_schema(self):
        """InvalidSchema records expected and received types."""
        exc = InvalidSchema(
            message="Records must be an iterable",
            component="KeyResolver",
            expected_type="Iterable[IndicatorRecord]",
            received_type="int",
        )
        assert exc.error_code == "ECON_DATA_INVALID_SCHEMA"
        assert exc.context == {
            "expected_type": "Iterable[IndicatorRecord]",
            "received_type": "int",
        }
        assert isinstance(exc, DataException)

    def test_missing_data(self):
        """MissingData records the absent keys."""
        exc = MissingData(message="No selection", missing_keys=["gdp"])
        assert exc.error_code == "ECON_DATA_MISSING_DATA"
        assert exc.context["missing_keys"] == ["gdp"]

    def test_catch_by_base_class(self):
        """Data errors can be caught as EconLangException."""
        with pytest.raises(EconLangException):
            raise MissingData(message="No selection")
