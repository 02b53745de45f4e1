"""EconLang Exception Hierarchy.

Exceptions raised by the indicator quality core. Only structural problems
are raised; per-record data-quality problems degrade to documented defaults
and are logged instead.

Exception Hierarchy:
    EconLangException (base)
    ├── ConfigurationError
    └── DataException
        ├── InvalidSchema
        └── MissingData

All exceptions include rich context:
- error_code: Unique error identifier
- component: Name of the component that raised the error
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from econlang.exceptions import InvalidSchema
    >>> raise InvalidSchema(
    ...     message="Records must be an iterable of records",
    ...     component="KeyResolver",
    ...     context={"received_type": "int"}
    ... )
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class EconLangException(Exception):
    """Base exception for all EconLang errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "ECON_DATA_INVALID_SCHEMA")
        component: Name of the component that raised the error (optional)
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "ECON"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize EconLang exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            component: Name of the component raising the error
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate an error code based on the exception class.

        Returns:
            Error code like "ECON_DATA_INVALID_SCHEMA"
        """
        class_name = self.__class__.__name__
        # CamelCase -> SCREAMING_SNAKE_CASE
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', class_name).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        """String representation with error code and message."""
        parts = [f"[{self.error_code}]"]
        if self.component:
            parts.append(f"Component: {self.component}")
        parts.append(self.message)
        return " - ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"component='{self.component}')"
        )


# ==============================================================================
# Configuration Exceptions
# ==============================================================================

class ConfigurationError(EconLangException):
    """Configuration is invalid.

    Example:
        >>> raise ConfigurationError(
        ...     message="min_majority_share must be in (0, 1]",
        ...     context={"min_majority_share": 1.5}
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        """Initialize configuration error.

        Args:
            message: Error message
            component: Name of component
            context: Error context
            invalid_fields: Dictionary of field_name -> reason
        """
        if invalid_fields:
            context = context or {}
            context["invalid_fields"] = invalid_fields
        super().__init__(message, component=component, context=context)


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(EconLangException):
    """Base exception for data-related errors."""
    ERROR_PREFIX = "ECON_DATA"


class InvalidSchema(DataException):
    """Top-level input has the wrong structure.

    Raised when the batch handed to the core is not an iterable of records
    (per-record problems never raise).

    Example:
        >>> raise InvalidSchema(
        ...     message="Records must be an iterable of records",
        ...     context={"received_type": "int"}
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        expected_type: Optional[str] = None,
        received_type: Optional[str] = None,
    ):
        """Initialize invalid schema error.

        Args:
            message: Error message
            component: Name of component
            context: Error context
            expected_type: Description of the expected input shape
            received_type: Name of the type actually received
        """
        context = context or {}
        if expected_type:
            context["expected_type"] = expected_type
        if received_type:
            context["received_type"] = received_type
        super().__init__(message, component=component, context=context)


class MissingData(DataException):
    """Requested data is not present.

    Example:
        >>> raise MissingData(
        ...     message="No auto-target selection for indicator",
        ...     context={"indicator_key": "gdp"}
        ... )
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        missing_keys: Optional[List[str]] = None,
    ):
        """Initialize missing data error.

        Args:
            message: Error message
            component: Name of component
            context: Error context
            missing_keys: Keys that were requested but absent
        """
        if missing_keys:
            context = context or {}
            context["missing_keys"] = missing_keys
        super().__init__(message, component=component, context=context)


__all__ = [
    "EconLangException",
    "ConfigurationError",
    "DataException",
    "InvalidSchema",
    "MissingData",
]
