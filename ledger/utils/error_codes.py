"""
Error Code Taxonomy for Autoledger

Structured error codes for better alerting, debugging, and monitoring.

Error Code Format:
- E001-E099: Validation errors (bad input data, missing identity)
- E200-E299: Database errors (connection, query failures)
- E400-E499: Business logic errors (ownership, lookups)
- E500-E599: System errors (unhandled failures)
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """High-level error categories for grouping and alerting."""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    BUSINESS_LOGIC = "business_logic"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Structured error codes with consistent format."""

    # Validation Errors (E001-E099)
    E001_MISSING_IDENTITY = "E001"  # No authenticated owner on the request
    E003_INVALID_DATA_TYPE = "E003"  # Bad enum value, unparsable date or number
    E004_OUT_OF_RANGE = "E004"  # limit/offset/cost/date range outside bounds
    E006_CARDINALITY_VIOLATION = "E006"  # Comparison list too short, too long or duplicated

    # Database Errors (E200-E299)
    E200_DB_QUERY_FAILED = "E200"  # Store query failed
    E201_DB_QUERY_TIMEOUT = "E201"  # Store query timed out

    # Business Logic Errors (E400-E499)
    E410_VEHICLE_ACCESS_DENIED = "E410"  # Named vehicles belong to someone else
    E411_VEHICLE_NOT_FOUND = "E411"  # Vehicle unknown to the caller

    # System Errors (E500-E599)
    E500_INTERNAL_SERVER_ERROR = "E500"  # Unhandled internal error


# Error metadata: maps error codes to categories and descriptions
ERROR_METADATA = {
    ErrorCode.E001_MISSING_IDENTITY: {
        "category": ErrorCategory.AUTHORIZATION,
        "description": "Request carries no authenticated owner",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E003_INVALID_DATA_TYPE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Field has wrong data type or unknown value",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E004_OUT_OF_RANGE: {
        "category": ErrorCategory.VALIDATION,
        "description": "Value outside acceptable range",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E006_CARDINALITY_VIOLATION: {
        "category": ErrorCategory.VALIDATION,
        "description": "Vehicle comparison list violates its size bounds",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E200_DB_QUERY_FAILED: {
        "category": ErrorCategory.DATABASE,
        "description": "Database query failed",
        "severity": "critical",
        "alert": True,
    },
    ErrorCode.E201_DB_QUERY_TIMEOUT: {
        "category": ErrorCategory.DATABASE,
        "description": "Database query timed out",
        "severity": "error",
        "alert": True,
    },
    ErrorCode.E410_VEHICLE_ACCESS_DENIED: {
        "category": ErrorCategory.AUTHORIZATION,
        "description": "One or more vehicles do not belong to the caller",
        "severity": "warning",
        "alert": False,
    },
    ErrorCode.E411_VEHICLE_NOT_FOUND: {
        "category": ErrorCategory.BUSINESS_LOGIC,
        "description": "Vehicle not found",
        "severity": "info",
        "alert": False,
    },
    ErrorCode.E500_INTERNAL_SERVER_ERROR: {
        "category": ErrorCategory.SYSTEM,
        "description": "Unhandled internal error",
        "severity": "critical",
        "alert": True,
    },
}


def get_error_metadata(error_code: ErrorCode) -> dict:
    """Get metadata for an error code."""
    return ERROR_METADATA.get(
        error_code,
        {
            "category": ErrorCategory.SYSTEM,
            "description": "Unknown error",
            "severity": "error",
            "alert": True,
        },
    )


class StructuredError:
    """Structured error with code, category, and metadata."""

    def __init__(self, code: ErrorCode, message: str, exception: Optional[Exception] = None, **context):
        """
        Create a structured error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            exception: Original exception (if applicable)
            **context: Additional context fields (field, vehicle_ids, etc.)
        """
        self.code = code
        self.message = message
        self.exception = exception
        self.context = context
        self.metadata = get_error_metadata(code)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        error_dict = {
            "code": self.code.value,
            "category": self.metadata["category"].value,
            "message": self.message,
            "severity": self.metadata["severity"],
            "alert": self.metadata["alert"],
        }

        if self.exception:
            error_dict["exception_type"] = type(self.exception).__name__
            error_dict["exception_message"] = str(self.exception)

        if self.context:
            error_dict["context"] = self.context

        return error_dict

    def to_response(self) -> dict:
        """Convert to the public API error body (no exception internals)."""
        return {
            "success": False,
            "error": {
                "code": self.code.value,
                "category": self.metadata["category"].value,
                "message": self.message,
                "details": self.context,
            },
        }

    def __str__(self) -> str:
        """String representation."""
        return f"[{self.code.value}] {self.message}"
