"""
Custom exceptions for Autoledger.

This module provides a hierarchy of exceptions for better error handling
and more informative error messages throughout the application. Each
exception carries the HTTP status and error code the API reports for it.
"""

from utils.error_codes import ErrorCode


class AutoledgerError(Exception):
    """Base exception for all Autoledger errors."""

    status_code = 500
    error_code = ErrorCode.E500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(AutoledgerError):
    """Database operation failed."""

    error_code = ErrorCode.E200_DB_QUERY_FAILED


class QueryTimeoutError(DatabaseError):
    """Database query was cancelled by a statement timeout or waited too long for a connection."""

    error_code = ErrorCode.E201_DB_QUERY_TIMEOUT


class FilterValidationError(AutoledgerError):
    """A request filter was malformed or outside its accepted range."""

    status_code = 400
    error_code = ErrorCode.E003_INVALID_DATA_TYPE

    def __init__(self, message: str, field: str = None, value=None, out_of_range: bool = False):
        details = {}
        if field:
            details['field'] = field
        if value is not None:
            details['value'] = value
        super().__init__(message, details)
        self.field = field
        self.value = value
        if out_of_range:
            self.error_code = ErrorCode.E004_OUT_OF_RANGE


class ComparisonCardinalityError(AutoledgerError):
    """Vehicle comparison requested with too few, too many or duplicate ids."""

    status_code = 400
    error_code = ErrorCode.E006_CARDINALITY_VIOLATION

    def __init__(self, message: str, bound: str = None, received: int = None):
        details = {}
        if bound:
            details['bound'] = bound
        if received is not None:
            details['received'] = received
        super().__init__(message, details)
        self.bound = bound
        self.received = received


class AuthenticationRequiredError(AutoledgerError):
    """No authenticated owner was attached to the request."""

    status_code = 401
    error_code = ErrorCode.E001_MISSING_IDENTITY


class VehicleAccessDeniedError(AutoledgerError):
    """Explicitly named vehicles do not belong to the caller."""

    status_code = 403
    error_code = ErrorCode.E410_VEHICLE_ACCESS_DENIED

    def __init__(self, message: str, vehicle_ids: list = None):
        details = {}
        if vehicle_ids:
            details['vehicle_ids'] = vehicle_ids
        super().__init__(message, details)
        self.vehicle_ids = vehicle_ids or []


class VehicleNotFoundError(AutoledgerError):
    """Vehicle does not exist for the caller (never reveals foreign vehicles)."""

    status_code = 404
    error_code = ErrorCode.E411_VEHICLE_NOT_FOUND

    def __init__(self, message: str, vehicle_id: int = None):
        details = {}
        if vehicle_id is not None:
            details['vehicle_id'] = vehicle_id
        super().__init__(message, details)
        self.vehicle_id = vehicle_id
