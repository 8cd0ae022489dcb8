"""Domain-specific exceptions for the car-wash sales engine.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from WashAPIError for easy catching.
"""

from __future__ import annotations


class WashAPIError(Exception):
    """Base exception for all wash_core errors.

    This is the base class for all domain-specific exceptions in the package.
    Users can catch this exception to handle any wash_core error.
    """

    pass


class ConfigError(WashAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid settings values are provided (timezone, shift hours, top N)
    - Environment overrides cannot be parsed
    """

    pass


class InvalidRange(ConfigError):
    """Raised when a reporting date range cannot be used.

    This exception is raised when:
    - The start date or the end date is missing
    - A date string is not in YYYY-MM-DD format
    - The start date is after the end date

    No partial report is ever produced when this is raised.
    """

    pass


class DataQualityError(WashAPIError):
    """Raised when input data does not have the expected shape.

    This exception is raised when:
    - Required columns are missing from a payments DataFrame
    - A payment document cannot be normalized
    """

    pass


class MalformedRecord(DataQualityError):
    """Raised when a single payment document is unusable.

    A document is malformed when it has no ``createdAt`` instant or its
    price is not numeric. Batch loaders absorb this error, drop the record
    and report how many records were skipped.
    """

    def __init__(self, message: str, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id
