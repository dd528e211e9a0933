"""Custom exceptions for the IPO return estimator.

Estimator, ingestion and dataset errors live here to avoid circular
imports between the engine, the data layer and the API.
"""


class EstimatorError(Exception):
    """Base exception for all estimator errors."""


class InvalidCapital(EstimatorError):
    """Raised when the capital size (aum) is not strictly positive."""


class InvalidWindow(EstimatorError):
    """Raised when the estimation window spans zero or negative days."""


class InvalidRecord(EstimatorError):
    """Raised when an allotment record violates its field invariants."""


class DatasetNotFound(EstimatorError):
    """Raised when no dataset file can be located."""


class DatasetFormatError(EstimatorError):
    """Raised when a dataset file cannot be parsed as a sheet mapping."""
