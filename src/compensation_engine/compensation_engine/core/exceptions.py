class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ConfigurationError(DomainError):
    """Raised when policy configuration is missing, unparseable or overlapping."""


class DataAnomaly(DomainError):
    """Raised for per-student data problems that must be flagged, not fatal."""


class RangeError(ValidationError):
    """Raised for inverted date ranges or absence checks on today/future dates."""


class TeacherNotFoundError(DomainError):
    """Raised when a teacher id is unknown to the attendance store."""
