"""Custom exceptions for the enrollment domain."""


class EnrollmentError(Exception):
    """Base exception for enrollment domain errors."""


class ValidationError(EnrollmentError):
    """Input is malformed or empty."""


class NotFoundError(EnrollmentError):
    """Referenced student index, student, course or enrollment does not exist."""


class ConflictError(EnrollmentError):
    """Student is already enrolled in the course."""


class StorageError(EnrollmentError):
    """Persisting a change to the key-value store failed.

    In-memory state already reflects the change when this is raised.
    """
