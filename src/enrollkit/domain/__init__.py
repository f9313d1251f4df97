"""Enrollment domain - entity model and the service that owns it."""

from enrollkit.domain.exceptions import (
    ConflictError,
    EnrollmentError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from enrollkit.domain.models import (
    Course,
    Enrollment,
    Student,
    StudentKind,
    SystemStats,
    describe,
    tuition_rate,
)
from enrollkit.domain.service import EnrollmentService

__all__ = [
    "ConflictError",
    "Course",
    "Enrollment",
    "EnrollmentError",
    "EnrollmentService",
    "NotFoundError",
    "StorageError",
    "Student",
    "StudentKind",
    "SystemStats",
    "ValidationError",
    "describe",
    "tuition_rate",
]
