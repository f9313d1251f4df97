"""REST API for EnrollKit."""

from enrollkit.api.app import app, create_app
from enrollkit.api.models import (
    APIResponse,
    CourseResponse,
    EnrollmentResponse,
    StudentResponse,
)

__all__ = [
    "APIResponse",
    "CourseResponse",
    "EnrollmentResponse",
    "StudentResponse",
    "app",
    "create_app",
]
