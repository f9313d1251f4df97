"""Pydantic models for REST API."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from enrollkit.domain.models import Enrollment, Student, SystemStats, describe

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T | None = None
    error: str | None = None


# Course models


class CourseCreate(BaseModel):
    """Request model for adding a course."""

    name: str = Field(..., min_length=1, max_length=255)


class CourseResponse(BaseModel):
    """Response model for a course."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    enrollment_count: int = 0


class CourseRef(BaseModel):
    """Course snapshot held by a student."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


# Student models


class StudentWrite(BaseModel):
    """Request model for adding or editing a student."""

    name: str = Field(..., min_length=1, max_length=255)
    kind: str = Field(..., description="Domestic or International (case-insensitive)")


class StudentResponse(BaseModel):
    """Response model for a student."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    kind: str
    tuition_rate: int
    label: str
    enrolled_courses: list[CourseRef]


def student_to_response(student: Student) -> StudentResponse:
    """Convert a Student entity to StudentResponse."""
    return StudentResponse(
        id=student.id,
        name=student.name,
        kind=student.kind.value,
        tuition_rate=student.tuition_rate,
        label=describe(student),
        enrolled_courses=[CourseRef.model_validate(c) for c in student.enrolled_courses],
    )


# Enrollment models


class EnrollmentCreate(BaseModel):
    """Request model for enrolling a student in a course."""

    student_id: str = Field(..., min_length=1)
    course_id: int


class EnrollmentResponse(BaseModel):
    """Response model for an enrollment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str | None
    course_id: int | None
    student_label: str
    course_name: str
    date: str


def enrollment_to_response(enrollment: Enrollment) -> EnrollmentResponse:
    """Convert an Enrollment entity to EnrollmentResponse."""
    return EnrollmentResponse.model_validate(enrollment)


# Stats models


class StatsResponse(BaseModel):
    """Response model for collection totals."""

    model_config = ConfigDict(from_attributes=True)

    total_students: int
    total_courses: int
    total_enrollments: int
    total_tuition: int


def stats_to_response(stats: SystemStats) -> StatsResponse:
    """Convert a SystemStats value to StatsResponse."""
    return StatsResponse.model_validate(stats)
