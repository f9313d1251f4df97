"""Entity model for students, courses and enrollments.

Entities are immutable values. Changing a student or an enrollment means
building a new instance (``dataclasses.replace``) with the same id; only the
enrollment service swaps instances inside its collections.

The ``*_to_dict`` / ``*_from_dict`` helpers convert between entities and the
plain records kept in the key-value store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class StudentKind(StrEnum):
    """Student kind enum."""

    DOMESTIC = "Domestic"
    INTERNATIONAL = "International"

    @classmethod
    def parse(cls, value: str | StudentKind) -> StudentKind:
        """Parse a kind name case-insensitively.

        Raises:
            ValueError: If value names no known kind.
        """
        if isinstance(value, StudentKind):
            return value
        normalized = str(value).strip().lower()
        for kind in cls:
            if kind.value.lower() == normalized:
                return kind
        raise ValueError(f"Unknown student kind '{value}'")


TUITION_RATES: dict[StudentKind, int] = {
    StudentKind.DOMESTIC: 1000,
    StudentKind.INTERNATIONAL: 1500,
}

DEFAULT_COURSE_NAMES = ("Mathematics", "Computer Science", "Physics")


def generate_id() -> str:
    """Generate a new opaque identifier."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


def tuition_rate(kind: StudentKind) -> int:
    """Tuition rate charged per course for a student kind."""
    return TUITION_RATES[kind]


@dataclass(frozen=True)
class Course:
    """A course offered for enrollment.

    Attributes:
        id: Positive integer, unique within the course collection.
        name: Display name.
    """

    id: int
    name: str


@dataclass(frozen=True)
class Student:
    """A registered student.

    Attributes:
        id: Opaque identifier, fixed for the life of the student.
        name: Display name.
        kind: Domestic or International; determines tuition rate.
        enrolled_courses: Snapshots of the courses taken, unique by course id.
    """

    id: str
    name: str
    kind: StudentKind
    enrolled_courses: tuple[Course, ...] = ()

    @property
    def tuition_rate(self) -> int:
        return tuition_rate(self.kind)

    def is_enrolled_in(self, course_id: int) -> bool:
        """Check whether the student already holds the course."""
        return any(c.id == course_id for c in self.enrolled_courses)

    def with_course(self, course: Course) -> Student:
        """Return a copy enrolled in course; unchanged if already enrolled."""
        if self.is_enrolled_in(course.id):
            return self
        return Student(self.id, self.name, self.kind, (*self.enrolled_courses, course))

    def without_course(self, course_id: int) -> Student:
        """Return a copy with course_id removed from enrolled courses."""
        remaining = tuple(c for c in self.enrolled_courses if c.id != course_id)
        return Student(self.id, self.name, self.kind, remaining)


@dataclass(frozen=True)
class Enrollment:
    """Join record between a student and a course.

    Attributes:
        id: Opaque identifier; a re-enrollment gets a new one.
        student_id: Id of the enrolled student (None for unreconciled legacy records).
        course_id: Id of the course (None for unreconciled legacy records).
        student_label: ``describe()`` output of the student, kept current on edit.
        course_name: Name of the course at enrollment time.
        date: ISO 8601 creation timestamp.
    """

    student_id: str | None
    course_id: int | None
    student_label: str
    course_name: str
    id: str = field(default_factory=generate_id)
    date: str = field(default_factory=utc_timestamp)


@dataclass
class SystemStats:
    """Aggregated counts over the three collections."""

    total_students: int
    total_courses: int
    total_enrollments: int
    total_tuition: int


def describe(student: Student) -> str:
    """Render a student as ``"<name> (<kind>)"``."""
    return f"{student.name} ({student.kind.value})"


def new_student(name: str, kind: StudentKind) -> Student:
    """Create a student with a fresh id and no courses."""
    return Student(id=generate_id(), name=name, kind=kind)


def default_courses() -> list[Course]:
    """Return the seed course list (ids 1..3)."""
    return [Course(id=i, name=name) for i, name in enumerate(DEFAULT_COURSE_NAMES, start=1)]


# --- Plain-record conversion ---


def course_to_dict(course: Course) -> dict[str, Any]:
    return {"id": course.id, "name": course.name}


def course_from_dict(data: dict[str, Any]) -> Course:
    """Build a Course from a stored record.

    Raises:
        ValueError: If id or name is missing or id is not an integer.
    """
    if not isinstance(data, dict) or "id" not in data or "name" not in data:
        raise ValueError(f"Malformed course record: {data!r}")
    return Course(id=int(data["id"]), name=str(data["name"]))


def student_to_dict(student: Student) -> dict[str, Any]:
    return {
        "id": student.id,
        "name": student.name,
        "kind": student.kind.value,
        "tuitionRate": student.tuition_rate,
        "courses": [course_to_dict(c) for c in student.enrolled_courses],
    }


def student_from_dict(data: dict[str, Any], fallback_kind: StudentKind) -> Student:
    """Build a Student from a stored record.

    Accepts the legacy ``type`` key for the kind. A missing id is generated.
    Unknown kinds resolve to fallback_kind.

    Raises:
        ValueError: If the record is not a mapping or has no name.
    """
    if not isinstance(data, dict) or "name" not in data:
        raise ValueError(f"Malformed student record: {data!r}")

    raw_kind = data.get("kind", data.get("type"))
    try:
        kind = StudentKind.parse(raw_kind) if raw_kind is not None else fallback_kind
    except ValueError:
        kind = fallback_kind

    courses: list[Course] = []
    raw_courses = data.get("courses")
    if isinstance(raw_courses, list):
        for raw_course in raw_courses:
            course = course_from_dict(raw_course)
            if not any(c.id == course.id for c in courses):
                courses.append(course)

    return Student(
        id=str(data["id"]) if data.get("id") else generate_id(),
        name=str(data["name"]),
        kind=kind,
        enrolled_courses=tuple(courses),
    )


def enrollment_to_dict(enrollment: Enrollment) -> dict[str, Any]:
    return {
        "id": enrollment.id,
        "studentId": enrollment.student_id,
        "courseId": enrollment.course_id,
        "studentLabel": enrollment.student_label,
        "courseName": enrollment.course_name,
        "date": enrollment.date,
    }


def enrollment_from_dict(data: dict[str, Any]) -> Enrollment:
    """Build an Enrollment from a stored record.

    Accepts the legacy ``student`` / ``course`` label keys. A missing id is
    generated; missing foreign keys are left as None for later reconciliation.

    Raises:
        ValueError: If the record is not a mapping.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Malformed enrollment record: {data!r}")

    course_id = data.get("courseId")
    return Enrollment(
        id=str(data["id"]) if data.get("id") else generate_id(),
        student_id=str(data["studentId"]) if data.get("studentId") else None,
        course_id=int(course_id) if course_id is not None else None,
        student_label=str(data.get("studentLabel", data.get("student", ""))),
        course_name=str(data.get("courseName", data.get("course", ""))),
        date=str(data.get("date") or utc_timestamp()),
    )
