"""EnrollmentService - the aggregate root for students, courses and enrollments."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from enrollkit.domain.exceptions import (
    ConflictError,
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
    course_from_dict,
    course_to_dict,
    default_courses,
    describe,
    enrollment_from_dict,
    enrollment_to_dict,
    new_student,
    student_from_dict,
    student_to_dict,
)
from enrollkit.kv_store.exceptions import KeyValueStoreError
from enrollkit.logging import get_logger

if TYPE_CHECKING:
    from enrollkit.kv_store.interfaces import KeyValueStore

logger = get_logger("domain.service")

STUDENTS_KEY = "students"
COURSES_KEY = "courses"
ENROLLMENTS_KEY = "enrollments"
ALL_KEYS = (STUDENTS_KEY, COURSES_KEY, ENROLLMENTS_KEY)


def _require_name(name: str | None, what: str) -> str:
    if name is None or not str(name).strip():
        raise ValidationError(f"{what} is required")
    return str(name).strip()


def _parse_kind(kind: StudentKind | str | None) -> StudentKind:
    if kind is None:
        raise ValidationError("Student kind is required")
    try:
        return StudentKind.parse(kind)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _parse_course_id(course_id: int | str | None) -> int:
    if isinstance(course_id, bool):
        raise ValidationError(f"Invalid course ID '{course_id}'")
    if isinstance(course_id, int):
        return course_id
    if isinstance(course_id, str):
        try:
            return int(course_id.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid course ID '{course_id}'")


def _as_list(value: Any, key: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"Stored value under '{key}' is not a list")
    return value


def _legacy_labels(student: Student) -> tuple[str, str]:
    """Labels an enrollment written without foreign keys may carry.

    Older records were labelled with the class name of the student, e.g.
    ``"Ada (DomesticStudent)"``, alongside the current ``describe`` form.
    """
    return describe(student), f"{student.name} ({student.kind.value}Student)"


class EnrollmentService:
    """Owner of the student, course and enrollment collections.

    Every mutation goes through this class: it validates before touching
    state, applies cascades, and writes the affected keys to the key-value
    store before returning. Mutations are serialized with an asyncio lock.

    Students are addressed by position for list-driven callers; each
    index-based operation resolves the index to the student's id and then
    runs the id-based code path.
    """

    def __init__(self, store: KeyValueStore) -> None:
        """Initialize the service in the default seed state.

        Call ``load()`` before use to pick up stored records.

        Args:
            store: Key-value store the collections are persisted to
        """
        self._store = store
        self._lock = asyncio.Lock()
        self._students: list[Student] = []
        self._courses: list[Course] = default_courses()
        self._enrollments: list[Enrollment] = []

    # --- Read-only views ---

    @property
    def students(self) -> tuple[Student, ...]:
        return tuple(self._students)

    @property
    def courses(self) -> tuple[Course, ...]:
        return tuple(self._courses)

    @property
    def enrollments(self) -> tuple[Enrollment, ...]:
        return tuple(self._enrollments)

    # --- Load ---

    async def load(self) -> None:
        """Load all collections from the store.

        Seeds and persists the default courses when none are stored. Legacy
        enrollments without foreign keys are matched to live records by label
        and course name. Never raises: on any failure the collections reset
        to the default seed state and the error is logged.
        """
        async with self._lock:
            try:
                await self._load()
            except Exception:  # noqa: BLE001
                logger.exception("Failed to load records, resetting to defaults")
                self._reset_memory()

    async def _load(self) -> None:
        raw_students = await self._store.get(STUDENTS_KEY)
        raw_courses = await self._store.get(COURSES_KEY)
        raw_enrollments = await self._store.get(ENROLLMENTS_KEY)

        seeded = raw_courses is None
        if seeded:
            courses = default_courses()
        else:
            courses = [course_from_dict(c) for c in _as_list(raw_courses, COURSES_KEY)]

        students: list[Student] = []
        if raw_students is not None:
            for raw in _as_list(raw_students, STUDENTS_KEY):
                student = student_from_dict(raw, fallback_kind=StudentKind.INTERNATIONAL)
                raw_kind = raw.get("kind", raw.get("type"))
                if raw_kind is None or str(raw_kind).lower() != student.kind.value.lower():
                    logger.warning(
                        "Student %s has unknown kind %r, loaded as %s",
                        student.id,
                        raw_kind,
                        student.kind.value,
                    )
                students.append(student)

        enrollments: list[Enrollment] = []
        if raw_enrollments is not None:
            for raw in _as_list(raw_enrollments, ENROLLMENTS_KEY):
                enrollments.append(enrollment_from_dict(raw))

        # First match wins when labels or course names repeat
        labels: dict[str, Student] = {}
        for student in students:
            for label in _legacy_labels(student):
                labels.setdefault(label, student)
        names: dict[str, Course] = {}
        for course in courses:
            names.setdefault(course.name, course)
        for i, enrollment in enumerate(enrollments):
            if enrollment.student_id is not None and enrollment.course_id is not None:
                continue
            student = labels.get(enrollment.student_label)
            course = names.get(enrollment.course_name)
            if student is not None and course is not None:
                enrollments[i] = replace(enrollment, student_id=student.id, course_id=course.id)
                logger.debug("Reconciled legacy enrollment %s", enrollment.id)

        self._students = students
        self._courses = courses
        self._enrollments = enrollments

        if seeded:
            await self._persist(COURSES_KEY)

        logger.info(
            "Loaded %d students, %d courses, %d enrollments",
            len(self._students),
            len(self._courses),
            len(self._enrollments),
        )

    # --- Student operations ---

    async def add_student(self, name: str, kind: StudentKind | str) -> Student:
        """Register a new student.

        Raises:
            ValidationError: If name is empty or kind is unknown
            StorageError: If persisting fails
        """
        name = _require_name(name, "Student name")
        student_kind = _parse_kind(kind)
        async with self._lock:
            student = new_student(name, student_kind)
            self._students.append(student)
            await self._persist(STUDENTS_KEY)
        logger.info("Added student %s (%s)", student.id, describe(student))
        return student

    async def edit_student(self, index: int, name: str, kind: StudentKind | str) -> Student:
        """Replace the student at index with new name and kind.

        The id and enrolled courses are kept; enrollment labels follow the
        new name.

        Raises:
            ValidationError: If name is empty or kind is unknown
            NotFoundError: If index is out of range
            StorageError: If persisting fails
        """
        name = _require_name(name, "Student name")
        student_kind = _parse_kind(kind)
        async with self._lock:
            student_id = self._student_at(index).id
            return await self._edit_student(student_id, name, student_kind)

    async def edit_student_by_id(
        self, student_id: str, name: str, kind: StudentKind | str
    ) -> Student:
        """Same as ``edit_student`` addressed by student id."""
        name = _require_name(name, "Student name")
        student_kind = _parse_kind(kind)
        async with self._lock:
            return await self._edit_student(student_id, name, student_kind)

    async def _edit_student(self, student_id: str, name: str, kind: StudentKind) -> Student:
        position = self._student_position(student_id)
        old = self._students[position]
        student = Student(
            id=old.id, name=name, kind=kind, enrolled_courses=old.enrolled_courses
        )
        self._students[position] = student

        label = describe(student)
        self._enrollments = [
            replace(e, student_label=label) if e.student_id == student.id else e
            for e in self._enrollments
        ]

        await self._persist(*ALL_KEYS)
        logger.info("Edited student %s -> %s", student.id, label)
        return student

    async def delete_student(self, index: int) -> None:
        """Remove the student at index and every enrollment referencing it.

        Raises:
            NotFoundError: If index is out of range
            StorageError: If persisting fails
        """
        async with self._lock:
            student_id = self._student_at(index).id
            await self._delete_student(student_id)

    async def delete_student_by_id(self, student_id: str) -> None:
        """Same as ``delete_student`` addressed by student id."""
        async with self._lock:
            await self._delete_student(student_id)

    async def _delete_student(self, student_id: str) -> None:
        position = self._student_position(student_id)
        del self._students[position]

        before = len(self._enrollments)
        self._enrollments = [e for e in self._enrollments if e.student_id != student_id]

        await self._persist(*ALL_KEYS)
        logger.info(
            "Deleted student %s and %d enrollments",
            student_id,
            before - len(self._enrollments),
        )

    # --- Course operations ---

    async def add_course(self, name: str) -> Course:
        """Add a course with id one above the current maximum (1 if none).

        Raises:
            ValidationError: If name is empty
            StorageError: If persisting fails
        """
        name = _require_name(name, "Course name")
        async with self._lock:
            next_id = max((c.id for c in self._courses), default=0) + 1
            course = Course(id=next_id, name=name)
            self._courses.append(course)
            await self._persist(COURSES_KEY)
        logger.info("Added course %d (%s)", course.id, course.name)
        return course

    async def delete_course(self, course_id: int | str) -> None:
        """Remove a course, strip it from all students, drop its enrollments.

        Raises:
            ValidationError: If course_id does not parse as an integer
            NotFoundError: If no course has that id
            StorageError: If persisting fails
        """
        parsed_id = _parse_course_id(course_id)
        async with self._lock:
            course = self._find_course(parsed_id)
            self._courses.remove(course)
            self._students = [s.without_course(parsed_id) for s in self._students]

            before = len(self._enrollments)
            self._enrollments = [e for e in self._enrollments if e.course_id != parsed_id]

            await self._persist(*ALL_KEYS)
        logger.info(
            "Deleted course %d and %d enrollments",
            parsed_id,
            before - len(self._enrollments),
        )

    # --- Enrollment operations ---

    async def enroll_student(self, student_index: int, course_id: int | str) -> Enrollment:
        """Enroll the student at student_index in a course.

        Raises:
            ValidationError: If course_id does not parse as an integer
            NotFoundError: If the index or the course does not exist
            ConflictError: If the student is already enrolled in the course
            StorageError: If persisting fails
        """
        parsed_id = _parse_course_id(course_id)
        async with self._lock:
            student_id = self._student_at(student_index).id
            return await self._enroll_student(student_id, parsed_id)

    async def enroll_student_by_id(self, student_id: str, course_id: int | str) -> Enrollment:
        """Same as ``enroll_student`` addressed by student id."""
        parsed_id = _parse_course_id(course_id)
        async with self._lock:
            return await self._enroll_student(student_id, parsed_id)

    async def _enroll_student(self, student_id: str, course_id: int) -> Enrollment:
        position = self._student_position(student_id)
        student = self._students[position]
        course = self._find_course(course_id)

        already = student.is_enrolled_in(course_id) or any(
            e.student_id == student_id and e.course_id == course_id for e in self._enrollments
        )
        if already:
            raise ConflictError(
                f"Student '{student.name}' is already enrolled in '{course.name}'"
            )

        self._students[position] = student.with_course(course)
        enrollment = Enrollment(
            student_id=student.id,
            course_id=course.id,
            student_label=describe(student),
            course_name=course.name,
        )
        self._enrollments.append(enrollment)

        await self._persist(*ALL_KEYS)
        logger.info("Enrolled student %s in course %d (%s)", student.id, course.id, enrollment.id)
        return enrollment

    async def unenroll_student(self, enrollment_id: str) -> None:
        """Remove an enrollment and the course from its student, if still present.

        Raises:
            NotFoundError: If the enrollment does not exist
            StorageError: If persisting fails
        """
        async with self._lock:
            enrollment = self._find_enrollment(enrollment_id)
            self._enrollments.remove(enrollment)

            if enrollment.student_id is not None and enrollment.course_id is not None:
                for i, student in enumerate(self._students):
                    if student.id == enrollment.student_id:
                        self._students[i] = student.without_course(enrollment.course_id)
                        break

            await self._persist(*ALL_KEYS)
        logger.info("Removed enrollment %s", enrollment_id)

    # --- Reset ---

    async def reset_all(self) -> None:
        """Clear everything, re-seed the default courses and rewrite the store.

        Raises:
            StorageError: If the store fails
        """
        async with self._lock:
            self._reset_memory()
            try:
                for key in ALL_KEYS:
                    await self._store.remove(key)
            except KeyValueStoreError as e:
                logger.error("Failed to clear store: %s", e)
                raise StorageError("Failed to clear stored records") from e
            await self._persist(COURSES_KEY)
        logger.info("Reset all records to defaults")

    # --- Queries ---

    def student_index(self, student_id: str) -> int:
        """Current position of a student.

        Raises:
            NotFoundError: If no student has that id
        """
        return self._student_position(student_id)

    def get_student(self, student_id: str) -> Student:
        """Raises NotFoundError if absent."""
        return self._students[self._student_position(student_id)]

    def get_course(self, course_id: int | str) -> Course:
        """Raises ValidationError / NotFoundError."""
        return self._find_course(_parse_course_id(course_id))

    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        """Raises NotFoundError if absent."""
        return self._find_enrollment(enrollment_id)

    def enrollment_count(self, course_id: int) -> int:
        return sum(1 for e in self._enrollments if e.course_id == course_id)

    def search_courses(self, term: str | None = None) -> list[Course]:
        """Courses whose name contains term, case-insensitively.

        A blank term matches every course.
        """
        needle = (term or "").strip().lower()
        if not needle:
            return list(self._courses)
        return [c for c in self._courses if needle in c.name.lower()]

    def available_courses(self, student_id: str) -> list[Course]:
        """Courses the student is not yet enrolled in."""
        student = self.get_student(student_id)
        return [c for c in self._courses if not student.is_enrolled_in(c.id)]

    def enrollments_for_student(self, student_id: str) -> list[Enrollment]:
        return [e for e in self._enrollments if e.student_id == student_id]

    def stats(self) -> SystemStats:
        """Totals over the collections, including tuition owed for enrolled courses."""
        return SystemStats(
            total_students=len(self._students),
            total_courses=len(self._courses),
            total_enrollments=len(self._enrollments),
            total_tuition=sum(s.tuition_rate * len(s.enrolled_courses) for s in self._students),
        )

    # --- Internal helpers ---

    def _student_at(self, index: int) -> Student:
        if isinstance(index, bool) or not isinstance(index, int):
            raise NotFoundError(f"Invalid student index {index!r}")
        if index < 0 or index >= len(self._students):
            raise NotFoundError(f"Invalid student index {index}")
        return self._students[index]

    def _student_position(self, student_id: str) -> int:
        for i, student in enumerate(self._students):
            if student.id == student_id:
                return i
        raise NotFoundError(f"Student with id '{student_id}' not found")

    def _find_course(self, course_id: int) -> Course:
        for course in self._courses:
            if course.id == course_id:
                return course
        raise NotFoundError(f"Course with id '{course_id}' not found")

    def _find_enrollment(self, enrollment_id: str) -> Enrollment:
        for enrollment in self._enrollments:
            if enrollment.id == enrollment_id:
                return enrollment
        raise NotFoundError(f"Enrollment with id '{enrollment_id}' not found")

    def _reset_memory(self) -> None:
        self._students = []
        self._courses = default_courses()
        self._enrollments = []

    def _serialize(self, key: str) -> list[dict[str, Any]]:
        if key == STUDENTS_KEY:
            return [student_to_dict(s) for s in self._students]
        if key == COURSES_KEY:
            return [course_to_dict(c) for c in self._courses]
        return [enrollment_to_dict(e) for e in self._enrollments]

    async def _persist(self, *keys: str) -> None:
        """Write the given collections to the store.

        Raises:
            StorageError: If any write fails; in-memory state is kept as is
        """
        for key in keys:
            try:
                await self._store.set(key, self._serialize(key))
            except KeyValueStoreError as e:
                logger.error("Failed to save %s: %s", key, e)
                raise StorageError(f"Failed to save {key}") from e
