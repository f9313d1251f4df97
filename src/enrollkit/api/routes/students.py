"""Student CRUD endpoints."""

from fastapi import APIRouter, status

from enrollkit.api.dependencies import ServiceDep
from enrollkit.api.models import (
    APIResponse,
    CourseResponse,
    StudentResponse,
    StudentWrite,
    student_to_response,
)

router = APIRouter(prefix="/students", tags=["students"])


@router.get("", response_model=APIResponse[list[StudentResponse]])
def list_students(service: ServiceDep) -> APIResponse[list[StudentResponse]]:
    """List all students in registration order."""
    return APIResponse(data=[student_to_response(s) for s in service.students])


@router.post(
    "",
    response_model=APIResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    student: StudentWrite, service: ServiceDep
) -> APIResponse[StudentResponse]:
    """Register a new student."""
    created = await service.add_student(student.name, student.kind)
    return APIResponse(data=student_to_response(created))


@router.get("/{student_id}", response_model=APIResponse[StudentResponse])
def get_student(student_id: str, service: ServiceDep) -> APIResponse[StudentResponse]:
    """Get a student by ID."""
    return APIResponse(data=student_to_response(service.get_student(student_id)))


@router.put("/{student_id}", response_model=APIResponse[StudentResponse])
async def update_student(
    student_id: str, student: StudentWrite, service: ServiceDep
) -> APIResponse[StudentResponse]:
    """Replace a student's name and kind."""
    updated = await service.edit_student_by_id(student_id, student.name, student.kind)
    return APIResponse(data=student_to_response(updated))


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: str, service: ServiceDep) -> None:
    """Delete a student and its enrollments."""
    await service.delete_student_by_id(student_id)


@router.get(
    "/{student_id}/available-courses",
    response_model=APIResponse[list[CourseResponse]],
)
def available_courses(student_id: str, service: ServiceDep) -> APIResponse[list[CourseResponse]]:
    """List courses the student is not enrolled in."""
    courses = service.available_courses(student_id)
    return APIResponse(
        data=[
            CourseResponse(id=c.id, name=c.name, enrollment_count=service.enrollment_count(c.id))
            for c in courses
        ]
    )
