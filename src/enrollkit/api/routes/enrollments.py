"""Enrollment endpoints."""

from fastapi import APIRouter, status

from enrollkit.api.dependencies import ServiceDep
from enrollkit.api.models import (
    APIResponse,
    EnrollmentCreate,
    EnrollmentResponse,
    enrollment_to_response,
)

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get("", response_model=APIResponse[list[EnrollmentResponse]])
def list_enrollments(
    service: ServiceDep, student_id: str | None = None
) -> APIResponse[list[EnrollmentResponse]]:
    """List enrollments, optionally only those of one student."""
    if student_id is not None:
        enrollments = service.enrollments_for_student(student_id)
    else:
        enrollments = list(service.enrollments)
    return APIResponse(data=[enrollment_to_response(e) for e in enrollments])


@router.post(
    "",
    response_model=APIResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_enrollment(
    enrollment: EnrollmentCreate, service: ServiceDep
) -> APIResponse[EnrollmentResponse]:
    """Enroll a student in a course."""
    created = await service.enroll_student_by_id(enrollment.student_id, enrollment.course_id)
    return APIResponse(data=enrollment_to_response(created))


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(enrollment_id: str, service: ServiceDep) -> None:
    """Unenroll: remove the enrollment and the course from its student."""
    await service.unenroll_student(enrollment_id)
