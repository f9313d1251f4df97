"""Course endpoints."""

from fastapi import APIRouter, status

from enrollkit.api.dependencies import ServiceDep
from enrollkit.api.models import APIResponse, CourseCreate, CourseResponse

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=APIResponse[list[CourseResponse]])
def list_courses(
    service: ServiceDep, search: str | None = None
) -> APIResponse[list[CourseResponse]]:
    """List courses, optionally filtered by a case-insensitive name search."""
    courses = service.search_courses(search)
    return APIResponse(
        data=[
            CourseResponse(id=c.id, name=c.name, enrollment_count=service.enrollment_count(c.id))
            for c in courses
        ]
    )


@router.post(
    "",
    response_model=APIResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_course(course: CourseCreate, service: ServiceDep) -> APIResponse[CourseResponse]:
    """Add a course."""
    created = await service.add_course(course.name)
    return APIResponse(data=CourseResponse(id=created.id, name=created.name))


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(course_id: str, service: ServiceDep) -> None:
    """Delete a course, removing it from every student and enrollment."""
    await service.delete_course(course_id)
