"""Totals and reset endpoints."""

from fastapi import APIRouter

from enrollkit.api.dependencies import ServiceDep
from enrollkit.api.models import APIResponse, StatsResponse, stats_to_response

router = APIRouter(tags=["system"])


@router.get("/stats", response_model=APIResponse[StatsResponse])
def get_stats(service: ServiceDep) -> APIResponse[StatsResponse]:
    """Counts of students, courses and enrollments, and total tuition."""
    return APIResponse(data=stats_to_response(service.stats()))


@router.post("/reset", response_model=APIResponse[StatsResponse])
async def reset(service: ServiceDep) -> APIResponse[StatsResponse]:
    """Clear all records and restore the default courses."""
    await service.reset_all()
    return APIResponse(data=stats_to_response(service.stats()))
