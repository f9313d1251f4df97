"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends

from enrollkit.domain import EnrollmentService

# Global EnrollmentService instance (initialized on app startup)
_service: EnrollmentService | None = None


def init_enrollment_service(service: EnrollmentService) -> EnrollmentService:
    """Install the global EnrollmentService instance."""
    global _service  # noqa: PLW0603
    _service = service
    return _service


def close_enrollment_service() -> None:
    """Drop the global EnrollmentService instance."""
    global _service  # noqa: PLW0603
    _service = None


def get_enrollment_service() -> Generator[EnrollmentService, None, None]:
    """Dependency that provides the EnrollmentService instance."""
    if _service is None:
        raise RuntimeError(
            "EnrollmentService not initialized. Call init_enrollment_service() first."
        )
    yield _service


# Type alias for dependency injection
ServiceDep = Annotated[EnrollmentService, Depends(get_enrollment_service)]
