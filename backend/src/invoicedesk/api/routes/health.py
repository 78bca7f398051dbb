"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from fastapi import APIRouter

from invoicedesk import __version__
from invoicedesk.api.dependencies import RevalidatorDep
from invoicedesk.api.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(revalidator: RevalidatorDep) -> HealthResponse:
    """Report the running version and which listings are cached."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        cache=revalidator.get_stats(),
    )
