"""
Dashboard overview endpoint.
"""

from fastapi import APIRouter

from invoicedesk.api.dependencies import DatabaseDep
from invoicedesk.api.schemas import OverviewResponse
from invoicedesk.infrastructure import queries

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=OverviewResponse)
async def overview(database: DatabaseDep) -> OverviewResponse:
    async with database.session() as session:
        totals = await queries.fetch_totals(session)
    return OverviewResponse.model_validate(totals, from_attributes=True)
