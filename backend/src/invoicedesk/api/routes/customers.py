"""
Customer dashboard endpoints.
"""

from fastapi import APIRouter, Request, Response, status

from invoicedesk.api.dependencies import DatabaseDep, RevalidatorDep
from invoicedesk.api.forms import customer_form, respond
from invoicedesk.api.schemas import CustomerListResponse, CustomerResponse, ErrorResponse, FormView
from invoicedesk.domain.models import CUSTOMERS_PATH, FormState
from invoicedesk.infrastructure import queries
from invoicedesk.services import actions

router = APIRouter(prefix=CUSTOMERS_PATH, tags=["customers"])


@router.get("", response_model=CustomerListResponse)
async def list_customers(database: DatabaseDep, revalidator: RevalidatorDep) -> CustomerListResponse:
    """All customers by name. Served from cache until the next write."""

    async def render() -> CustomerListResponse:
        async with database.session() as session:
            customers = await queries.fetch_customers(session)
        return CustomerListResponse(
            customers=[CustomerResponse.model_validate(c, from_attributes=True) for c in customers]
        )

    return await revalidator.get_or_render(CUSTOMERS_PATH, render)


@router.get("/create", response_model=FormView)
async def add_customer_form() -> FormView:
    return customer_form(FormState())


@router.post(
    "/create",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={422: {"model": FormView, "description": "Validation or database failure"}},
)
async def submit_add_customer(
    request: Request,
    database: DatabaseDep,
    revalidator: RevalidatorDep,
) -> Response:
    """Add a customer; redirects to the listing on success."""
    form = await request.form()
    result = await actions.add_customer(None, form, database=database, revalidator=revalidator)
    return respond(result, customer_form)


@router.post(
    "/{customer_id}/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={500: {"model": ErrorResponse, "description": "Database failure"}},
)
async def submit_delete_customer(
    customer_id: str,
    database: DatabaseDep,
    revalidator: RevalidatorDep,
) -> Response:
    await actions.delete_customer(customer_id, database=database, revalidator=revalidator)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
