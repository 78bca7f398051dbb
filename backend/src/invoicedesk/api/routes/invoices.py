"""
Invoice dashboard endpoints.

Listing, create/edit form views, and the form submissions that feed
the invoice actions.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError

from invoicedesk.api.dependencies import DatabaseDep, RevalidatorDep
from invoicedesk.api.forms import invoice_form, invoice_state, respond
from invoicedesk.api.schemas import ErrorResponse, FormView, InvoiceListResponse, InvoiceRowResponse
from invoicedesk.domain.models import INVOICES_PATH, Customer, FormState, Succeeded
from invoicedesk.infrastructure import queries
from invoicedesk.infrastructure.database import Database
from invoicedesk.services import actions

logger = logging.getLogger(__name__)

router = APIRouter(prefix=INVOICES_PATH, tags=["invoices"])


async def _customer_choices(database: Database) -> list[Customer]:
    """Customers for the select field; a failed lookup leaves it empty."""
    try:
        async with database.session() as session:
            return await queries.fetch_customers(session)
    except SQLAlchemyError:
        logger.warning("Could not load customers for the invoice form", exc_info=True)
        return []


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(database: DatabaseDep, revalidator: RevalidatorDep) -> InvoiceListResponse:
    """All invoices, newest first. Served from cache until the next write."""

    async def render() -> InvoiceListResponse:
        async with database.session() as session:
            rows = await queries.fetch_invoices(session)
        return InvoiceListResponse(
            invoices=[InvoiceRowResponse.model_validate(row, from_attributes=True) for row in rows]
        )

    return await revalidator.get_or_render(INVOICES_PATH, render)


@router.get("/create", response_model=FormView)
async def create_invoice_form(database: DatabaseDep) -> FormView:
    async with database.session() as session:
        customers = await queries.fetch_customers(session)
    return invoice_form(
        FormState(),
        customers,
        action=f"{INVOICES_PATH}/create",
        title="Create Invoice",
        submit_label="Create Invoice",
    )


@router.post(
    "/create",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={422: {"model": FormView, "description": "Validation or database failure"}},
)
async def submit_create_invoice(
    request: Request,
    database: DatabaseDep,
    revalidator: RevalidatorDep,
) -> Response:
    """Create an invoice; redirects to the listing on success."""
    form = await request.form()
    result = await actions.create_invoice(None, form, database=database, revalidator=revalidator)

    customers = [] if isinstance(result, Succeeded) else await _customer_choices(database)
    return respond(
        result,
        lambda state: invoice_form(
            state,
            customers,
            action=f"{INVOICES_PATH}/create",
            title="Create Invoice",
            submit_label="Create Invoice",
        ),
    )


@router.get(
    "/{invoice_id}/edit",
    response_model=FormView,
    responses={404: {"description": "Invoice not found"}},
)
async def edit_invoice_form(invoice_id: str, database: DatabaseDep) -> FormView:
    async with database.session() as session:
        invoice = await queries.fetch_invoice(session, invoice_id)
        customers = await queries.fetch_customers(session)

    if invoice is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Invoice not found: {invoice_id}",
        )

    return invoice_form(
        invoice_state(invoice),
        customers,
        action=f"{INVOICES_PATH}/{invoice_id}/edit",
        title="Edit Invoice",
        submit_label="Edit Invoice",
    )


@router.post(
    "/{invoice_id}/edit",
    status_code=status.HTTP_303_SEE_OTHER,
    responses={422: {"model": FormView, "description": "Validation or database failure"}},
)
async def submit_update_invoice(
    invoice_id: str,
    request: Request,
    database: DatabaseDep,
    revalidator: RevalidatorDep,
) -> Response:
    """Update an invoice; redirects to the listing on success."""
    form = await request.form()
    result = await actions.update_invoice(
        invoice_id, None, form, database=database, revalidator=revalidator
    )

    customers = [] if isinstance(result, Succeeded) else await _customer_choices(database)
    return respond(
        result,
        lambda state: invoice_form(
            state,
            customers,
            action=f"{INVOICES_PATH}/{invoice_id}/edit",
            title="Edit Invoice",
            submit_label="Edit Invoice",
        ),
    )


@router.post(
    "/{invoice_id}/delete",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={500: {"model": ErrorResponse, "description": "Database failure"}},
)
async def submit_delete_invoice(
    invoice_id: str,
    database: DatabaseDep,
    revalidator: RevalidatorDep,
) -> Response:
    """Delete an invoice. The listing refreshes itself; no redirect."""
    await actions.delete_invoice(invoice_id, database=database, revalidator=revalidator)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
