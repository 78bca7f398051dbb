"""
Form actions for invoices and customers.

Every create/update action runs the same pipeline:

1. Extract the expected fields from the submitted form
2. Validate them (failure -> ValidationFailed, nothing written)
3. Normalize (cents, today's date, placeholder avatar)
4. Issue one statement (store error -> PersistenceFailed, logged)
5. Revalidate the listing path and return Succeeded(listing path)

The caller navigates only on Succeeded. Deletes skip validation and
navigation: they write, revalidate, and return.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from invoicedesk.domain.models import (
    AVATAR_PLACEHOLDER,
    CUSTOMERS_PATH,
    INVOICES_PATH,
    ActionResult,
    FormState,
    PersistenceError,
    PersistenceFailed,
    Succeeded,
    ValidationFailed,
)
from invoicedesk.domain.validation import (
    CUSTOMER_FIELDS,
    INVOICE_FIELDS,
    CustomerForm,
    InvoiceForm,
    Rejected,
    decode,
    extract_fields,
)
from invoicedesk.infrastructure import queries
from invoicedesk.infrastructure.cache import PathCache
from invoicedesk.infrastructure.database import Database

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Dollars to cents. Validated amounts are already rounded to the cent."""
    return int(amount * 100)


def today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


async def _write(
    database: Database,
    statement: Callable[[AsyncSession], Awaitable[None]],
    raw: dict[str, str | None],
    failure: str,
) -> PersistenceFailed | None:
    """Run one write; on a store error log it and return the failure state."""
    try:
        async with database.session() as session:
            await statement(session)
    except SQLAlchemyError:
        logger.exception(f"Database error: {failure}")
        return PersistenceFailed(
            FormState(values=raw, message=f"Database Error: {failure}.")
        )
    return None


async def create_invoice(
    previous: FormState | None,
    form: Mapping[str, Any],
    *,
    database: Database,
    revalidator: PathCache,
) -> ActionResult:
    """
    Create an invoice dated today.

    `previous` is the state from the last attempt; a new attempt starts
    from scratch and does not read it.
    """
    raw = extract_fields(form, INVOICE_FIELDS)

    decoded = decode(InvoiceForm, raw)
    if isinstance(decoded, Rejected):
        return ValidationFailed(
            FormState(
                errors=decoded.errors,
                values=raw,
                message="Missing Fields. Failed to Create Invoice.",
            )
        )

    invoice = decoded.value
    amount = to_minor_units(invoice.amount)
    created = today()

    failed = await _write(
        database,
        lambda session: queries.insert_invoice(
            session,
            customer_id=invoice.customer_id,
            amount=amount,
            status=invoice.status,
            date=created,
        ),
        raw,
        "Failed to Create Invoice",
    )
    if failed is not None:
        return failed

    logger.info(f"Invoice created for customer {invoice.customer_id}: {amount} cents")
    revalidator.revalidate_path(INVOICES_PATH)
    return Succeeded(INVOICES_PATH)


async def update_invoice(
    invoice_id: str,
    previous: FormState | None,
    form: Mapping[str, Any],
    *,
    database: Database,
    revalidator: PathCache,
) -> ActionResult:
    """Update customer, amount and status of an existing invoice."""
    raw = extract_fields(form, INVOICE_FIELDS)

    decoded = decode(InvoiceForm, raw)
    if isinstance(decoded, Rejected):
        return ValidationFailed(
            FormState(
                errors=decoded.errors,
                values=raw,
                message="Missing Fields. Failed to Update Invoice.",
            )
        )

    invoice = decoded.value
    amount = to_minor_units(invoice.amount)

    failed = await _write(
        database,
        lambda session: queries.update_invoice(
            session,
            invoice_id,
            customer_id=invoice.customer_id,
            amount=amount,
            status=invoice.status,
        ),
        raw,
        "Failed to Update Invoice",
    )
    if failed is not None:
        return failed

    logger.info(f"Invoice {invoice_id} updated")
    revalidator.revalidate_path(INVOICES_PATH)
    return Succeeded(INVOICES_PATH)


async def add_customer(
    previous: FormState | None,
    form: Mapping[str, Any],
    *,
    database: Database,
    revalidator: PathCache,
) -> ActionResult:
    """Add a customer with the placeholder avatar."""
    raw = extract_fields(form, CUSTOMER_FIELDS)

    decoded = decode(CustomerForm, raw)
    if isinstance(decoded, Rejected):
        return ValidationFailed(
            FormState(
                errors=decoded.errors,
                values=raw,
                message="Missing Fields. Failed to Add Customer.",
            )
        )

    customer = decoded.value

    failed = await _write(
        database,
        lambda session: queries.insert_customer(
            session,
            name=customer.name,
            email=customer.email,
            image_url=AVATAR_PLACEHOLDER,
        ),
        raw,
        "Failed to Add Customer",
    )
    if failed is not None:
        return failed

    logger.info(f"Customer added: {customer.email}")
    revalidator.revalidate_path(CUSTOMERS_PATH)
    return Succeeded(CUSTOMERS_PATH)


async def delete_invoice(
    invoice_id: str,
    *,
    database: Database,
    revalidator: PathCache,
) -> None:
    """
    Delete an invoice and refresh the listing.

    Raises:
        PersistenceError: The store rejected the delete
    """
    try:
        async with database.session() as session:
            await queries.delete_invoice(session, invoice_id)
    except SQLAlchemyError as e:
        logger.exception("Database error: Failed to Delete Invoice")
        raise PersistenceError("Database Error: Failed to Delete Invoice.") from e

    logger.info(f"Invoice {invoice_id} deleted")
    revalidator.revalidate_path(INVOICES_PATH)


async def delete_customer(
    customer_id: str,
    *,
    database: Database,
    revalidator: PathCache,
) -> None:
    """
    Delete a customer and refresh the listing.

    A customer that still has invoices is refused by the foreign key.

    Raises:
        PersistenceError: The store rejected the delete
    """
    try:
        async with database.session() as session:
            await queries.delete_customer(session, customer_id)
    except SQLAlchemyError as e:
        logger.exception("Database error: Failed to Delete Customer")
        raise PersistenceError("Database Error: Failed to Delete Customer.") from e

    logger.info(f"Customer {customer_id} deleted")
    revalidator.revalidate_path(CUSTOMERS_PATH)
