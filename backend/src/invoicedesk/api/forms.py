"""
Form views bound to submission state, and the mapping from action
results to HTTP responses.
"""

from decimal import Decimal
from typing import Callable

from fastapi import status
from fastapi.responses import JSONResponse, RedirectResponse, Response

from invoicedesk.domain.models import (
    CUSTOMERS_PATH,
    INVOICES_PATH,
    ActionResult,
    Customer,
    FormState,
    Invoice,
    InvoiceStatus,
    Succeeded,
)

from .schemas import FieldOption, FormFieldView, FormView

STATUS_OPTIONS = [
    FieldOption(value=InvoiceStatus.PENDING.value, label="Pending"),
    FieldOption(value=InvoiceStatus.PAID.value, label="Paid"),
]


def bind(
    state: FormState,
    name: str,
    label: str,
    input_type: str = "text",
    options: list[FieldOption] | None = None,
) -> FormFieldView:
    """One field with the value and errors the previous attempt left behind."""
    return FormFieldView(
        name=name,
        label=label,
        input_type=input_type,
        value=state.values.get(name) or "",
        errors=state.field_errors(name),
        options=options or [],
    )


def invoice_form(
    state: FormState,
    customers: list[Customer],
    *,
    action: str,
    title: str,
    submit_label: str,
) -> FormView:
    customer_options = [FieldOption(value=c.id, label=c.name) for c in customers]
    return FormView(
        title=title,
        action=action,
        fields=[
            bind(state, "customerId", "Choose customer", "select", customer_options),
            bind(state, "amount", "Choose an amount", "number"),
            bind(state, "status", "Set the invoice status", "radio", STATUS_OPTIONS),
        ],
        message=state.message,
        submit_label=submit_label,
        cancel_href=INVOICES_PATH,
    )


def customer_form(state: FormState) -> FormView:
    return FormView(
        title="Add Customer",
        action=f"{CUSTOMERS_PATH}/create",
        fields=[
            bind(state, "name", "Name"),
            bind(state, "email", "Email", "email"),
        ],
        message=state.message,
        submit_label="Add Customer",
        cancel_href=CUSTOMERS_PATH,
    )


def invoice_state(invoice: Invoice) -> FormState:
    """Initial edit-form state: the stored invoice, amount in dollars."""
    return FormState(
        values={
            "customerId": invoice.customer_id,
            "amount": str(Decimal(invoice.amount) / 100),
            "status": invoice.status.value,
        }
    )


def respond(result: ActionResult, render: Callable[[FormState], FormView]) -> Response:
    """
    Navigate on success, otherwise re-render the form with its new state.

    `render` builds the FormView for a failed attempt's state.
    """
    if isinstance(result, Succeeded):
        return RedirectResponse(result.redirect_path, status_code=status.HTTP_303_SEE_OTHER)

    view: FormView = render(result.state)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=view.model_dump(mode="json"),
    )
