"""
Pydantic schemas for API responses.

Form views are renderer-neutral: a client draws each field from its
name, label, bound value and error list.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel

from invoicedesk.domain.models import InvoiceStatus


class FieldOption(BaseModel):
    """One choice of a select or radio field."""
    value: str
    label: str


class FormFieldView(BaseModel):
    """An input bound to the previous submission."""
    name: str
    label: str
    input_type: str = "text"
    value: str = ""
    errors: list[str] = []
    options: list[FieldOption] = []


class FormView(BaseModel):
    """Everything needed to render one form."""
    title: str
    action: str
    fields: list[FormFieldView]
    message: str | None = None
    submit_label: str
    cancel_href: str


class LoginView(BaseModel):
    """Login form state: only a message and where to go afterwards."""
    message: str | None = None
    redirect_to: str


class InvoiceRowResponse(BaseModel):
    """Invoice listing row; amount is in cents."""
    id: str
    amount: int
    date: date
    status: InvoiceStatus
    name: str
    email: str
    image_url: str


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str
    image_url: str


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceRowResponse]


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    cache: dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: str | None = None


class OverviewResponse(BaseModel):
    """Dashboard cards; amounts in cents."""
    invoice_count: int
    customer_count: int
    total_paid: int
    total_pending: int
