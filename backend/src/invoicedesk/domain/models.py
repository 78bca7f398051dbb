"""
Domain models for invoice and customer administration.

These models describe the records the dashboard manages and the values
that flow between a form submission and the page that renders it.

Design Decisions:
- Frozen dataclasses for records and results so handlers cannot mutate them
- Amounts are stored as integer minor units (cents)
- Action outcomes are a closed set of result types; navigation is a value
  the caller acts on, never an exception
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


INVOICES_PATH = "/dashboard/invoices"
CUSTOMERS_PATH = "/dashboard/customers"

# Every new customer gets this avatar until an upload feature exists
AVATAR_PLACEHOLDER = "/customers/avatar-placeholder.webp"


class InvoiceStatus(str, Enum):
    """Payment status of an invoice."""
    PENDING = "pending"
    PAID = "paid"


@dataclass(frozen=True)
class Invoice:
    """
    A stored invoice.

    `amount` is in minor units; divide by 100 for display.
    """
    id: str
    customer_id: str
    amount: int
    status: InvoiceStatus
    date: date


@dataclass(frozen=True)
class Customer:
    """A stored customer."""
    id: str
    name: str
    email: str
    image_url: str = AVATAR_PLACEHOLDER


@dataclass(frozen=True)
class InvoiceRow:
    """Invoice joined with its customer for the listing page."""
    id: str
    amount: int
    date: date
    status: InvoiceStatus
    name: str
    email: str
    image_url: str


@dataclass(frozen=True)
class FormState:
    """
    Per-submission state handed back to a form.

    Carries field-level errors, an echo of what the user typed (so the form
    can be re-populated) and an optional message for the whole form.
    Never persisted.
    """
    errors: dict[str, list[str]] = field(default_factory=dict)
    values: dict[str, str | None] = field(default_factory=dict)
    message: str | None = None

    def field_errors(self, name: str) -> list[str]:
        """Errors for one field, empty if the field is valid."""
        return self.errors.get(name, [])


@dataclass(frozen=True)
class ValidationFailed:
    """The submission did not pass its schema; nothing was written."""
    state: FormState


@dataclass(frozen=True)
class PersistenceFailed:
    """The submission was valid but the store rejected the write."""
    state: FormState


@dataclass(frozen=True)
class Succeeded:
    """The write committed; the caller should navigate to `redirect_path`."""
    redirect_path: str


ActionResult = ValidationFailed | PersistenceFailed | Succeeded


class PersistenceError(Exception):
    """
    Raised by delete handlers when the store rejects the statement.

    The message is safe to show to users; the underlying driver error
    is chained as `__cause__` and logged server-side.
    """


@dataclass(frozen=True)
class DashboardTotals:
    """Summary figures for the dashboard overview; amounts in cents."""
    invoice_count: int
    customer_count: int
    total_paid: int
    total_pending: int
