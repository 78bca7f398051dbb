"""
Form validation schemas.

Each schema turns the raw string fields of one form into a typed model.
`decode()` wraps pydantic validation into a discriminated result so the
action handlers can branch on it without a try/except around their own
persistence logic.

Design Decisions:
- Field aliases match the submitted form field names, so error keys line
  up with the inputs that render them
- Custom messages are raised as PydanticCustomError to avoid pydantic's
  "Value error, " prefix
- Every field defaults to None and is still validated, so a missing field
  produces the same message as an invalid one
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from .models import InvoiceStatus


INVOICE_FIELDS = ("customerId", "amount", "status")
CUSTOMER_FIELDS = ("name", "email")
CREDENTIAL_FIELDS = ("email", "password")

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

CENT = Decimal("0.01")
# Largest amount whose cents fit the 32-bit integer amount column
MAX_AMOUNT = Decimal("21474836.47")


class InvoiceForm(BaseModel):
    """Fields submitted by the create and edit invoice forms."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, validate_default=True)

    customer_id: str = Field(default=None, alias="customerId")
    amount: Decimal = Field(default=None)
    status: InvoiceStatus = Field(default=None)

    @field_validator("customer_id", mode="before")
    @classmethod
    def _require_customer(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("customer_required", "Please select a customer.")
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        # Blank and missing inputs count as zero, like an empty number input
        text = "" if value is None else str(value).strip()
        try:
            number = Decimal(text or "0")
        except InvalidOperation:
            raise PydanticCustomError("number_type", "Expected number, received nan")
        if not number.is_finite():
            raise PydanticCustomError("number_type", "Expected number, received nan")

        # Out-of-range values are rejected unrounded; quantize overflows past 28 digits
        if 0 < number <= MAX_AMOUNT + 1:
            number = number.quantize(CENT, rounding=ROUND_HALF_UP)
        if number <= 0:
            raise PydanticCustomError(
                "greater_than",
                "Please enter an amount greater than $0.",
            )
        if number > MAX_AMOUNT:
            raise PydanticCustomError(
                "less_than_equal",
                "Please enter an amount no greater than $21,474,836.47.",
            )
        return number

    @field_validator("status", mode="before")
    @classmethod
    def _require_status(cls, value: Any) -> InvoiceStatus:
        try:
            return InvoiceStatus(value)
        except ValueError:
            raise PydanticCustomError("status_choice", "Please select an invoice status.")


class CustomerForm(BaseModel):
    """Fields submitted by the add customer form."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    name: str = Field(default=None)
    email: EmailStr = Field(default=None)

    @field_validator("name", mode="before")
    @classmethod
    def _require_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise PydanticCustomError("name_required", "Please enter the name.")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value: Any) -> Any:
        return "" if value is None else value


class Credentials(BaseModel):
    """Sign-in form fields checked by the credentials provider."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str = Field(min_length=6)


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """Successful decode carrying the typed model."""
    value: T


@dataclass(frozen=True)
class Rejected:
    """Failed decode: field name -> messages, in field order."""
    errors: dict[str, list[str]]


def extract_fields(form: Mapping[str, Any], names: tuple[str, ...]) -> dict[str, str | None]:
    """
    Pick the named fields out of a submitted form.

    Absent fields and non-text parts (file uploads) come back as None;
    validation then rejects them like any other bad value.
    """
    raw: dict[str, str | None] = {}
    for name in names:
        value = form.get(name)
        raw[name] = value if isinstance(value, str) else None
    return raw


def flatten_errors(schema: type[BaseModel], exc: ValidationError) -> dict[str, list[str]]:
    """
    Group pydantic errors by form field name.

    Errors on defaulted fields are located by attribute name, so locations
    are mapped back to the field alias.
    """
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = error["loc"]
        key = str(loc[0]) if loc else "__root__"
        field = schema.model_fields.get(key)
        if field is not None and field.alias:
            key = field.alias
        errors.setdefault(key, []).append(error["msg"])
    return errors


def decode(schema: type[M], raw: Mapping[str, Any]) -> Decoded[M] | Rejected:
    """
    Validate raw form fields against a schema.

    Returns Decoded with the model on success, or Rejected with the
    per-field messages. Never raises for invalid input.
    """
    try:
        return Decoded(schema.model_validate(dict(raw)))
    except ValidationError as exc:
        return Rejected(flatten_errors(schema, exc))
