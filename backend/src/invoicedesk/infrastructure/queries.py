"""
Parameterized statements against the invoices, customers and users tables.

Each write issues exactly one statement and commits it. Values are always
passed as bound parameters through SQLAlchemy constructs.
"""

import logging
from datetime import date

from sqlalchemy import case, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from invoicedesk.domain.models import Customer, DashboardTotals, Invoice, InvoiceRow, InvoiceStatus

from .database import CustomerRecord, InvoiceRecord, UserRecord

logger = logging.getLogger(__name__)


async def insert_invoice(
    session: AsyncSession,
    *,
    customer_id: str,
    amount: int,
    status: InvoiceStatus,
    date: date,
) -> None:
    await session.execute(
        insert(InvoiceRecord).values(
            customer_id=customer_id,
            amount=amount,
            status=status.value,
            date=date,
        )
    )
    await session.commit()


async def update_invoice(
    session: AsyncSession,
    invoice_id: str,
    *,
    customer_id: str,
    amount: int,
    status: InvoiceStatus,
) -> None:
    await session.execute(
        update(InvoiceRecord)
        .where(InvoiceRecord.id == invoice_id)
        .values(customer_id=customer_id, amount=amount, status=status.value)
    )
    await session.commit()


async def delete_invoice(session: AsyncSession, invoice_id: str) -> None:
    await session.execute(delete(InvoiceRecord).where(InvoiceRecord.id == invoice_id))
    await session.commit()


async def insert_customer(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    image_url: str,
) -> None:
    await session.execute(
        insert(CustomerRecord).values(name=name, email=email, image_url=image_url)
    )
    await session.commit()


async def delete_customer(session: AsyncSession, customer_id: str) -> None:
    await session.execute(delete(CustomerRecord).where(CustomerRecord.id == customer_id))
    await session.commit()


async def fetch_invoice(session: AsyncSession, invoice_id: str) -> Invoice | None:
    """Load one invoice for the edit form, or None if it does not exist."""
    record = await session.get(InvoiceRecord, invoice_id)
    if record is None:
        return None
    return Invoice(
        id=record.id,
        customer_id=record.customer_id,
        amount=record.amount,
        status=InvoiceStatus(record.status),
        date=record.date,
    )


async def fetch_invoices(session: AsyncSession) -> list[InvoiceRow]:
    """All invoices with their customer, newest first."""
    result = await session.execute(
        select(
            InvoiceRecord.id,
            InvoiceRecord.amount,
            InvoiceRecord.date,
            InvoiceRecord.status,
            CustomerRecord.name,
            CustomerRecord.email,
            CustomerRecord.image_url,
        )
        .join(CustomerRecord, InvoiceRecord.customer_id == CustomerRecord.id)
        .order_by(InvoiceRecord.date.desc(), InvoiceRecord.id)
    )
    return [
        InvoiceRow(
            id=row.id,
            amount=row.amount,
            date=row.date,
            status=InvoiceStatus(row.status),
            name=row.name,
            email=row.email,
            image_url=row.image_url,
        )
        for row in result
    ]


async def fetch_customers(session: AsyncSession) -> list[Customer]:
    """All customers ordered by name."""
    result = await session.scalars(select(CustomerRecord).order_by(CustomerRecord.name))
    return [
        Customer(id=c.id, name=c.name, email=c.email, image_url=c.image_url)
        for c in result
    ]


async def fetch_user_by_email(session: AsyncSession, email: str) -> UserRecord | None:
    return await session.scalar(select(UserRecord).where(UserRecord.email == email))


async def insert_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password_hash: str,
) -> None:
    await session.execute(
        insert(UserRecord).values(name=name, email=email, password=password_hash)
    )
    await session.commit()
    logger.info(f"Created user {email}")


async def fetch_totals(session: AsyncSession) -> DashboardTotals:
    """Counts and paid/pending sums for the overview cards."""
    invoice_count = await session.scalar(select(func.count()).select_from(InvoiceRecord))
    customer_count = await session.scalar(select(func.count()).select_from(CustomerRecord))

    def amount_when(status: InvoiceStatus):
        return func.coalesce(
            func.sum(case((InvoiceRecord.status == status.value, InvoiceRecord.amount), else_=0)),
            0,
        )

    sums = (
        await session.execute(
            select(
                amount_when(InvoiceStatus.PAID).label("paid"),
                amount_when(InvoiceStatus.PENDING).label("pending"),
            )
        )
    ).one()

    return DashboardTotals(
        invoice_count=invoice_count or 0,
        customer_count=customer_count or 0,
        total_paid=int(sums.paid),
        total_pending=int(sums.pending),
    )
