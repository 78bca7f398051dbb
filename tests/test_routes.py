from datetime import date
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import SQLAlchemyError

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, all_invoices
from invoicedesk.domain.models import AVATAR_PLACEHOLDER, CUSTOMERS_PATH, INVOICES_PATH, InvoiceStatus
from invoicedesk.infrastructure import queries
from invoicedesk.services.auth import SESSION_COOKIE


def field(view: dict, name: str) -> dict:
    return next(f for f in view["fields"] if f["name"] == name)


class TestRouteGuard:
    async def test_health_is_public(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_anonymous_dashboard_redirects_to_login(self, client):
        response = await client.get(INVOICES_PATH)

        assert response.status_code == 303
        assert response.headers["location"] == "/login?callbackUrl=%2Fdashboard%2Finvoices"

    async def test_anonymous_post_is_refused(self, client, database):
        response = await client.post(
            f"{CUSTOMERS_PATH}/create", data={"name": "Ada", "email": "ada@example.com"}
        )

        assert response.status_code == 303
        assert response.headers["location"].startswith("/login")

    async def test_signed_in_user_skips_login_page(self, signed_in_client):
        response = await signed_in_client.get("/login")

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    async def test_login_page_carries_callback(self, client):
        response = await client.get("/login", params={"callbackUrl": "/dashboard/customers"})

        assert response.status_code == 200
        assert response.json() == {"message": None, "redirect_to": "/dashboard/customers"}


class TestLogin:
    async def test_valid_login_sets_session_and_redirects(self, client, admin_id):
        response = await client.post(
            "/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "redirectTo": INVOICES_PATH},
        )

        assert response.status_code == 303
        assert response.headers["location"] == INVOICES_PATH
        assert f"{SESSION_COOKIE}=" in response.headers["set-cookie"]

    async def test_backslash_redirect_stays_on_site(self, client, admin_id):
        response = await client.post(
            "/login",
            data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "redirectTo": "/\\evil.example"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    async def test_invalid_login(self, client, admin_id):
        response = await client.post("/login", data={"email": ADMIN_EMAIL, "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials."

    async def test_logout_clears_session(self, signed_in_client):
        response = await signed_in_client.post("/logout")

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert f'{SESSION_COOKIE}=""' in response.headers["set-cookie"]


class TestCustomerRoutes:
    async def test_add_customer_redirects_to_listing(self, signed_in_client):
        response = await signed_in_client.post(
            f"{CUSTOMERS_PATH}/create", data={"name": "Ada", "email": "ada@example.com"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == CUSTOMERS_PATH

        listing = (await signed_in_client.get(CUSTOMERS_PATH)).json()
        assert [c["name"] for c in listing["customers"]] == ["Ada"]
        assert listing["customers"][0]["image_url"] == AVATAR_PLACEHOLDER

    async def test_invalid_customer_rerenders_form(self, signed_in_client):
        response = await signed_in_client.post(
            f"{CUSTOMERS_PATH}/create", data={"name": "Ada", "email": "not-an-email"}
        )

        assert response.status_code == 422
        view = response.json()
        assert view["message"] == "Missing Fields. Failed to Add Customer."
        assert field(view, "name") == {
            "name": "name",
            "label": "Name",
            "input_type": "text",
            "value": "Ada",
            "errors": [],
            "options": [],
        }
        assert field(view, "email")["value"] == "not-an-email"
        assert field(view, "email")["errors"]

    async def test_listing_is_cached_until_revalidated(self, signed_in_client, database):
        first = (await signed_in_client.get(CUSTOMERS_PATH)).json()
        assert first["customers"] == []

        # A write that bypasses the actions does not revalidate the path
        async with database.session() as session:
            await queries.insert_customer(session, name="Zed", email="zed@example.com", image_url="/z.png")
        assert (await signed_in_client.get(CUSTOMERS_PATH)).json() == first

        await signed_in_client.post(
            f"{CUSTOMERS_PATH}/create", data={"name": "Ada", "email": "ada@example.com"}
        )
        names = [c["name"] for c in (await signed_in_client.get(CUSTOMERS_PATH)).json()["customers"]]
        assert names == ["Ada", "Zed"]

    async def test_delete_customer(self, signed_in_client, customer_id):
        response = await signed_in_client.post(f"{CUSTOMERS_PATH}/{customer_id}/delete")

        assert response.status_code == 204
        assert (await signed_in_client.get(CUSTOMERS_PATH)).json()["customers"] == []


class TestInvoiceRoutes:
    async def test_create_form_lists_customers(self, signed_in_client, customer_id):
        view = (await signed_in_client.get(f"{INVOICES_PATH}/create")).json()

        assert view["submit_label"] == "Create Invoice"
        assert field(view, "customerId")["options"] == [
            {"value": customer_id, "label": "Delba de Oliveira"}
        ]
        assert [o["value"] for o in field(view, "status")["options"]] == ["pending", "paid"]

    async def test_create_invoice_redirects(self, signed_in_client, customer_id, database):
        response = await signed_in_client.post(
            f"{INVOICES_PATH}/create",
            data={"customerId": customer_id, "amount": "42.10", "status": "pending"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == INVOICES_PATH
        [invoice] = await all_invoices(database)
        assert invoice.amount == 4210

        listing = (await signed_in_client.get(INVOICES_PATH)).json()
        assert listing["invoices"][0]["name"] == "Delba de Oliveira"
        assert listing["invoices"][0]["amount"] == 4210

    async def test_invalid_invoice_echoes_input(self, signed_in_client, database):
        response = await signed_in_client.post(
            f"{INVOICES_PATH}/create", data={"customerId": "", "amount": "-5", "status": "x"}
        )

        assert response.status_code == 422
        view = response.json()
        assert view["message"] == "Missing Fields. Failed to Create Invoice."
        assert field(view, "amount")["value"] == "-5"
        assert field(view, "amount")["errors"] == ["Please enter an amount greater than $0."]
        assert field(view, "customerId")["errors"] == ["Please select a customer."]
        assert field(view, "status")["errors"] == ["Please select an invoice status."]
        assert await all_invoices(database) == []

    async def test_store_failure_keeps_user_on_form(self, signed_in_client, customer_id):
        with patch.object(queries, "insert_invoice", AsyncMock(side_effect=SQLAlchemyError("down"))):
            response = await signed_in_client.post(
                f"{INVOICES_PATH}/create",
                data={"customerId": customer_id, "amount": "10", "status": "paid"},
            )

        assert response.status_code == 422
        view = response.json()
        assert view["message"] == "Database Error: Failed to Create Invoice."
        assert all(f["errors"] == [] for f in view["fields"])
        assert "down" not in response.text

    async def test_edit_form_is_prefilled(self, signed_in_client, customer_id, database):
        await signed_in_client.post(
            f"{INVOICES_PATH}/create",
            data={"customerId": customer_id, "amount": "12.50", "status": "paid"},
        )
        [invoice] = await all_invoices(database)

        view = (await signed_in_client.get(f"{INVOICES_PATH}/{invoice.id}/edit")).json()

        assert view["action"] == f"{INVOICES_PATH}/{invoice.id}/edit"
        assert field(view, "customerId")["value"] == customer_id
        assert field(view, "amount")["value"] == "12.5"
        assert field(view, "status")["value"] == "paid"

    async def test_edit_form_tolerates_stored_zero_amount(self, signed_in_client, customer_id, database):
        async with database.session() as session:
            await queries.insert_invoice(
                session, customer_id=customer_id, amount=0, status=InvoiceStatus.PENDING, date=date(2022, 1, 1)
            )
        [invoice] = await all_invoices(database)

        response = await signed_in_client.get(f"{INVOICES_PATH}/{invoice.id}/edit")

        assert response.status_code == 200
        assert field(response.json(), "amount")["value"] == "0"

    async def test_edit_missing_invoice(self, signed_in_client):
        response = await signed_in_client.get(f"{INVOICES_PATH}/missing/edit")

        assert response.status_code == 404

    async def test_update_invoice(self, signed_in_client, customer_id, database):
        await signed_in_client.post(
            f"{INVOICES_PATH}/create",
            data={"customerId": customer_id, "amount": "1", "status": "pending"},
        )
        [invoice] = await all_invoices(database)

        response = await signed_in_client.post(
            f"{INVOICES_PATH}/{invoice.id}/edit",
            data={"customerId": customer_id, "amount": "2", "status": "paid"},
        )

        assert response.status_code == 303
        [updated] = await all_invoices(database)
        assert (updated.amount, updated.status) == (200, "paid")

    async def test_delete_invoice(self, signed_in_client, customer_id, database):
        await signed_in_client.post(
            f"{INVOICES_PATH}/create",
            data={"customerId": customer_id, "amount": "1", "status": "pending"},
        )
        [invoice] = await all_invoices(database)

        response = await signed_in_client.post(f"{INVOICES_PATH}/{invoice.id}/delete")

        assert response.status_code == 204
        assert (await signed_in_client.get(INVOICES_PATH)).json()["invoices"] == []

    async def test_delete_store_failure(self, signed_in_client):
        with patch.object(queries, "delete_invoice", AsyncMock(side_effect=SQLAlchemyError("down"))):
            response = await signed_in_client.post(f"{INVOICES_PATH}/any/delete")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Database Error",
            "detail": "Database Error: Failed to Delete Invoice.",
        }


async def test_overview_totals(signed_in_client, customer_id):
    for amount, status in [("10", "paid"), ("2.50", "pending"), ("1", "pending")]:
        await signed_in_client.post(
            f"{INVOICES_PATH}/create",
            data={"customerId": customer_id, "amount": amount, "status": status},
        )

    response = await signed_in_client.get("/dashboard")

    assert response.json() == {
        "invoice_count": 3,
        "customer_count": 1,
        "total_paid": 1000,
        "total_pending": 350,
    }
