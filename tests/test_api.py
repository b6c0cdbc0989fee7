"""
API tests for contracts, rates, dashboard and users.

Requests run against the app with the database dependency pointed at
the test session.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from src.auth.jwt import COOKIE_NAME, create_access_token
from src.db import get_db
from src.main import app
from src.models import AuditAction, AuditLog, User, UserRole
from src.utils.password import hash_password


LIFE_CONTRACT = {
    "customer_name": "Müller",
    "sub_category": "Leben",
    "submission_date": "2026-03-02",
    "payment_frequency": "monthly",
    "duration_years": 10,
    "net_premium": "45.00",
    "gross_premium": "50.00",
}


@pytest_asyncio.fixture
async def client_factory(db_session):
    """Build HTTP clients logged in as a given user."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    clients = []

    def make(user=None):
        cookies = {}
        if user is not None:
            cookies[COOKIE_NAME] = create_access_token(user.id, user.role.value)
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies=cookies,
        )
        clients.append(client)
        return client

    yield make

    for client in clients:
        await client.aclose()
    app.dependency_overrides.clear()


async def _audit_actions(db_session):
    result = await db_session.execute(select(AuditLog.action).order_by(AuditLog.id))
    return [row[0] for row in result.all()]


# ── auth ──────────────────────────────────────────────────


class TestAuth:
    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, db_session, client_factory):
        user = User(
            username="carla",
            password_hash=hash_password("secret-pass"),
            role=UserRole.OPERATOR,
            display_name="Carla",
            is_active=True,
        )
        db_session.add(user)
        await db_session.flush()

        client = client_factory()
        response = await client.post(
            "/api/auth/login",
            json={"username": "carla", "password": "secret-pass"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "operator"
        assert COOKIE_NAME in response.headers["set-cookie"]
        assert await _audit_actions(db_session) == [AuditAction.LOGIN]

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session, client_factory):
        db_session.add(User(
            username="carla",
            password_hash=hash_password("secret-pass"),
            role=UserRole.OPERATOR,
            display_name="Carla",
            is_active=True,
        ))
        await db_session.flush()

        response = await client_factory().post(
            "/api/auth/login",
            json={"username": "carla", "password": "nope"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_requires_login(self, client_factory):
        response = await client_factory().get("/api/contracts")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, operator, client_factory):
        response = await client_factory(operator).get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["username"] == "anna"


# ── contracts ─────────────────────────────────────────────


class TestContractsApi:
    @pytest.mark.asyncio
    async def test_create_calculates_figures(self, db_session, operator, client_factory):
        response = await client_factory(operator).post("/api/contracts", json=LIFE_CONTRACT)

        assert response.status_code == 201
        body = response.json()
        assert body["category"] == "life"
        assert body["status"] == "submitted"
        assert Decimal(body["valuation_sum"]) == Decimal("6000")
        assert Decimal(body["commission_amount"]) == Decimal("48")
        assert await _audit_actions(db_session) == [AuditAction.CREATE_CONTRACT]

    @pytest.mark.asyncio
    async def test_unknown_sub_category_is_422(self, operator, client_factory):
        response = await client_factory(operator).post(
            "/api/contracts", json={**LIFE_CONTRACT, "sub_category": "Foo"}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "sub_category"

    @pytest.mark.asyncio
    async def test_sub_cent_premium_is_422(self, operator, client_factory, db_session):
        response = await client_factory(operator).post(
            "/api/contracts", json={**LIFE_CONTRACT, "net_premium": "45.005"}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "net_premium"
        assert await _audit_actions(db_session) == []

    @pytest.mark.asyncio
    async def test_preview(self, operator, client_factory):
        response = await client_factory(operator).post(
            "/api/contracts/preview",
            json={"sub_category": "PHV", "net_premium": "15.00"},
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["valuation_sum"]) == Decimal("180")
        assert Decimal(body["commission_amount"]) == Decimal("13.5")
        assert body["rate_unit"] == "%"

    @pytest.mark.asyncio
    async def test_preview_with_foreign_rates_forbidden(
        self, operator, other_operator, client_factory
    ):
        response = await client_factory(operator).post(
            "/api/contracts/preview",
            json={"sub_category": "PHV", "user_id": other_operator.id},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_list_and_total(self, operator, other_operator, client_factory):
        own = client_factory(operator)
        await own.post("/api/contracts", json=LIFE_CONTRACT)
        await own.post("/api/contracts", json=LIFE_CONTRACT)
        await client_factory(other_operator).post("/api/contracts", json=LIFE_CONTRACT)

        response = await own.get("/api/contracts")

        body = response.json()
        assert body["total"] == 2
        assert Decimal(body["commission_total"]) == Decimal("96")

    @pytest.mark.asyncio
    async def test_foreign_contract_forbidden(
        self, operator, other_operator, client_factory
    ):
        created = await client_factory(other_operator).post(
            "/api/contracts", json=LIFE_CONTRACT
        )
        contract_id = created.json()["id"]

        response = await client_factory(operator).get(f"/api/contracts/{contract_id}")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_contract(self, operator, client_factory):
        response = await client_factory(operator).get("/api/contracts/999")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_recalculates(self, operator, client_factory):
        client = client_factory(operator)
        contract_id = (await client.post("/api/contracts", json=LIFE_CONTRACT)).json()["id"]

        response = await client.put(
            f"/api/contracts/{contract_id}",
            json={"gross_premium": "100.00"},
        )

        assert response.status_code == 200
        assert Decimal(response.json()["commission_amount"]) == Decimal("96")

    @pytest.mark.asyncio
    async def test_status_flow(self, db_session, operator, client_factory):
        client = client_factory(operator)
        contract_id = (await client.post("/api/contracts", json=LIFE_CONTRACT)).json()["id"]

        policed = await client.post(
            f"/api/contracts/{contract_id}/status",
            json={"status": "policed", "policing_date": "2026-04-01"},
        )
        cancelled = await client.post(
            f"/api/contracts/{contract_id}/status", json={"status": "cancelled"}
        )
        reopened = await client.post(
            f"/api/contracts/{contract_id}/status", json={"status": "submitted"}
        )

        assert policed.status_code == 200
        assert policed.json()["policing_date"] == "2026-04-01"
        assert cancelled.json()["status"] == "cancelled"
        assert reopened.status_code == 422
        assert reopened.json()["detail"]["field"] == "status"

    @pytest.mark.asyncio
    async def test_delete(self, operator, client_factory):
        client = client_factory(operator)
        contract_id = (await client.post("/api/contracts", json=LIFE_CONTRACT)).json()["id"]

        response = await client.delete(f"/api/contracts/{contract_id}")

        assert response.status_code == 200
        assert (await client.get(f"/api/contracts/{contract_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_export(self, operator, client_factory):
        client = client_factory(operator)
        await client.post("/api/contracts", json=LIFE_CONTRACT)

        response = await client.get("/api/contracts/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.strip().split("\n")
        assert len(lines) == 2
        assert "48.00" in lines[1].split(";")


# ── rates ─────────────────────────────────────────────────


class TestRatesApi:
    @pytest.mark.asyncio
    async def test_defaults(self, operator, client_factory):
        response = await client_factory(operator).get("/api/rates")

        rates = {item["sub_category"]: item for item in response.json()["rates"]}
        assert Decimal(rates["Leben"]["rate_value"]) == Decimal("8")
        assert rates["Leben"]["unit"] == "‰"
        assert rates["Leben"]["is_default"] is True

    @pytest.mark.asyncio
    async def test_replace_applies_to_new_contracts(self, operator, client_factory):
        client = client_factory(operator)

        saved = await client.put("/api/rates", json={"rates": {"Leben": "10"}})
        created = await client.post("/api/contracts", json=LIFE_CONTRACT)

        rates = {item["sub_category"]: item for item in saved.json()["rates"]}
        assert rates["Leben"]["is_default"] is False
        assert Decimal(created.json()["commission_amount"]) == Decimal("60")

    @pytest.mark.asyncio
    async def test_negative_rate_is_422(self, operator, client_factory):
        response = await client_factory(operator).put(
            "/api/rates", json={"rates": {"Leben": "-1"}}
        )
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "rate_value"

    @pytest.mark.asyncio
    async def test_operator_cannot_edit_foreign_rates(
        self, operator, other_operator, client_factory
    ):
        response = await client_factory(operator).put(
            f"/api/rates?user_id={other_operator.id}", json={"rates": {}}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_edits_operator_rates(self, admin_user, operator, client_factory):
        response = await client_factory(admin_user).put(
            f"/api/rates?user_id={operator.id}", json={"rates": {"KFZ": "4"}}
        )
        assert response.status_code == 200
        assert response.json()["user_id"] == operator.id


# ── dashboard ─────────────────────────────────────────────


class TestDashboardApi:
    @pytest.mark.asyncio
    async def test_summary(self, admin_user, operator, other_operator, client_factory):
        await client_factory(operator).post("/api/contracts", json=LIFE_CONTRACT)
        await client_factory(other_operator).post(
            "/api/contracts",
            json={**LIFE_CONTRACT, "sub_category": "PHV", "net_premium": "15.00"},
        )

        response = await client_factory(admin_user).get("/api/dashboard/summary")

        body = response.json()
        assert len(body["monthly"]) == 6
        assert [row["display_name"] for row in body["leaderboard"]] == ["Anna", "Bernd"]
        assert [share["category"] for share in body["categories"]] == ["life", "property"]
        assert Decimal(body["total_commission"]) == Decimal("61.5")
        assert body["contracts"] == 2

    @pytest.mark.asyncio
    async def test_operator_sees_own_figures(
        self, operator, other_operator, client_factory
    ):
        await client_factory(operator).post("/api/contracts", json=LIFE_CONTRACT)
        await client_factory(other_operator).post("/api/contracts", json=LIFE_CONTRACT)

        response = await client_factory(operator).get("/api/dashboard/summary")

        body = response.json()
        assert body["contracts"] == 1
        assert [row["user_id"] for row in body["leaderboard"]] == [operator.id]


# ── users ─────────────────────────────────────────────────


class TestUsersApi:
    @pytest.mark.asyncio
    async def test_admin_creates_operator(self, admin_user, client_factory):
        client = client_factory(admin_user)

        created = await client.post(
            "/api/users",
            json={"username": "dora", "password": "secret-pass", "display_name": "Dora"},
        )
        duplicate = await client.post(
            "/api/users",
            json={"username": "dora", "password": "secret-pass", "display_name": "Dora"},
        )

        assert created.status_code == 201
        assert created.json()["role"] == "operator"
        assert duplicate.status_code == 400

    @pytest.mark.asyncio
    async def test_operator_cannot_list_users(self, operator, client_factory):
        response = await client_factory(operator).get("/api/users")
        assert response.status_code == 403
