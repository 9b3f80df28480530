"""End-to-end tests for the HTTP surface using FastAPI's TestClient."""

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from mealhouse.main import create_app
from tests.support import make_settings

API = "/api/v1"


class ApiTestCase(unittest.TestCase):
    """Fresh app and in-memory database per test."""

    def setUp(self) -> None:
        self.app = create_app(make_settings())
        self.app.state.database.create_all()
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()
        self.app.state.database.dispose()

    def register(self, email: str, role: str = "user", password: str = "s3cret-pass") -> dict:
        response = self.client.post(
            f"{API}/auth/register",
            json={"email": email, "password": password, "name": email.split("@")[0], "role": role},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def seed_house_and_plan(self, owner_token: str, price: str = "10.00") -> tuple[str, str]:
        house = self.client.post(
            f"{API}/houses",
            json={"title": "Aunty's Kitchen", "location": "Pune"},
            headers=self.auth(owner_token),
        )
        self.assertEqual(house.status_code, 201, house.text)
        house_id = house.json()["id"]
        plan = self.client.post(
            f"{API}/houses/{house_id}/plans",
            json={
                "name": "Weekday lunch",
                "price": price,
                "billing_cycle": "weekly",
                "items": [{"name": "Dal", "quantity": "1 bowl"}, {"name": "Roti", "quantity": 4}],
            },
            headers=self.auth(owner_token),
        )
        self.assertEqual(plan.status_code, 201, plan.text)
        return house_id, plan.json()["id"]


class TestAuthEndpoints(ApiTestCase):
    def test_register_login_me(self) -> None:
        registered = self.register("Alice@Example.com")
        self.assertEqual(registered["user"]["email"], "alice@example.com")
        self.assertEqual(registered["user"]["role"], "user")
        self.assertNotIn("password_hash", registered["user"])

        login = self.client.post(
            f"{API}/auth/login", json={"email": "alice@example.com", "password": "s3cret-pass"}
        )
        self.assertEqual(login.status_code, 200)
        me = self.client.get(f"{API}/auth/me", headers=self.auth(login.json()["access_token"]))
        self.assertEqual(me.json()["id"], registered["user"]["id"])

    def test_duplicate_email(self) -> None:
        self.register("bob@example.com")
        response = self.client.post(
            f"{API}/auth/register", json={"email": "BOB@example.com", "password": "another-pass"}
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"], "EmailAlreadyRegistered")

    def test_login_failure_is_generic(self) -> None:
        self.register("carol@example.com")
        wrong_password = self.client.post(
            f"{API}/auth/login", json={"email": "carol@example.com", "password": "nope-nope"}
        )
        unknown_email = self.client.post(
            f"{API}/auth/login", json={"email": "nobody@example.com", "password": "nope-nope"}
        )
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json()["detail"], unknown_email.json()["detail"])

    def test_admin_self_registration_refused_by_default(self) -> None:
        response = self.client.post(
            f"{API}/auth/register",
            json={"email": "root@example.com", "password": "s3cret-pass", "role": "admin"},
        )
        self.assertEqual(response.status_code, 403)

    def test_short_password_rejected(self) -> None:
        response = self.client.post(
            f"{API}/auth/register", json={"email": "dan@example.com", "password": "short"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "InvalidRequest")


class TestAccessGuard(ApiTestCase):
    def test_missing_token(self) -> None:
        response = self.client.get(f"{API}/orders/my")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "Unauthorized")
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_tampered_token(self) -> None:
        token = self.register("eve@example.com")["access_token"]
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, ("A" if signature[0] != "A" else "B") + signature[1:]])
        response = self.client.get(f"{API}/orders/my", headers=self.auth(tampered))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"], "InvalidToken")

    def test_user_cannot_create_house(self) -> None:
        token = self.register("frank@example.com")["access_token"]
        response = self.client.post(f"{API}/houses", json={"title": "Nope"}, headers=self.auth(token))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "Forbidden")

    def test_other_owner_cannot_edit_house(self) -> None:
        owner = self.register("owner-a@example.com", role="owner")["access_token"]
        other = self.register("owner-z@example.com", role="owner")["access_token"]
        house_id, _ = self.seed_house_and_plan(owner)
        response = self.client.patch(
            f"{API}/houses/{house_id}", json={"title": "Mine now"}, headers=self.auth(other)
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get(f"{API}/houses/{house_id}").json()["title"], "Aunty's Kitchen")


class TestMarketplaceFlow(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner = self.register("owner@example.com", role="owner")["access_token"]
        self.customer = self.register("customer@example.com")["access_token"]
        self.house_id, self.plan_id = self.seed_house_and_plan(self.owner)

    def place(self) -> dict:
        response = self.client.post(
            f"{API}/orders", json={"plan_id": self.plan_id}, headers=self.auth(self.customer)
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def set_status(self, order_id: str, status: str, token: str):
        return self.client.patch(
            f"{API}/orders/{order_id}/status", json={"status": status}, headers=self.auth(token)
        )

    def test_public_catalogue(self) -> None:
        houses = self.client.get(f"{API}/houses").json()
        self.assertEqual([h["id"] for h in houses], [self.house_id])
        plans = self.client.get(f"{API}/houses/{self.house_id}/plans").json()
        self.assertEqual(plans[0]["items"][1], {"name": "Roti", "quantity": "4", "note": None})

    def test_order_snapshots_price(self) -> None:
        order = self.place()
        self.assertEqual(order["status"], "created")
        self.assertEqual(order["amount"], "10.00")

        updated = self.client.patch(
            f"{API}/houses/{self.house_id}/plans/{self.plan_id}",
            json={"price": "12.50"},
            headers=self.auth(self.owner),
        )
        self.assertEqual(updated.status_code, 200)
        fetched = self.client.get(f"{API}/orders/{order['id']}", headers=self.auth(self.customer))
        self.assertEqual(fetched.json()["amount"], "10.00")
        self.assertEqual(self.place()["amount"], "12.50")

    def test_owner_drives_lifecycle(self) -> None:
        order = self.place()
        self.assertEqual(self.set_status(order["id"], "confirmed", self.owner).json()["status"], "confirmed")
        self.assertEqual(self.set_status(order["id"], "fulfilled", self.owner).json()["status"], "fulfilled")
        again = self.set_status(order["id"], "cancelled", self.owner)
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "IllegalTransition")
        self.assertFalse(again.json()["retryable"])

    def test_customer_cannot_fulfil(self) -> None:
        order = self.place()
        self.set_status(order["id"], "confirmed", self.owner)
        response = self.set_status(order["id"], "fulfilled", self.customer)
        self.assertEqual(response.status_code, 403)

    def test_customer_cancels_created_order(self) -> None:
        order = self.place()
        response = self.set_status(order["id"], "cancelled", self.customer)
        self.assertEqual(response.json()["status"], "cancelled")

    def test_unknown_status_value(self) -> None:
        order = self.place()
        self.assertEqual(self.set_status(order["id"], "shipped", self.owner).status_code, 422)

    def test_house_delete_blocked_by_open_orders(self) -> None:
        order = self.place()
        blocked = self.client.delete(f"{API}/houses/{self.house_id}", headers=self.auth(self.owner))
        self.assertEqual(blocked.status_code, 409)
        self.assertEqual(blocked.json()["error"], "HasOpenOrders")

        self.set_status(order["id"], "cancelled", self.owner)
        deleted = self.client.delete(f"{API}/houses/{self.house_id}", headers=self.auth(self.owner))
        self.assertEqual(deleted.status_code, 204)
        self.assertEqual(self.client.get(f"{API}/houses/{self.house_id}").status_code, 404)
        history = self.client.get(f"{API}/orders/my", headers=self.auth(self.customer)).json()["orders"]
        self.assertEqual([(o["id"], o["status"]) for o in history], [(order["id"], "cancelled")])

    def test_house_orders_and_my_orders(self) -> None:
        order = self.place()
        mine = self.client.get(f"{API}/orders/my", headers=self.auth(self.customer)).json()["orders"]
        self.assertEqual([o["id"] for o in mine], [order["id"]])
        house_orders = self.client.get(
            f"{API}/houses/{self.house_id}/orders",
            params={"status": "created"},
            headers=self.auth(self.owner),
        )
        self.assertEqual(len(house_orders.json()["orders"]), 1)
        denied = self.client.get(f"{API}/houses/{self.house_id}/orders", headers=self.auth(self.customer))
        self.assertEqual(denied.status_code, 403)

    def test_invalid_plan_rejected(self) -> None:
        plans_url = f"{API}/houses/{self.house_id}/plans"
        inverted = {"start_time": "18:00", "end_time": "09:00"}
        bad_bodies = [
            {"name": "Late", "price": "5.00", **inverted},
            {"name": "Cheap", "price": "-1.00"},
            {"name": "Odd day", "price": "5.00", "available_days": ["Funday"]},
            {"name": "Bad items", "price": "5.00", "items": [{"name": "Dal"}]},
        ]
        for body in bad_bodies:
            with self.subTest(name=body["name"]):
                response = self.client.post(plans_url, json=body, headers=self.auth(self.owner))
                self.assertEqual(response.status_code, 422)
                self.assertEqual(response.json()["error"], "InvalidPlan")
                self.assertFalse(response.json()["retryable"])

        created = self.client.post(plans_url, json=bad_bodies[0], headers=self.auth(self.owner)).json()
        updated = self.client.patch(
            f"{plans_url}/{self.plan_id}", json=inverted, headers=self.auth(self.owner)
        ).json()
        self.assertEqual(set(created), {"error", "detail", "retryable"})
        self.assertEqual(set(updated), set(created))
        self.assertEqual(updated["error"], created["error"])
        self.assertIn("start_time must be earlier than end_time", created["detail"])

    def test_plan_mutations_by_other_owner_forbidden(self) -> None:
        intruder = self.auth(self.register("intruder@example.com", role="owner")["access_token"])
        plans_url = f"{API}/houses/{self.house_id}/plans"
        attempts = [
            self.client.post(plans_url, json={"name": "Mine", "price": "1.00"}, headers=intruder),
            self.client.patch(f"{plans_url}/{self.plan_id}", json={"price": "0.01"}, headers=intruder),
            self.client.delete(f"{plans_url}/{self.plan_id}", headers=intruder),
        ]
        for response in attempts:
            with self.subTest(method=response.request.method):
                self.assertEqual(response.status_code, 403)
                self.assertEqual(response.json()["error"], "Forbidden")
        plans = self.client.get(plans_url).json()
        self.assertEqual([(p["id"], p["price"]) for p in plans], [(self.plan_id, "10.00")])

    def test_available_slots(self) -> None:
        response = self.client.get(
            f"{API}/orders/available-slots",
            params={"house_id": self.house_id, "from": "2025-06-02T12:00:00+00:00", "days": 2},
        )
        self.assertEqual(response.status_code, 200)
        slots = response.json()["slots"]
        self.assertEqual([s["day"] for s in slots], ["2025-06-02", "2025-06-03"])
        self.assertTrue(slots[0]["opens_at"].startswith("2025-06-02T12:00:00"))
        self.assertEqual(slots[0]["price"], "10.00")

        too_many = self.client.get(f"{API}/orders/available-slots", params={"days": 31})
        self.assertEqual(too_many.status_code, 422)
        self.assertEqual(too_many.json()["error"], "InvalidRequest")
        unknown = self.client.get(f"{API}/orders/available-slots", params={"house_id": "no-such-house"})
        self.assertEqual(unknown.status_code, 404)

    def test_house_title_is_stripped_and_required(self) -> None:
        blank = self.client.post(f"{API}/houses", json={"title": "   "}, headers=self.auth(self.owner))
        self.assertEqual(blank.status_code, 422)
        self.assertEqual(blank.json()["error"], "InvalidRequest")
        self.assertIn("title must not be blank", blank.json()["detail"])

        renamed = self.client.patch(
            f"{API}/houses/{self.house_id}", json={"title": "  Dabba Co  "}, headers=self.auth(self.owner)
        )
        self.assertEqual(renamed.json()["title"], "Dabba Co")
        self.assertEqual(self.client.get(f"{API}/houses/{self.house_id}").json()["title"], "Dabba Co")

    def test_check_availability(self) -> None:
        plan = self.client.post(
            f"{API}/houses/{self.house_id}/plans",
            json={"name": "Weekend brunch", "price": "8.00", "available_days": ["Sat", "Sun"]},
            headers=self.auth(self.owner),
        ).json()
        body = {"plan_id": plan["id"], "consumption_at": "2025-06-02T12:00:00+00:00"}
        checked = self.client.post(f"{API}/orders/check-availability", json=body, headers=self.auth(self.customer))
        self.assertFalse(checked.json()["available"])
        placed = self.client.post(f"{API}/orders", json=body, headers=self.auth(self.customer))
        self.assertEqual(placed.status_code, 422)
        self.assertEqual(placed.json()["error"], "InvalidPlan")

    def test_renewals(self) -> None:
        response = self.client.get(
            f"{API}/plans/{self.plan_id}/renewals",
            params={"from": "2025-06-02T12:00:00+00:00", "count": 2},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["renews"])
        self.assertEqual(len(body["upcoming"]), 2)
        self.assertTrue(body["next_billing_at"].startswith("2025-06-09T12:00:00"))

    def test_renewals_reject_naive_from(self) -> None:
        response = self.client.get(
            f"{API}/plans/{self.plan_id}/renewals", params={"from": "2025-06-02T12:00:00"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"], "InvalidRequest")


class TestAdminAndHealth(ApiTestCase):
    def test_admin_endpoints(self) -> None:
        app = create_app(make_settings(ALLOW_SELF_REGISTER_ADMIN=True))
        app.state.database.create_all()
        with TestClient(app) as client:
            admin = client.post(
                f"{API}/auth/register",
                json={"email": "root@example.com", "password": "s3cret-pass", "role": "admin"},
            ).json()["access_token"]
            user = client.post(
                f"{API}/auth/register", json={"email": "u@example.com", "password": "s3cret-pass"}
            ).json()["access_token"]
            users = client.get(f"{API}/admin/users", headers=self.auth(admin))
            self.assertEqual(len(users.json()["users"]), 2)
            self.assertEqual(client.get(f"{API}/admin/orders", headers=self.auth(admin)).json(), {"orders": []})
            self.assertEqual(client.get(f"{API}/admin/users", headers=self.auth(user)).status_code, 403)

    def test_health(self) -> None:
        response = self.client.get(f"{API}/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "environment": "test", "database": "connected"})

    def test_store_failure_maps_to_503(self) -> None:
        error = OperationalError("SELECT 1", {}, Exception("could not connect"))
        with patch("mealhouse.services.houses.list_houses", side_effect=error):
            response = self.client.get(f"{API}/houses")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "StoreUnavailable")
        self.assertTrue(response.json()["retryable"])
        self.assertEqual(response.headers["Retry-After"], "1")


if __name__ == "__main__":
    unittest.main()
