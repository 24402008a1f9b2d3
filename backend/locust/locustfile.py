"""
Locust Load Test Suite

Needs an admin account for setup (create it with `izuran-admin create-admin`)
and its credentials in LOCUST_ADMIN_EMAIL / LOCUST_ADMIN_PASSWORD.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Oversell: many buyers, few tickets
  locust -f locustfile.py --tags scan         # Same code scanned at several gates
  locust -f locustfile.py --tags throughput   # Cached event listing
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import string
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag

ADMIN_EMAIL = os.environ.get("LOCUST_ADMIN_EMAIL", "admin@izuran.local")
ADMIN_PASSWORD = os.environ.get("LOCUST_ADMIN_PASSWORD", "change-me-admin")
PASSWORD = "loadtest-password"
CONCURRENCY_CAPACITY = 10

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def random_email():
    return f"load_{random.randint(10000, 99999)}_{random.randint(0, 9999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=10))


def attendee(ticket_type: str, quantity: int = 1) -> dict:
    return {
        "ticket_type": ticket_type,
        "quantity": quantity,
        "attendee_name": "Load Test",
        "attendee_email": "load@test.com",
    }


class IzuranUser(HttpUser):
    abstract = True

    def _login(self, email: str, password: str) -> dict:
        resp = self.client.post("/api/v1/auth/login", json={"email": email, "password": password})
        if resp.status_code != 200:
            return {}
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    def _register_and_login(self) -> dict:
        email = random_email()
        self.client.post("/api/v1/auth/register", json={
            "email": email,
            "username": random_username(),
            "password": PASSWORD,
        })
        return self._login(email, PASSWORD)

    def _create_event(self, admin_headers: dict, name: str, limits: list):
        future = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
        resp = self.client.post(
            "/api/v1/admin/events/",
            json={"name": name, "date": future, "location": "Load Venue"},
            headers=admin_headers,
        )
        if resp.status_code != 201:
            return None
        event_id = resp.json()["id"]
        for ticket_type, max_tickets in limits:
            self.client.post(
                f"/api/v1/admin/events/{event_id}/ticket-limits",
                json={"ticket_type": ticket_type, "max_tickets": max_tickets, "price": "20.00"},
                headers=admin_headers,
                name="/api/v1/admin/events/{id}/ticket-limits",
            )
        return event_id


class ConcurrencyUser(IzuranUser):
    """
    TEST 1: Oversell - 100 users -> 10 VIP tickets

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT sold_tickets, max_tickets FROM ticket_limits WHERE event_id = X;
      SELECT COUNT(*) FROM tickets WHERE event_id = X;
    Both counts must be <= 10.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_EVENT_ID
        self.headers = self._register_and_login()

        if CONCURRENCY_EVENT_ID is None:
            admin_headers = self._login(ADMIN_EMAIL, ADMIN_PASSWORD)
            if admin_headers:
                name = f"Concurrency Test {random.randint(1, 10**6)}"
                CONCURRENCY_EVENT_ID = self._create_event(
                    admin_headers, name, [("vip", CONCURRENCY_CAPACITY)]
                )
                print(f"\nCreated event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_CAPACITY} VIP tickets\n")

    @tag("concurrency")
    @task
    def buy_last_tickets(self):
        """All users fight for the same 10 tickets."""
        if not CONCURRENCY_EVENT_ID or not self.headers:
            return

        with self.client.post(
            f"/api/v1/tickets/purchase/{CONCURRENCY_EVENT_ID}",
            json=attendee("vip"),
            headers=self.headers,
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 is the expected sold_out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ScanUser(IzuranUser):
    """
    TEST 2: Double entry - one ticket, many gates

    Run: locust -f locustfile.py --tags scan -u 20 -r 20 --run-time 30s

    Each user buys one ticket and scans it repeatedly. Exactly one scan per
    ticket may report "accepted"; any second acceptance is a failure.
    """
    wait_time = between(0, 0.05)

    def on_start(self):
        self.admin_headers = self._login(ADMIN_EMAIL, ADMIN_PASSWORD)
        self.code = None
        self.accepted = 0
        if not self.admin_headers:
            return

        event_id = self._create_event(
            self.admin_headers, f"Scan Test {random.randint(1, 10**6)}", [("general", 1)]
        )
        buyer = self._register_and_login()
        resp = self.client.post(
            f"/api/v1/tickets/purchase/{event_id}",
            json=attendee("general"),
            headers=buyer,
            name="/api/v1/tickets/purchase/{id}",
        )
        if resp.status_code == 201:
            self.code = resp.json()["tickets"][0]["code"]

    @tag("scan")
    @task
    def scan(self):
        if not self.code:
            return
        with self.client.post(
            "/api/v1/admin/tickets/validate",
            json={"code": self.code, "scanner_id": f"gate-{random.randint(1, 4)}"},
            headers=self.admin_headers,
            catch_response=True,
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Unexpected: {resp.status_code}")
                return
            if resp.json()["accepted"]:
                self.accepted += 1
            if self.accepted > 1:
                resp.failure("ticket admitted twice")
            else:
                resp.success()


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(
            f"/api/v1/events/?page={page}&page_size=20", name="/api/v1/events/ [cached]"
        )
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def ticket_availability(self):
        """Never cached: always hits the database."""
        if EVENT_IDS:
            self.client.get(
                f"/api/v1/events/{random.choice(EVENT_IDS)}/tickets",
                name="/api/v1/events/{id}/tickets",
            )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(IzuranUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    The service must answer with proper error codes, never 500.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = self._register_and_login()

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/v1/tickets/purchase/999999",
            json=attendee("general"),
            headers=self.headers,
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def zero_quantity(self):
        with self.client.post(
            "/api/v1/tickets/purchase/1",
            json=attendee("general", quantity=0),
            headers=self.headers,
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def huge_quantity(self):
        with self.client.post(
            "/api/v1/tickets/purchase/1",
            json=attendee("general", quantity=999999),
            headers=self.headers,
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 404, 409, 422))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/tickets/purchase/1",
            data="not json at all",
            headers=self.headers,
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/tickets/purchase/1",
            json=attendee("general"),
            name="/api/v1/tickets/purchase/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (401,))

    @tag("edge")
    @task
    def forged_code_scan_without_admin(self):
        with self.client.post(
            "/api/v1/admin/tickets/validate",
            json={"code": "forged.code.value"},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (403,))
