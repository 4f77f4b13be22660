"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Race for a small concert's seats
  locust -f locustfile.py --tags throughput   # Concert list cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import random
import string
from locust import HttpUser, task, between, tag

# Shared state
CONCERT_IDS = []
CONCURRENCY_CONCERT_ID = None


def random_email():
    return "load_" + "".join(random.choices(string.ascii_lowercase + string.digits, k=10)) + "@test.com"


def register(client) -> int | None:
    resp = client.post("/api/users", json={
        "name": "Load Tester",
        "email": random_email(),
        "password": "test123",
    })
    return resp.json()["id"] if resp.status_code == 201 else None


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT total_seats, available_seats FROM concerts WHERE id = X;
      SELECT COUNT(*) FROM reservations WHERE concert_id = X AND status = 'reserved';
    available_seats must equal total_seats minus the count, and never go negative.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_CONCERT_ID
        self.user_id = register(self.client)
        self.reservation_id = None

        if CONCURRENCY_CONCERT_ID is None:
            resp = self.client.post("/api/concerts", json={
                "name": "Concurrency Test Concert",
                "description": "10 seats only",
                "totalSeats": 10,
            })
            if resp.status_code == 201:
                CONCURRENCY_CONCERT_ID = resp.json()["id"]
                print(f"\nCreated concert {CONCURRENCY_CONCERT_ID} with 10 seats\n")

    @tag("concurrency")
    @task(3)
    def reserve_limited_seats(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_CONCERT_ID or not self.user_id or self.reservation_id:
            return

        with self.client.post("/api/reservations",
            json={"userId": self.user_id, "concertId": CONCURRENCY_CONCERT_ID},
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                self.reservation_id = resp.json()["id"]
                resp.success()
            elif resp.status_code == 400:
                resp.success()  # Expected: sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(1)
    def toggle_reservation(self):
        """Cancel and reinstate, putting seats back into the race."""
        if not self.reservation_id:
            return

        status = random.choice(["cancelled", "reserved"])
        with self.client.put(f"/api/reservations/{self.reservation_id}",
            json={"status": status},
            name="/api/reservations/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code in [200, 400]:
                resp.success()  # 400: seat taken while cancelled
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. With REDIS_ENABLED=false, run again

    Compare avg response time and P95/P99 latency of the list endpoint.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_concerts_cached(self):
        resp = self.client.get("/api/concerts", name="/api/concerts [cached]")
        if resp.status_code == 200 and not CONCERT_IDS:
            CONCERT_IDS.extend(c["id"] for c in resp.json())

    @tag("throughput", "read")
    @task(3)
    def get_concert_detail(self):
        if CONCERT_IDS:
            concert_id = random.choice(CONCERT_IDS)
            self.client.get(f"/api/concerts/{concert_id}", name="/api/concerts/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.user_id = register(self.client)

    @tag("edge")
    @task
    def unknown_concert(self):
        with self.client.post("/api/reservations",
            json={"userId": self.user_id or 1, "concertId": 999999},
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def non_positive_seats(self):
        with self.client.post("/api/concerts",
            json={"name": "Bad", "description": "Bad", "totalSeats": -5},
            catch_response=True
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def wrong_password(self):
        with self.client.post("/api/users/login",
            json={"email": "nobody@test.com", "password": "wrong1"},
            catch_response=True
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Expected 401, got {resp.status_code}")
