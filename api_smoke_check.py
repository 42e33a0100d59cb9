#!/usr/bin/env python3
"""
Smoke check against a running server.

Logs in with the accounts created by ``manage.py ensure_test_users`` and
hits the read endpoints each role is allowed to use, then prints a
summary.  Exits non-zero when any call returns an unexpected status.

    python manage.py ensure_test_users
    python manage.py runserver &
    python api_smoke_check.py
"""
import os
import sys
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8000")
PASSWORD = os.getenv("API_TEST_PASSWORD", "Hospital#2024")

TEST_USERS = {
    "super_admin": "superadmin",
    "receptionist": "reception1",
    "finance": "finance1",
    "patient": "3171000000000001",
}

COMMON = [
    ("GET", "/healthz", 200, "health check"),
    ("GET", "/api/auth/me", 200, "own profile"),
    ("GET", "/api/doctors", 200, "doctor list"),
    ("GET", "/api/rooms", 200, "room list"),
    ("GET", "/api/ambulances", 200, "ambulance list"),
    ("GET", "/api/appointments", 200, "appointments"),
    ("GET", "/api/room-bookings", 200, "room bookings"),
    ("GET", "/api/ambulance-requests", 200, "ambulance requests"),
    ("GET", "/api/payments", 200, "payments"),
    ("GET", "/api/notifications", 200, "notifications"),
    ("GET", "/api/notifications/unread-count", 200, "unread count"),
    ("GET", "/api/ambulances/available/search", 200, "available ambulances"),
]

STAFF = [
    ("GET", "/api/users", 200, "patient accounts"),
    ("GET", "/api/admins", 200, "staff accounts"),
    ("GET", "/api/dashboard", 200, "dashboard"),
    ("GET", "/api/reports/daily", 200, "daily report"),
    ("GET", "/api/room-bookings/occupancy-report", 200, "occupancy report"),
    ("GET", "/api/ambulance-requests/emergency", 200, "emergency board"),
    ("GET", "/api/search/appointments", 200, "appointment search"),
    ("GET", "/api/search/payments", 200, "payment search"),
]

PATIENT = [
    ("GET", "/api/users", 403, "patient accounts are staff only"),
    ("GET", "/api/dashboard", 403, "dashboard is staff only"),
    ("GET", "/api/ambulance-requests/emergency", 403, "emergency board is staff only"),
]


@dataclass
class CheckResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""
    user_role: str = ""


class SmokeChecker:
    def __init__(self):
        self.session = requests.Session()
        self.headers: Dict[str, str] = {}
        self.current_role: Optional[str] = None
        self.results: List[CheckResult] = []
        self.errors: List[CheckResult] = []

    def _record(self, result: CheckResult) -> CheckResult:
        self.results.append(result)
        if not result.success:
            self.errors.append(result)
        mark = "ok  " if result.success else "FAIL"
        print(f"{mark} [{result.user_role}] {result.method} {result.endpoint} "
              f"{result.status_code} ({result.response_time:.2f}s)")
        return result

    def login(self, role: str, username: str) -> bool:
        self.current_role = role
        start = time.time()
        try:
            response = self.session.post(f"{BASE_URL}/api/auth/login",
                                         json={"username": username, "password": PASSWORD})
        except requests.RequestException as e:
            self._record(CheckResult(False, "/api/auth/login", "POST", 0, 0, str(e), "login", role))
            return False
        elapsed = time.time() - start
        if response.status_code != 200:
            self._record(CheckResult(False, "/api/auth/login", "POST", response.status_code, elapsed,
                                     response.text[:200], "login", role))
            return False
        token = response.json()["data"]["token"]
        self.headers = {"Authorization": f"Token {token}"}
        self._record(CheckResult(True, "/api/auth/login", "POST", 200, elapsed, "", "login", role))
        return True

    def check(self, method: str, endpoint: str, expected_status: int, description: str) -> CheckResult:
        start = time.time()
        try:
            response = self.session.request(method, f"{BASE_URL}{endpoint}", headers=self.headers)
        except requests.RequestException as e:
            return self._record(CheckResult(False, endpoint, method, 0, time.time() - start, str(e),
                                            description, self.current_role or ""))
        elapsed = time.time() - start
        ok = response.status_code == expected_status
        return self._record(CheckResult(ok, endpoint, method, response.status_code, elapsed,
                                        "" if ok else response.text[:200], description, self.current_role or ""))

    def run_role(self, role: str, username: str) -> None:
        if not self.login(role, username):
            return
        cases = COMMON + (PATIENT if role == "patient" else STAFF)
        for method, endpoint, expected, description in cases:
            self.check(method, endpoint, expected, description)
        self.check("POST", "/api/auth/logout", 200, "logout")

    def run(self) -> bool:
        for role, username in TEST_USERS.items():
            self.run_role(role, username)
            self.session = requests.Session()
            self.headers = {}
        self.report()
        return not self.errors

    def report(self) -> None:
        total = len(self.results)
        passed = total - len(self.errors)
        rate = (passed / total) * 100 if total else 0
        print(f"\n{passed}/{total} checks passed ({rate:.1f}%)")
        for i, error in enumerate(self.errors, 1):
            print(f"{i}. [{error.user_role}] {error.method} {error.endpoint} -> {error.status_code}")
            print(f"   {error.description}: {error.error_message}")


def main():
    checker = SmokeChecker()
    sys.exit(0 if checker.run() else 1)


if __name__ == "__main__":
    main()
