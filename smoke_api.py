#!/usr/bin/env python3
"""
Smoke test for a running clinic API.

Walks the main flow against a live server: a patient books, a doctor
accepts, the appointment shows up in today's queue.  Tokens come from
``manage.py ensure_test_users``:

    CLINIC_PATIENT_TOKEN=... CLINIC_DOCTOR_TOKEN=... python smoke_api.py
"""
import os
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

BASE_URL = os.getenv("CLINIC_BASE_URL", "http://127.0.0.1:8000")


@dataclass
class SmokeResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    description: str = ""


class SmokeTester:
    def __init__(self, patient_token: str, doctor_token: str):
        self.session = requests.Session()
        self.tokens = {"patient": patient_token, "doctor": doctor_token}
        self.results: list[SmokeResult] = []

    def call(self, role: Optional[str], method: str, endpoint: str, data: Dict = None,
             expected_status: int = 200, description: str = "") -> Optional[Dict[str, Any]]:
        headers = {"Content-Type": "application/json"}
        if role:
            headers["Authorization"] = f"Token {self.tokens[role]}"
        start_time = time.time()
        try:
            response = self.session.request(method, f"{BASE_URL}{endpoint}", json=data, headers=headers, timeout=10)
        except requests.RequestException as e:
            self.results.append(SmokeResult(False, endpoint, method, 0, time.time() - start_time, str(e), description))
            print(f"❌ {method} {endpoint} - error: {e}")
            return None
        response_time = time.time() - start_time
        ok = response.status_code == expected_status
        self.results.append(SmokeResult(
            success=ok,
            endpoint=endpoint,
            method=method,
            status_code=response.status_code,
            response_time=response_time,
            error_message="" if ok else response.text[:200],
            description=description,
        ))
        if ok:
            print(f"✅ {method} {endpoint} - {description} ({response_time:.2f}s)")
            return response.json()
        print(f"❌ {method} {endpoint} - {response.status_code}: {response.text[:100]}")
        return None

    def run(self) -> bool:
        self.call(None, "GET", "/healthz", description="health check")
        self.call("patient", "GET", "/api/doctors", description="doctors directory")
        booked = self.call("patient", "POST", "/api/appointments/book", {
            "name": "Smoke Test",
            "age": 66,
            "issue": "Smoke test visit",
            "timeSlot": "08:00",
            "urgency": "high",
        }, expected_status=201, description="patient books")
        if booked:
            appointment_id = booked["data"]["id"]
            self.call("doctor", "POST", "/api/appointments/update-status",
                      {"id": appointment_id, "status": "accepted"}, description="doctor accepts")
            queue = self.call("doctor", "GET", "/api/queue/today", description="today's queue")
            if queue is not None and appointment_id not in [e["id"] for e in queue["data"]]:
                print(f"❌ appointment {appointment_id} missing from today's queue")
                self.results.append(SmokeResult(False, "/api/queue/today", "GET", 200, 0, "missing appointment"))
            self.call("doctor", "POST", "/api/appointments/update-status",
                      {"id": appointment_id, "status": "completed"}, description="doctor completes")
        self.call("doctor", "GET", "/api/doctor/dashboard", description="dashboard")
        self.call("patient", "POST", "/api/queue/score",
                  {"age": 40, "urgency": "urgent", "timeSlot": "08:00"},
                  expected_status=400, description="unknown urgency rejected")

        failures = [r for r in self.results if not r.success]
        print(f"\n{len(self.results) - len(failures)}/{len(self.results)} checks passed")
        return not failures


def main():
    patient_token = os.getenv("CLINIC_PATIENT_TOKEN")
    doctor_token = os.getenv("CLINIC_DOCTOR_TOKEN")
    if not patient_token or not doctor_token:
        print("Set CLINIC_PATIENT_TOKEN and CLINIC_DOCTOR_TOKEN (see manage.py ensure_test_users)")
        sys.exit(2)
    sys.exit(0 if SmokeTester(patient_token, doctor_token).run() else 1)


if __name__ == "__main__":
    main()
