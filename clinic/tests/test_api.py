"""
Integration tests for the clinic API.

These exercise booking, the approval workflow, the prioritised queue
and role based access control through DRF's APIClient.

To run the tests:

```
pytest -q clinic/tests
```
"""
from datetime import timedelta
from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from ..models import Appointment, AppointmentTransition, Doctor, User


class ClinicAPITests(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.doctor = Doctor.objects.create(id="d1", name="Dr. Sarah Johnson", specialty="General Medicine")
        Doctor.objects.create(id="d2", name="Dr. Michael Chen", specialty="Cardiology", available=False)

        self.doctor_user = User.objects.create_user(username="doctor1", password="docpass", role="doctor")
        self.patient_user = User.objects.create_user(username="patient1", password="patientpass", role="patient")
        self.other_patient = User.objects.create_user(username="patient2", password="patientpass", role="patient")

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def make_appointment(self, name, *, urgency="medium", age=30, slot="09:00",
                         status_="accepted", patient=None, booked_at=None) -> Appointment:
        return Appointment.objects.create(
            patient=patient,
            patient_name=name,
            age=age,
            issue="Checkup",
            scheduled_time=slot,
            urgency=urgency,
            status=status_,
            booked_at=booked_at or timezone.now(),
        )

    def book_payload(self, **overrides) -> dict:
        payload = {
            "name": "Jane Doe",
            "age": 64,
            "email": "jane@example.com",
            "phone": "555-0100",
            "issue": "Shortness of breath",
            "preferredDoctor": "d1",
            "timeSlot": "08:30",
            "urgency": "high",
        }
        payload.update(overrides)
        return payload

    # -- booking -----------------------------------------------------------

    def test_patient_books_pending_appointment(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/appointments/book", self.book_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["status"], "pending")
        self.assertTrue(response.data["data"]["senior"])
        appointment = Appointment.objects.get(id=response.data["data"]["id"])
        self.assertEqual(appointment.patient, self.patient_user)
        self.assertEqual(appointment.preferred_doctor, self.doctor)
        self.assertEqual(appointment.transitions.get().to_status, "pending")

    def test_booking_normalises_time_slot(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/appointments/book", self.book_payload(timeSlot="9:05"), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["timeSlot"], "09:05")

    def test_booking_rejects_bad_fields(self):
        client = self.authenticate(self.patient_user)
        for overrides in ({"timeSlot": "25:00"}, {"urgency": "urgent"}, {"age": 151}, {"age": -1}, {"issue": ""}):
            response = client.post("/api/appointments/book", self.book_payload(**overrides), format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, overrides)
            self.assertFalse(response.data["ok"])
        self.assertFalse(Appointment.objects.exists())

    def test_booking_with_unknown_doctor_fails(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/appointments/book", self.book_payload(preferredDoctor="d9"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_booking_strips_markup(self):
        client = self.authenticate(self.patient_user)
        response = client.post(
            "/api/appointments/book",
            self.book_payload(name="<b>Jane</b> Doe", issue="<script>x</script>Cough"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["data"]["name"], "Jane Doe")
        self.assertNotIn("<script>", response.data["data"]["issue"])

    def test_doctor_cannot_book(self):
        client = self.authenticate(self.doctor_user)
        response = client.post("/api/appointments/book", self.book_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_rejected(self):
        response = APIClient().get("/api/queue/today")
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    # -- approval workflow -------------------------------------------------

    def test_doctor_accepts_then_completes(self):
        appointment = self.make_appointment("Jane", status_="pending")
        client = self.authenticate(self.doctor_user)
        response = client.post("/api/appointments/update-status", {"id": appointment.id, "status": "accepted"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["newStatus"], "accepted")
        response = client.post("/api/appointments/update-status", {"id": appointment.id, "status": "completed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        appointment.refresh_from_db()
        self.assertEqual(appointment.status, "completed")
        history = list(AppointmentTransition.objects.filter(appointment=appointment).values_list("from_status", "to_status"))
        self.assertEqual(history, [("pending", "accepted"), ("accepted", "completed")])

    def test_illegal_transitions_are_rejected(self):
        rejected = self.make_appointment("R", status_="rejected")
        pending = self.make_appointment("P", status_="pending")
        client = self.authenticate(self.doctor_user)
        for appointment, new_status in ((rejected, "accepted"), (pending, "completed"), (rejected, "pending")):
            response = client.post("/api/appointments/update-status", {"id": appointment.id, "status": new_status}, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        pending.refresh_from_db()
        self.assertEqual(pending.status, "pending")

    def test_update_status_unknown_appointment(self):
        client = self.authenticate(self.doctor_user)
        response = client.post("/api/appointments/update-status", {"id": 999, "status": "accepted"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patient_cannot_change_status(self):
        appointment = self.make_appointment("Jane", status_="pending", patient=self.patient_user)
        client = self.authenticate(self.patient_user)
        response = client.post("/api/appointments/update-status", {"id": appointment.id, "status": "accepted"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_status_change_notifies_queue_subscribers(self):
        appointment = self.make_appointment("Jane", status_="pending")
        layer = get_channel_layer()
        channel = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)("queue", channel)
        client = self.authenticate(self.doctor_user)
        with self.captureOnCommitCallbacks(execute=True):
            client.post("/api/appointments/update-status", {"id": appointment.id, "status": "accepted"}, format="json")
        message = async_to_sync(layer.receive)(channel)
        self.assertEqual(message["type"], "queue.refresh")
        self.assertEqual(message["appointmentId"], appointment.id)
        self.assertEqual(message["status"], "accepted")

    def test_status_change_survives_broadcast_failure(self):
        appointment = self.make_appointment("Jane", status_="pending")
        client = self.authenticate(self.doctor_user)
        with mock.patch("clinic.services.appointments.get_channel_layer") as get_layer:
            get_layer.return_value.group_send = mock.AsyncMock(side_effect=ConnectionError("redis down"))
            with self.captureOnCommitCallbacks(execute=True):
                response = client.post("/api/appointments/update-status",
                                       {"id": appointment.id, "status": "accepted"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        appointment.refresh_from_db()
        self.assertEqual(appointment.status, "accepted")

    # -- listing -----------------------------------------------------------

    def test_patient_only_sees_own_appointments(self):
        mine = self.make_appointment("Mine", patient=self.patient_user)
        self.make_appointment("Theirs", patient=self.other_patient)
        client = self.authenticate(self.patient_user)
        response = client.get("/api/appointments")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([a["id"] for a in response.data["data"]], [mine.id])

    def test_staff_list_filters_by_status(self):
        self.make_appointment("P", status_="pending")
        accepted = self.make_appointment("A", status_="accepted")
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/appointments", {"status": "accepted"})
        self.assertEqual([a["id"] for a in response.data["data"]], [accepted.id])
        self.assertEqual(response.data["pagination"]["total"], 1)

    def test_detail_includes_transition_history(self):
        appointment = self.make_appointment("Jane", status_="pending", patient=self.patient_user)
        self.authenticate(self.doctor_user).post(
            "/api/appointments/update-status", {"id": appointment.id, "status": "rejected", "reason": "fully booked"}, format="json"
        )
        response = self.authenticate(self.patient_user).get(f"/api/appointments/{appointment.id}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        history = response.data["data"]["transitionHistory"]
        self.assertEqual(history[-1]["to"], "rejected")
        self.assertEqual(history[-1]["reason"], "fully booked")
        self.assertEqual(history[-1]["operator"], "doctor1")
        other = self.authenticate(self.other_patient).get(f"/api/appointments/{appointment.id}")
        self.assertEqual(other.status_code, status.HTTP_403_FORBIDDEN)

    # -- queue -------------------------------------------------------------

    def test_queue_orders_by_priority(self):
        a = self.make_appointment("A", urgency="critical", age=45, slot="09:00")
        b = self.make_appointment("B", urgency="high", age=65, slot="08:00")
        c = self.make_appointment("C", urgency="medium", age=70, slot="10:00")
        d = self.make_appointment("D", urgency="medium", age=30, slot="08:00")
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/queue/today")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e["id"] for e in response.data["data"]], [a.id, b.id, c.id, d.id])
        self.assertEqual([e["score"] for e in response.data["data"]], [1090, 696, 634, 146])
        self.assertEqual([e["position"] for e in response.data["data"]], [1, 2, 3, 4])

    def test_queue_skips_non_accepted_and_other_days(self):
        keep = self.make_appointment("Keep", urgency="low")
        self.make_appointment("Pending", urgency="critical", status_="pending")
        self.make_appointment("Done", urgency="critical", status_="completed")
        self.make_appointment("Rejected", urgency="critical", status_="rejected")
        self.make_appointment("Yesterday", urgency="critical", booked_at=timezone.now() - timedelta(days=1))
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/queue/today")
        self.assertEqual([e["id"] for e in response.data["data"]], [keep.id])

    def test_empty_queue(self):
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/queue/today")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"], [])
        self.assertEqual(response.data["count"], 0)

    def test_queue_with_malformed_record_reports_invalid_input(self):
        self.make_appointment("Broken", slot="99:99")
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/queue/today")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_input")

    def test_patient_cannot_view_queue(self):
        client = self.authenticate(self.patient_user)
        response = client.get("/api/queue/today")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_score_preview(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/queue/score", {"age": 65, "urgency": "high", "timeSlot": "08:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["score"], 696)
        self.assertTrue(response.data["senior"])

    def test_score_preview_unknown_urgency(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/queue/score", {"age": 40, "urgency": "urgent", "timeSlot": "08:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["ok"], False)
        self.assertEqual(response.data["error"]["code"], "invalid_input")

    def test_score_preview_non_ascii_digits(self):
        client = self.authenticate(self.patient_user)
        response = client.post("/api/queue/score", {"age": 30, "urgency": "low", "timeSlot": "²:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "invalid_input")

    def test_unexpected_error_hides_details(self):
        client = self.authenticate(self.doctor_user)
        with mock.patch("clinic.views.queue.build_today_queue", side_effect=RuntimeError("db password in here")):
            response = client.get("/api/queue/today")
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"]["code"], "server_error")
        self.assertNotIn("password", response.data["error"]["message"])

    # -- dashboard & doctors -----------------------------------------------

    def test_dashboard_counts(self):
        self.make_appointment("P1", status_="pending")
        self.make_appointment("P2", status_="pending")
        self.make_appointment("A1", urgency="critical", age=70)
        self.make_appointment("A2", urgency="low")
        self.make_appointment("C1", status_="completed")
        client = self.authenticate(self.doctor_user)
        response = client.get("/api/doctor/dashboard")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["pending"], 2)
        self.assertEqual(response.data["queue"], 2)
        self.assertEqual(response.data["history"], 3)
        self.assertEqual(response.data["seniorsInQueue"], 1)
        self.assertEqual(response.data["urgency"], {"low": 1, "medium": 0, "high": 0, "critical": 1})
        self.assertEqual(response.data["availableDoctors"], 1)

    def test_doctor_list_and_filter(self):
        client = self.authenticate(self.patient_user)
        response = client.get("/api/doctors")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d["id"] for d in response.data["data"]], ["d1", "d2"])
        response = client.get("/api/doctors", {"availableOnly": "true"})
        self.assertEqual([d["id"] for d in response.data["data"]], ["d1"])
        response = client.get("/api/doctors", {"q": "cardio"})
        self.assertEqual([d["id"] for d in response.data["data"]], ["d2"])

    def test_healthz(self):
        response = self.client.get("/healthz")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["ok"])
