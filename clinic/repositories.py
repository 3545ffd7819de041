"""
Data access for appointments.

Views and the queue builder depend on :class:`AppointmentRepository`
rather than on the ORM directly, so the ranking can run against a
database-backed store in production and a plain list in fixtures.
Both implementations hand records back in booking order
(``booked_at``, then ``id`` or insertion order); the queue relies on
that order to break ties between equal scores.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from django.utils import timezone

from clinic.models import Appointment
from clinic.services.queue import rank_today_queue


class AppointmentRepository:
    """Read/write access to appointment records."""

    def all(self) -> list:
        raise NotImplementedError

    def get(self, appointment_id):
        raise NotImplementedError

    def add(self, appointment):
        raise NotImplementedError

    def by_status(self, status: str) -> list:
        return [a for a in self.all() if a.status == status]


class OrmAppointmentRepository(AppointmentRepository):
    def __init__(self, queryset=None):
        self._queryset = queryset

    def _qs(self):
        qs = self._queryset if self._queryset is not None else Appointment.objects.all()
        return qs.select_related('preferred_doctor').order_by('booked_at', 'id')

    def all(self) -> list:
        return list(self._qs())

    def get(self, appointment_id) -> Optional[Appointment]:
        return self._qs().filter(id=appointment_id).first()

    def add(self, appointment: Appointment) -> Appointment:
        appointment.save()
        return appointment

    def by_status(self, status: str) -> list:
        return list(self._qs().filter(status=status))


@dataclass
class AppointmentRecord:
    """Plain appointment record for in-memory stores."""
    id: str
    age: int
    urgency: str
    scheduled_time: str
    booked_at: datetime
    status: str = 'pending'
    patient_name: str = ''
    issue: str = ''


class InMemoryAppointmentRepository(AppointmentRepository):
    def __init__(self, records: Optional[Iterable] = None):
        self.records = list(records or [])

    def all(self) -> list:
        # stable: same booked_at keeps insertion order
        return sorted(self.records, key=lambda r: r.booked_at)

    def get(self, appointment_id):
        return next((r for r in self.records if r.id == appointment_id), None)

    def add(self, appointment):
        self.records.append(appointment)
        return appointment


def build_today_queue(repository: AppointmentRepository, now: Optional[datetime] = None) -> list:
    """Rank today's accepted appointments held by ``repository``."""
    return rank_today_queue(repository.all(), now=now or timezone.now())


def load_records(rows: Iterable[dict]) -> InMemoryAppointmentRepository:
    """Build an in-memory repository from plain dicts (fixtures, seed data)."""
    return InMemoryAppointmentRepository([AppointmentRecord(**row) for row in rows])
