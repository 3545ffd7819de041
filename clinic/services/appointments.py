import logging
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from clinic.models import Appointment, AppointmentTransition, Doctor, User

logger = logging.getLogger(__name__)

QUEUE_GROUP = 'queue'

TRANSITIONS = {
    Appointment.STATUS_PENDING: [Appointment.STATUS_ACCEPTED, Appointment.STATUS_REJECTED],
    Appointment.STATUS_ACCEPTED: [Appointment.STATUS_COMPLETED],
    Appointment.STATUS_REJECTED: [],
    Appointment.STATUS_COMPLETED: [],
}


class TransitionError(ValueError):
    pass


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, [])


def book_appointment(patient: Optional[User], *, patient_name: str, age: int, issue: str,
                     scheduled_time: str, urgency: str, email: str = '', phone: str = '',
                     preferred_doctor_id: Optional[str] = None) -> Appointment:
    doctor = None
    if preferred_doctor_id:
        doctor = Doctor.objects.filter(id=preferred_doctor_id).first()
        if doctor is None:
            raise ValueError('preferred doctor not found')
    appointment = Appointment.objects.create(
        patient=patient if getattr(patient, 'id', None) else None,
        patient_name=patient_name,
        age=age,
        email=email or '',
        phone=phone or '',
        issue=issue,
        preferred_doctor=doctor,
        scheduled_time=scheduled_time,
        urgency=urgency,
        status=Appointment.STATUS_PENDING,
    )
    AppointmentTransition.objects.create(
        appointment=appointment,
        from_status=None,
        to_status=Appointment.STATUS_PENDING,
        operator=appointment.patient,
        reason='booked',
    )
    logger.info(f"Appointment {appointment.id} booked for {scheduled_time} ({urgency})")
    return appointment


def update_status(appointment_id, new_status: str, operator: Optional[User], reason: str = '') -> Appointment:
    """Move an appointment along the approval workflow.

    The row is locked while the status changes and a transition record
    is written in the same transaction.  Dashboards subscribed to the
    ``queue`` channel group are told to refresh once it commits.
    """
    with transaction.atomic():
        appointment = Appointment.objects.select_for_update().get(id=appointment_id)
        old_status = appointment.status
        if not can_transition(old_status, new_status):
            raise TransitionError(f'cannot move from {old_status} to {new_status}')
        appointment.status = new_status
        appointment.save(update_fields=['status'])
        AppointmentTransition.objects.create(
            appointment=appointment,
            from_status=old_status,
            to_status=new_status,
            operator=operator,
            reason=reason or 'status update',
        )
        transaction.on_commit(lambda: broadcast_queue_refresh(appointment.id, new_status))
    logger.info(f"Appointment {appointment.id}: {old_status} -> {new_status} by {getattr(operator, 'username', None)}")
    return appointment


def broadcast_queue_refresh(appointment_id=None, status: Optional[str] = None) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    now = timezone.now()
    event = {
        "type": "queue.refresh",
        "appointmentId": appointment_id,
        "status": status,
        "ts": now.isoformat(),
    }
    # runs after commit; a dead channel layer must not fail the request
    try:
        async_to_sync(channel_layer.group_send)(QUEUE_GROUP, event)
    except Exception:
        logger.exception("Queue refresh broadcast failed for appointment %s", appointment_id)
