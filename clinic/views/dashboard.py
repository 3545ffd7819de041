"""
Doctor dashboard endpoint.

Summarises the three tabs of the doctor portal: appointments awaiting
review, today's queue and the history of handled appointments.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment
from ..permissions import IsStaffRole
from ..repositories import OrmAppointmentRepository, build_today_queue
from ..services.doctors import available_doctor_count
from ..services.queue import URGENCY_WEIGHT


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def doctor_dashboard(request):
    repo = OrmAppointmentRepository()
    queue = build_today_queue(repo)
    urgency_counts = {level: 0 for level in URGENCY_WEIGHT}
    for appointment in queue:
        urgency_counts[appointment.urgency] += 1
    qs = Appointment.objects.all()
    return Response({
        'ok': True,
        'pending': qs.filter(status=Appointment.STATUS_PENDING).count(),
        'queue': len(queue),
        'history': qs.exclude(status=Appointment.STATUS_PENDING).count(),
        'seniorsInQueue': sum(1 for a in queue if a.is_senior),
        'urgency': urgency_counts,
        'availableDoctors': available_doctor_count(),
    })
