"""
Smart queue endpoints.

``/api/queue/today`` returns the work list the doctor dashboard renders:
today's accepted appointments ordered by priority score.  The score
preview lets the booking screen show where a prospective appointment
would land without storing anything.
"""
from __future__ import annotations

from types import SimpleNamespace

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..repositories import OrmAppointmentRepository, build_today_queue
from ..serializers.appointment import ScorePreviewSerializer
from ..services.queue import SENIOR_AGE, score_appointment
from .appointments import serialize_appointment


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def queue_today(request):
    """Return today's prioritised queue.

    Each entry carries its 1-based ``position`` and the ``score`` it was
    ranked by.  An empty queue is returned as an empty list.
    """
    queue = build_today_queue(OrmAppointmentRepository())
    data: list[dict] = []
    for position, appointment in enumerate(queue, start=1):
        entry = serialize_appointment(appointment)
        entry['position'] = position
        entry['score'] = score_appointment(appointment)
        data.append(entry)
    return Response({'ok': True, 'count': len(data), 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def queue_score(request):
    """Score an ad-hoc appointment.  Bad urgency or time slot gives 400."""
    s = ScorePreviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    record = SimpleNamespace(age=vd['age'], urgency=vd['urgency'], scheduled_time=vd['timeSlot'])
    return Response({
        'ok': True,
        'score': score_appointment(record),
        'senior': vd['age'] >= SENIOR_AGE,
    })
