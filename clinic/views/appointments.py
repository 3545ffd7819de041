"""
Appointment booking and approval endpoints.

Patients book appointments which start out ``pending``.  Doctors and
administrators accept or reject them and later mark accepted visits as
completed.  Each status change is validated against the workflow and
recorded as a transition.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle
from rest_framework import status

from ..models import Appointment, User
from ..permissions import IsPatientRole, IsStaffRole
from ..serializers.appointment import (
    AppointmentBookSerializer,
    AppointmentListQuerySerializer,
    AppointmentStatusSerializer,
)
from ..services.appointments import TransitionError, book_appointment, update_status


class BookingRateThrottle(UserRateThrottle):
    scope = 'booking'


def serialize_appointment(appointment: Appointment) -> dict:
    return {
        'id': appointment.id,
        'name': appointment.patient_name,
        'age': appointment.age,
        'senior': appointment.is_senior,
        'email': appointment.email,
        'phone': appointment.phone,
        'issue': appointment.issue,
        'preferredDoctor': appointment.preferred_doctor_id,
        'timeSlot': appointment.scheduled_time,
        'urgency': appointment.urgency,
        'status': appointment.status,
        'bookedAt': appointment.booked_at.isoformat(),
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientRole])
@throttle_classes([BookingRateThrottle])
def appointment_book(request):
    """Book an appointment for the calling patient.

    The new appointment is ``pending`` until a doctor reviews it.
    """
    s = AppointmentBookSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    try:
        appointment = book_appointment(
            request.user,
            patient_name=vd['name'],
            age=vd['age'],
            email=vd.get('email', ''),
            phone=vd.get('phone', ''),
            issue=vd['issue'],
            preferred_doctor_id=vd.get('preferredDoctor') or None,
            scheduled_time=vd['timeSlot'],
            urgency=vd['urgency'],
        )
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'ok': True, 'data': serialize_appointment(appointment)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_list(request):
    """List appointments, optionally filtered by ``status``.

    Staff see every appointment; patients only see their own bookings.
    """
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    user: User = request.user  # type: ignore[assignment]
    qs = Appointment.objects.select_related('preferred_doctor')
    if user.role == 'patient':
        qs = qs.filter(patient=user)
    if q.validated_data.get('status'):
        qs = qs.filter(status=q.validated_data['status'])
    qs = qs.order_by('-booked_at', '-id')
    total = qs.count()
    page = q.validated_data.get('page') or 1
    page_size = q.validated_data.get('pageSize') or 0
    if page_size:
        start = (page-1)*page_size
        qs = qs[start:start+page_size]
    return Response({
        'ok': True,
        'data': [serialize_appointment(a) for a in qs],
        'pagination': {'total': total, 'page': page, 'pageSize': page_size or total},
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    appointment = Appointment.objects.select_related('preferred_doctor').filter(id=pk).first()
    if not appointment:
        return Response({'ok': False, 'detail': 'not found'}, status=status.HTTP_404_NOT_FOUND)
    user: User = request.user  # type: ignore[assignment]
    if user.role == 'patient' and appointment.patient_id != user.id:
        return Response({'ok': False, 'detail': 'forbidden'}, status=status.HTTP_403_FORBIDDEN)
    data = serialize_appointment(appointment)
    data['transitionHistory'] = [
        {
            'from': t.from_status,
            'to': t.to_status,
            'operator': t.operator.username if t.operator else '',
            'timestamp': t.timestamp.strftime('%Y-%m-%d %H:%M'),
            'reason': t.reason,
        }
        for t in appointment.transitions.select_related('operator').order_by('timestamp', 'id')
    ]
    return Response({'ok': True, 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffRole])
def appointment_update_status(request):
    """Accept, reject or complete an appointment.

    Allowed moves are ``pending`` to ``accepted`` or ``rejected`` and
    ``accepted`` to ``completed``; anything else is rejected with 400.
    """
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if not Appointment.objects.filter(id=vd['id']).exists():
        return Response({'ok': False, 'detail': 'not found'}, status=status.HTTP_404_NOT_FOUND)
    try:
        appointment = update_status(vd['id'], vd['status'], request.user, vd.get('reason', ''))
    except TransitionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response({'ok': True, 'newStatus': appointment.status})
