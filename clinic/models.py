"""
Database models for the clinic backend.

Appointments are created by the booking screen in ``pending`` state and
move through the approval workflow driven by doctors.  The ranking core
in :mod:`clinic.services.queue` only ever reads them.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom user model carrying a role.

    Roles mirror the front-end portals: patients book appointments,
    doctors and admins work the approval queue.
    """
    ROLE_CHOICES = [
        ('patient', 'Patient'),
        ('doctor', 'Doctor'),
        ('admin', 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='patient')

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """A doctor patients can pick as their preferred physician."""
    id = models.CharField(
        max_length=20,
        primary_key=True,
        help_text="Short identifier (e.g. 'd1')",
    )
    name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=255, blank=True)
    # Booking screen only lists available doctors
    available = models.BooleanField(default=True, db_index=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"


class Appointment(models.Model):
    URGENCY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    patient = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    patient_name = models.CharField(max_length=255)
    age = models.PositiveIntegerField()
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    issue = models.TextField()
    preferred_doctor = models.ForeignKey(
        Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    # "HH:MM" on the 24-hour clock, no date component
    scheduled_time = models.CharField(max_length=5)
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='medium', db_index=True)
    # Queue and dashboards filter on status
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    booked_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ['booked_at', 'id']

    @property
    def is_senior(self) -> bool:
        return self.age >= 60

    def __str__(self) -> str:
        return f"{self.patient_name} @ {self.scheduled_time} ({self.urgency}, {self.status})"


class AppointmentTransition(models.Model):
    """Records a status transition for an appointment."""
    appointment = models.ForeignKey(Appointment, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=10, null=True, blank=True)
    to_status = models.CharField(max_length=10)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointment_transitions'
    )
    timestamp = models.DateTimeField(auto_now_add=True)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.appointment_id}: {self.from_status} → {self.to_status}"
