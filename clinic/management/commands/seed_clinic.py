"""
Management command to populate the database with demo clinic data.
"""
import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Appointment, AppointmentTransition, Doctor


DOCTORS = [
    {'id': 'd1', 'name': 'Dr. Sarah Johnson', 'specialty': 'General Medicine'},
    {'id': 'd2', 'name': 'Dr. Michael Chen', 'specialty': 'Cardiology'},
    {'id': 'd3', 'name': 'Dr. Emily Rodriguez', 'specialty': 'Pediatrics'},
    {'id': 'd4', 'name': 'Dr. James Williams', 'specialty': 'Orthopedics'},
    {'id': 'd5', 'name': 'Dr. Priya Sharma', 'specialty': 'Emergency Medicine'},
]

PATIENTS = [
    ('Anna Lee', 45), ('Ben Okafor', 67), ('Carla Diaz', 72), ('Dev Patel', 30),
    ('Eva Novak', 8), ('Farid Haddad', 59), ('Grace Kim', 60), ('Hugo Martin', 81),
]

ISSUES = ['Chest pain', 'Persistent cough', 'Follow-up visit', 'Fever', 'Back pain', 'Sprained ankle']


class Command(BaseCommand):
    help = 'Populate database with doctors and demo appointments'

    def add_arguments(self, parser):
        parser.add_argument('--appointments', type=int, default=len(PATIENTS),
                            help='Number of demo appointments booked today (0 to skip)')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        doctors = self.create_doctors()
        count = self.create_appointments(doctors, options['appointments'], rng)
        self.stdout.write(self.style.SUCCESS(f'Seeded {len(doctors)} doctors and {count} appointments'))

    def create_doctors(self):
        doctors = []
        for data in DOCTORS:
            doctor, created = Doctor.objects.get_or_create(id=data['id'], defaults=data)
            doctors.append(doctor)
            self.stdout.write(f'Doctor: {doctor.name}')
        return doctors

    def create_appointments(self, doctors, count, rng):
        start_of_day = timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)
        for i in range(count):
            name, age = PATIENTS[i % len(PATIENTS)]
            status = rng.choice([Appointment.STATUS_PENDING, Appointment.STATUS_ACCEPTED, Appointment.STATUS_ACCEPTED])
            appointment = Appointment.objects.create(
                patient_name=name,
                age=age,
                issue=rng.choice(ISSUES),
                preferred_doctor=rng.choice(doctors),
                scheduled_time=f'{rng.randint(8, 17):02d}:{rng.choice([0, 15, 30, 45]):02d}',
                urgency=rng.choice(['low', 'medium', 'medium', 'high', 'critical']),
                status=status,
                booked_at=start_of_day + timedelta(minutes=rng.randint(0, 60 * 8)),
            )
            AppointmentTransition.objects.create(
                appointment=appointment, from_status=None, to_status=Appointment.STATUS_PENDING, reason='seeded'
            )
            if status != Appointment.STATUS_PENDING:
                AppointmentTransition.objects.create(
                    appointment=appointment, from_status=Appointment.STATUS_PENDING, to_status=status, reason='seeded'
                )
        return count
