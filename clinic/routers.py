"""
URL mappings for the clinic API.

Paths mirror the front-end portals.  Trailing slashes are deliberately
omitted (``APPEND_SLASH = False``).
"""
from django.urls import path, include

from .views import health
from .views.appointments import (
    appointment_book,
    appointment_list,
    appointment_detail,
    appointment_update_status,
)
from .views.dashboard import doctor_dashboard
from .views.doctors import doctor_list
from .views.queue import queue_today, queue_score


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Appointments
    path('api/appointments', appointment_list, name='appointment_list'),
    path('api/appointments/book', appointment_book, name='appointment_book'),
    path('api/appointments/update-status', appointment_update_status, name='appointment_update_status'),
    path('api/appointments/<int:pk>', appointment_detail, name='appointment_detail'),
    # Smart queue
    path('api/queue/today', queue_today, name='queue_today'),
    path('api/queue/score', queue_score, name='queue_score'),
    # Doctor portal
    path('api/doctor/dashboard', doctor_dashboard, name='doctor_dashboard'),
    path('api/doctors', doctor_list, name='doctor_list'),
]
