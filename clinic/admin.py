"""
Django admin registrations for the clinic models.

Lets superusers inspect and correct appointments, doctors and users via
``/admin/`` during development.
"""

from django.contrib import admin

from .models import Appointment, AppointmentTransition, Doctor, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'specialty', 'available')
    list_filter = ('available',)
    search_fields = ('id', 'name', 'specialty')


class AppointmentTransitionInline(admin.TabularInline):
    model = AppointmentTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp', 'reason')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient_name', 'age', 'urgency', 'scheduled_time', 'status', 'booked_at')
    list_filter = ('status', 'urgency', 'preferred_doctor')
    search_fields = ('patient_name', 'email', 'phone')
    inlines = [AppointmentTransitionInline]
