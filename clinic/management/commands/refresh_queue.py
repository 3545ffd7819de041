from django.conf import settings
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.repositories import OrmAppointmentRepository, build_today_queue
from clinic.services.appointments import broadcast_queue_refresh
from clinic.services.doctors import list_doctors
from clinic.views.doctors import doctors_cache_key


class Command(BaseCommand):
    help = "Warm the doctors cache, check today's queue ranks cleanly and tell dashboards to refresh."

    def handle(self, *args, **options):
        now = timezone.now()

        for available_only in (False, True):
            data, total = list_doctors(available_only=available_only)
            payload = {'ok': True, 'data': data, 'pagination': {'total': total, 'page': 1, 'pageSize': total}}
            cache.set(doctors_cache_key(None, available_only, None, None), payload, settings.DOCTORS_CACHE_SECONDS)

        # Raises InvalidInput on a malformed record
        queue = build_today_queue(OrmAppointmentRepository(), now=now)

        broadcast_queue_refresh()
        self.stdout.write(self.style.SUCCESS(f"Queue has {len(queue)} appointments at {now:%Y-%m-%d %H:%M}; dashboards notified"))
