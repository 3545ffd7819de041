from django.conf import settings
from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.serializers.doctor import DoctorListQuerySerializer
from clinic.services.doctors import list_doctors


def doctors_cache_key(q, available_only, page, page_size) -> str:
    return f"doctors:q={q or ''}:avail={int(available_only)}:p={page}:ps={page_size}"


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_list(request):
    """Return the doctors directory.
    Query params:
      - q: optional search (name/specialty contains)
      - availableOnly: only doctors taking appointments
      - page, pageSize: pagination (optional)
    """
    s = DoctorListQuerySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    q = (s.validated_data.get('q') or '').strip() or None
    available_only = s.validated_data.get('availableOnly', False)
    page = s.validated_data.get('page')
    page_size = s.validated_data.get('pageSize')

    cache_key = doctors_cache_key(q, available_only, page, page_size)
    cached = cache.get(cache_key)
    if cached:
        return Response(cached)

    doctors, total = list_doctors(q=q, available_only=available_only, page=page, page_size=page_size)
    payload = {'ok': True, 'data': doctors, 'pagination': {'total': total, 'page': page or 1, 'pageSize': page_size or total}}
    cache.set(cache_key, payload, settings.DOCTORS_CACHE_SECONDS)
    return Response(payload)
