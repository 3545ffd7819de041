from typing import Optional

from clinic.models import Doctor


def list_doctors(*, q: Optional[str] = None, available_only: bool = False,
                 page: Optional[int] = None, page_size: Optional[int] = None) -> tuple[list[dict], int]:
    qs = Doctor.objects.all()
    if q:
        qs = qs.filter(name__icontains=q) | qs.filter(specialty__icontains=q)
    if available_only:
        qs = qs.filter(available=True)

    qs = qs.order_by('id')
    total = qs.count()
    if page and page_size:
        start = (page-1)*page_size
        end = start + page_size
        qs = qs[start:end]

    data = [{
        'id': d.id,
        'name': d.name,
        'specialty': d.specialty,
        'available': d.available,
    } for d in qs]
    return data, total


def available_doctor_count() -> int:
    return Doctor.objects.filter(available=True).count()
