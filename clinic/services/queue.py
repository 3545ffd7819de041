"""
Smart patient queue.

Orders today's accepted appointments by a single priority score built
from three terms, in decreasing weight:

1. urgency level (critical 1000, high 100, medium 50, low 10)
2. a flat 500 bonus for patients aged 60 or above
3. ``(1440 - minutes_since_midnight) / 10`` so earlier slots edge ahead

Higher score is seen sooner.  Equal scores keep the order they were
supplied in; repositories hand appointments over in booking order, so
ties go to whoever booked first.

Everything here is a pure function over a snapshot of records.  Records
are read through attributes (``age``, ``urgency``, ``scheduled_time``,
``status``, ``booked_at``) and never modified, so both ORM instances and
plain in-memory records can be ranked.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Iterable, Optional

from django.utils import timezone

from clinic.exceptions import InvalidInput

logger = logging.getLogger(__name__)

URGENCY_WEIGHT = {
    'critical': 1000,
    'high': 100,
    'medium': 50,
    'low': 10,
}

SENIOR_AGE = 60
SENIOR_BONUS = 500
MINUTES_PER_DAY = 24 * 60

ACCEPTED = 'accepted'


def parse_time_slot(value) -> int:
    """Return minutes since midnight for an ``"HH:MM"`` string or a ``time``."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise InvalidInput(f'unparseable scheduled time: {value!r}')
    parts = value.strip().split(':')
    if len(parts) != 2 or not all(p.isascii() and p.isdigit() for p in parts):
        raise InvalidInput(f'unparseable scheduled time: {value!r}')
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise InvalidInput(f'scheduled time out of range: {value!r}')
    return hours * 60 + minutes


def score_appointment(appointment) -> float:
    """Compute the priority score of one appointment.

    Raises :class:`InvalidInput` for an unknown urgency level or a time
    slot that cannot be parsed.
    """
    urgency = getattr(appointment, 'urgency', None)
    try:
        score = float(URGENCY_WEIGHT[urgency])
    except (KeyError, TypeError):
        raise InvalidInput(f'unknown urgency level: {urgency!r}') from None

    age = getattr(appointment, 'age', None)
    if not isinstance(age, int) or isinstance(age, bool) or age < 0:
        raise InvalidInput(f'invalid age: {age!r}')
    if age >= SENIOR_AGE:
        score += SENIOR_BONUS

    minutes = parse_time_slot(appointment.scheduled_time)
    score += (MINUTES_PER_DAY - minutes) / 10
    return score


def sort_queue(appointments: Iterable) -> list:
    """Return accepted appointments ordered by score, highest first.

    Malformed records are not skipped: the first one raises
    :class:`InvalidInput` after being logged.
    """
    scored = []
    for appointment in appointments:
        if appointment.status != ACCEPTED:
            continue
        try:
            score = score_appointment(appointment)
        except InvalidInput as exc:
            logger.error("Cannot rank appointment %s: %s", getattr(appointment, 'id', '?'), exc)
            raise
        scored.append((score, appointment))
    # sorted() is stable, so equal scores keep their input order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [appointment for _, appointment in scored]


def _clinic_date(value) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def today_appointments(appointments: Iterable, now: Optional[datetime] = None) -> list:
    """Keep appointments booked on the same clinic-local calendar day as ``now``."""
    today = _clinic_date(now or timezone.now())
    return [a for a in appointments if _clinic_date(a.booked_at) == today]


def rank_today_queue(appointments: Iterable, now: Optional[datetime] = None) -> list:
    """Today's work queue: today's bookings, accepted only, by priority."""
    todays = today_appointments(appointments, now=now)
    queue = sort_queue(todays)
    logger.debug("Ranked %d accepted of %d appointments booked today", len(queue), len(todays))
    return queue
