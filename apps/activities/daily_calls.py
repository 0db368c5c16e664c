"""
Daily call generator

Monday to Thursday the CRM hands out a few qualification calls for
prospects nobody has touched recently. Runs when a dashboard loads and from
the Celery beat schedule; a second run on the same day does nothing.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.accounts.models import User
from apps.prospects.models import Prospect

from .models import Activity

logger = logging.getLogger(__name__)


DAILY_CALL_NOTES = 'Primera llamada de calificación'

# Eligibility windows (days)
UPCOMING_ACTIVITY_DAYS = 7
RECENT_COMPLETION_DAYS = 3
RECENT_SYSTEM_CALL_DAYS = 2


@dataclass
class DailyCallResult:
    generated: int
    message: str
    activities: list = field(default_factory=list)

    def to_dict(self):
        return {
            'generated': self.generated,
            'message': self.message,
            'activity_ids': [activity.id for activity in self.activities],
        }


def _start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def is_generation_day(day):
    return day.weekday() in settings.DAILY_CALL_WEEKDAYS


def already_generated(today):
    """True when a system call is already scheduled for today"""
    return Activity.objects.filter(
        activity_type=Activity.TYPE_CALL,
        created_by=Activity.CREATED_BY_SYSTEM,
        scheduled_date=today,
    ).exists()


def eligible_prospects(today=None):
    """
    Prospects in Prospección with no recent or upcoming contact

    Excluded:
    - pending activity scheduled within the next 7 days (or overdue)
    - activity completed in the last 3 days
    - system call created in the last 2 days
    """
    today = today or timezone.localdate()

    upcoming = Activity.objects.filter(
        status=Activity.STATUS_PENDING,
        scheduled_date__lte=today + timedelta(days=UPCOMING_ACTIVITY_DAYS),
    ).values('prospect_id')

    recently_completed = Activity.objects.filter(
        status=Activity.STATUS_COMPLETED,
        completed_at__gte=_start_of_day(today - timedelta(days=RECENT_COMPLETION_DAYS)),
    ).values('prospect_id')

    recent_system_calls = Activity.objects.filter(
        activity_type=Activity.TYPE_CALL,
        created_by=Activity.CREATED_BY_SYSTEM,
        created_at__gte=_start_of_day(today - timedelta(days=RECENT_SYSTEM_CALL_DAYS)),
    ).values('prospect_id')

    return (
        Prospect.objects.in_phase(Prospect.PHASE_PROSPECTING)
        .exclude(id__in=upcoming.filter(prospect__isnull=False))
        .exclude(id__in=recently_completed.filter(prospect__isnull=False))
        .exclude(id__in=recent_system_calls.filter(prospect__isnull=False))
    )


def pick_assignee():
    """Active salesperson with the fewest pending activities (ties by name)"""
    return (
        User.objects.salespersons()
        .annotate(pending_load=Count(
            'assigned_activities',
            filter=Q(assigned_activities__status=Activity.STATUS_PENDING),
        ))
        .order_by('pending_load', 'first_name', 'last_name', 'id')
        .first()
    )


def generate_daily_calls(today=None, limit=None):
    """
    Create today's qualification calls

    Args:
        today (date): Defaults to the local date
        limit (int): Defaults to DAILY_CALLS_PER_DAY

    Returns:
        DailyCallResult
    """
    today = today or timezone.localdate()
    limit = settings.DAILY_CALLS_PER_DAY if limit is None else limit

    if not is_generation_day(today):
        return DailyCallResult(0, 'Daily calls are only generated Monday to Thursday')

    if already_generated(today):
        return DailyCallResult(0, 'Daily calls were already generated today')

    prospects = list(eligible_prospects(today).order_by('?')[:limit])
    if not prospects:
        logger.info('No prospects eligible for daily calls on %s', today)
        return DailyCallResult(0, 'No prospects available for daily calls')

    created = []
    with transaction.atomic():
        for prospect in prospects:
            created.append(Activity.objects.create(
                prospect=prospect,
                activity_type=Activity.TYPE_CALL,
                scheduled_date=today,
                status=Activity.STATUS_PENDING,
                notes=DAILY_CALL_NOTES,
                assigned_to=pick_assignee(),
                created_by=Activity.CREATED_BY_SYSTEM,
            ))

    logger.info('Generated %d daily calls for %s', len(created), today)
    return DailyCallResult(len(created), f'{len(created)} daily calls generated', created)
