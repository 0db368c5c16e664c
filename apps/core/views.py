import logging
from datetime import datetime, time, timedelta

from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET

from apps.accounts.decorators import manager_required
from apps.accounts.models import User
from apps.accounts.views import user_stats
from apps.activities.daily_calls import generate_daily_calls
from apps.activities.models import Activity
from apps.prospects.models import Prospect
from .models import ActivityLog

logger = logging.getLogger(__name__)

# Maximum number of system calls listed in the "new calls" bucket
NEW_CALLS_LIMIT = 3

DATE_RANGES = ('today', 'yesterday', 'week', 'month')

# Action filter -> action types it covers
ACTION_FILTERS = {
    'all': None,
    'login': [ActivityLog.ACTION_LOGIN, ActivityLog.ACTION_LOGOUT],
    'complete': [ActivityLog.ACTION_COMPLETE],
    'create': [ActivityLog.ACTION_CREATE],
    'block': [ActivityLog.ACTION_BLOCK],
    'update': [ActivityLog.ACTION_UPDATE],
}


def _activities(queryset):
    return [activity.to_dict() for activity in queryset]


def dashboard_metrics(user, today=None):
    """
    Metrics bar of the dashboard

    - total_prospects: every prospect in the CRM
    - today_pending: visible pending activities scheduled today
    - pipeline_value: estimated value in Cotización + Negociación
    - conversion_rate: % of prospects past the Lead phase
    """
    today = today or timezone.localdate()
    prospects = Prospect.objects.all()

    return {
        'total_prospects': prospects.count(),
        'today_pending': Activity.objects.visible_to(user).pending().filter(scheduled_date=today).count(),
        'pipeline_value': prospects.pipeline_value(),
        'conversion_rate': prospects.conversion_rate(),
    }


def dashboard_buckets(user, today=None):
    """Visible activities classified for the dashboard"""
    today = today or timezone.localdate()
    visible = Activity.objects.visible_to(user).select_related('prospect', 'assigned_to')

    week = {}
    for activity in visible.this_week(today).order_by('scheduled_date', 'created_at'):
        week.setdefault(activity.scheduled_date.isoformat(), []).append(activity.to_dict())

    return {
        'urgent': _activities(visible.urgent(today).order_by('scheduled_date', 'created_at')),
        'today': _activities(visible.due_today(today).order_by('created_at')),
        'week': [{'date': day, 'activities': rows} for day, rows in week.items()],
        'new_calls': _activities(visible.new_calls(today).order_by('created_at')[:NEW_CALLS_LIMIT]),
        'blocked': _activities(visible.blocked().order_by('scheduled_date')),
        'general': _activities(visible.general().order_by('scheduled_date', 'created_at')),
        'awaiting_next_activity': _activities(visible.awaiting_next_activity().order_by('-completed_at')),
    }


@login_required
@require_GET
def dashboard_view(request):
    """
    Main dashboard

    Loading it also runs the daily call generator (Monday to Thursday,
    once per day).
    """
    today = timezone.localdate()

    try:
        daily_calls = generate_daily_calls(today=today).to_dict()
    except DatabaseError:
        logger.exception('Daily call generation failed on dashboard load')
        daily_calls = {'generated': 0, 'message': 'Daily call generation failed', 'activity_ids': []}

    return JsonResponse({
        'success': True,
        'today': today.isoformat(),
        'user': request.user.to_dict(),
        'daily_calls': daily_calls,
        'metrics': dashboard_metrics(request.user, today),
        'buckets': dashboard_buckets(request.user, today),
    })


@login_required
@require_GET
def metrics_view(request):
    return JsonResponse({
        'success': True,
        'metrics': dashboard_metrics(request.user),
    })


# TEAM (manager only)
@login_required
@manager_required
@require_GET
def team_view(request):
    """Every salesperson with counters, plus team totals"""
    salespersons = [user_stats(user) for user in User.objects.salespersons()]

    totals = {key: 0 for key in ('total', 'completed_this_week', 'pending', 'overdue', 'blocked')}
    for row in salespersons:
        for key in totals:
            totals[key] += row['stats'][key] or 0

    return JsonResponse({
        'success': True,
        'salespersons': salespersons,
        'team_stats': totals,
    })


def date_range_bounds(date_range, now=None):
    """Start and end (None = open ended) datetimes for a log date filter"""
    now = now or timezone.localtime()
    today_start = timezone.make_aware(datetime.combine(now.date(), time.min))

    if date_range == 'yesterday':
        return today_start - timedelta(days=1), today_start
    if date_range == 'week':
        # Weeks start on Monday
        return today_start - timedelta(days=now.weekday()), None
    if date_range == 'month':
        return today_start.replace(day=1), None
    return today_start, None


def format_active_time(logs):
    """
    Time between the latest login and the latest logout after it

    Returns "Xh Ymin", "Aún activo" or "Sin sesión registrada"
    """
    last_login = next((log for log in logs if log.action_type == ActivityLog.ACTION_LOGIN), None)
    if last_login is None:
        return 'Sin sesión registrada'

    last_logout = next((log for log in logs if log.action_type == ActivityLog.ACTION_LOGOUT), None)
    if last_logout is None or last_logout.created_at < last_login.created_at:
        return 'Aún activo'

    minutes = int((last_logout.created_at - last_login.created_at).total_seconds() // 60)
    return f'{minutes // 60}h {minutes % 60}min'


def log_summary(logs):
    counts = {action: 0 for action, _label in ActivityLog.ACTION_CHOICES}
    for log in logs:
        counts[log.action_type] = counts.get(log.action_type, 0) + 1

    return {
        'logins': counts[ActivityLog.ACTION_LOGIN],
        'completed': counts[ActivityLog.ACTION_COMPLETE],
        'created': counts[ActivityLog.ACTION_CREATE],
        'blocked': counts[ActivityLog.ACTION_BLOCK],
        'updated': counts[ActivityLog.ACTION_UPDATE],
        'active_time': format_active_time(logs),
    }


@login_required
@manager_required
@require_GET
def user_logs_view(request, user_id):
    """
    Activity log of one user

    Query params:
        range: today (default) | yesterday | week | month
        action: all (default) | login | complete | create | block | update
    """
    user = get_object_or_404(User, pk=user_id)

    date_range = request.GET.get('range', 'today')
    if date_range not in DATE_RANGES:
        return JsonResponse({'success': False, 'error': 'Invalid date range'}, status=400)

    action_filter = request.GET.get('action', 'all')
    if action_filter not in ACTION_FILTERS:
        return JsonResponse({'success': False, 'error': 'Invalid action filter'}, status=400)

    start, end = date_range_bounds(date_range)
    logs = ActivityLog.objects.filter(user=user, created_at__gte=start)
    if end is not None:
        logs = logs.filter(created_at__lt=end)

    # Summary always covers every action type in the range
    summary = log_summary(list(logs.order_by('-created_at', '-id')))

    action_types = ACTION_FILTERS[action_filter]
    if action_types:
        logs = logs.filter(action_type__in=action_types)

    return JsonResponse({
        'success': True,
        'user': user.to_dict(),
        'range': date_range,
        'action': action_filter,
        'summary': summary,
        'logs': [log.to_dict() for log in logs.order_by('-created_at', '-id')],
    })
