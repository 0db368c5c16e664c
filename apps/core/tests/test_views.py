"""
Dashboard and Team Views Tests
==============================

Test Coverage:
1. Dashboard View - dashboard_view (metrics, buckets, daily call run)
2. Metrics View - metrics_view
3. Team View - team_view (manager only, totals)
4. User Logs View - user_logs_view (range / action filters, summary)
5. date_range_bounds and format_active_time helpers

Run tests:
    python manage.py test apps.core.tests.test_views
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, Client
from django.urls import reverse
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.utils import timezone
from apps.activities.daily_calls import DailyCallResult
from apps.activities.models import Activity
from apps.core.models import ActivityLog
from apps.core.utils import log_action
from apps.core.views import date_range_bounds, format_active_time
from apps.prospects.models import Prospect
import json

User = get_user_model()

NO_CALLS = DailyCallResult(0, 'Daily calls were already generated today')


class CoreViewTestCase(TestCase):

    def setUp(self):
        """Setup test data"""
        self.client = Client()

        self.manager = User.objects.create_user(
            email='marta@empresa.com',
            password='testpass123',
            first_name='Marta',
            last_name='Solano',
            role=User.ROLE_MANAGER
        )
        self.laura = User.objects.create_user(
            email='laura@empresa.com',
            password='testpass123',
            first_name='Laura',
            last_name='Mora'
        )
        self.carlos = User.objects.create_user(
            email='carlos@empresa.com',
            password='testpass123',
            first_name='Carlos',
            last_name='Vargas'
        )
        self.today = timezone.localdate()


class DashboardViewTest(CoreViewTestCase):
    """Test dashboard metrics and buckets"""

    def setUp(self):
        super().setUp()
        self.radisson = Prospect.objects.create(
            company_name='Hotel Radisson',
            current_phase=Prospect.PHASE_QUOTE,
            estimated_value=Decimal('5000')
        )
        self.marriott = Prospect.objects.create(
            company_name='Marriott San José',
            current_phase=Prospect.PHASE_LEAD,
            estimated_value=Decimal('8000')
        )

        def create(days, assignee, prospect=None, **kwargs):
            return Activity.objects.create(
                prospect=prospect,
                scheduled_date=self.today + timedelta(days=days),
                assigned_to=assignee,
                **kwargs
            )

        self.urgent = create(-1, self.laura, self.radisson)
        self.due_today = create(0, self.laura, self.radisson)
        self.in_two_days = create(2, self.laura, self.marriott)
        self.in_two_days_bis = create(2, self.laura, self.radisson)
        self.general = create(0, self.laura, activity_type=Activity.TYPE_GENERAL)
        self.blocked = create(0, self.laura, self.marriott, status=Activity.STATUS_BLOCKED, block_reason='Cliente de vacaciones')
        self.carlos_today = create(0, self.carlos, self.marriott)
        for _ in range(4):
            create(0, self.laura, self.marriott, created_by=Activity.CREATED_BY_SYSTEM)

        self.awaiting = create(
            -3, self.laura, self.radisson,
            status=Activity.STATUS_COMPLETED,
            completion_comment='Cliente aceptó cotización',
            completed_at=timezone.now()
        )

    def _dashboard(self, user):
        self.client.force_login(user)
        with patch('apps.core.views.generate_daily_calls', return_value=NO_CALLS):
            response = self.client.get(reverse('core:dashboard'))
        self.assertEqual(response.status_code, 200)
        return json.loads(response.content)

    def test_requires_login(self):
        response = self.client.get(reverse('core:dashboard'))

        self.assertEqual(response.status_code, 302)

    def test_metrics(self):
        data = self._dashboard(self.laura)

        metrics = data['metrics']
        self.assertEqual(metrics['total_prospects'], 2)
        # Due today, the general task and the four system calls
        self.assertEqual(metrics['today_pending'], 6)
        self.assertEqual(Decimal(str(metrics['pipeline_value'])), Decimal('5000'))
        self.assertEqual(metrics['conversion_rate'], 50)

    def test_salesperson_buckets(self):
        buckets = self._dashboard(self.laura)['buckets']

        self.assertEqual([row['id'] for row in buckets['urgent']], [self.urgent.id])
        today_ids = {row['id'] for row in buckets['today']}
        self.assertIn(self.due_today.id, today_ids)
        self.assertNotIn(self.carlos_today.id, today_ids)
        self.assertNotIn(self.general.id, today_ids)
        self.assertEqual(len(buckets['new_calls']), 3)
        self.assertEqual([row['id'] for row in buckets['general']], [self.general.id])
        self.assertEqual([row['id'] for row in buckets['blocked']], [self.blocked.id])
        self.assertEqual([row['id'] for row in buckets['awaiting_next_activity']], [self.awaiting.id])

        week = buckets['week']
        self.assertEqual(len(week), 1)
        self.assertEqual(week[0]['date'], (self.today + timedelta(days=2)).isoformat())
        self.assertEqual(len(week[0]['activities']), 2)

    def test_salesperson_never_sees_others(self):
        buckets = self._dashboard(self.carlos)['buckets']

        for name, rows in buckets.items():
            if name == 'week':
                rows = [row for day in rows for row in day['activities']]
            for row in rows:
                self.assertEqual(row['assigned_to'], self.carlos.id, name)

    def test_manager_sees_everyone(self):
        buckets = self._dashboard(self.manager)['buckets']

        today_ids = {row['id'] for row in buckets['today']}
        self.assertIn(self.carlos_today.id, today_ids)
        self.assertIn(self.due_today.id, today_ids)

    def test_dashboard_runs_daily_calls(self):
        monday = self.today - timedelta(days=self.today.weekday())
        Activity.objects.filter(created_by=Activity.CREATED_BY_SYSTEM).delete()
        Prospect.objects.create(company_name='Panadería Central')
        self.client.force_login(self.laura)

        with patch('django.utils.timezone.localdate', return_value=monday):
            response = self.client.get(reverse('core:dashboard'))

        data = json.loads(response.content)
        self.assertEqual(data['today'], monday.isoformat())
        # Only Panadería Central has no upcoming activity
        self.assertEqual(data['daily_calls']['generated'], 1)

    def test_daily_call_failure_does_not_break_dashboard(self):
        self.client.force_login(self.laura)

        with patch('apps.core.views.generate_daily_calls', side_effect=DatabaseError('locked')):
            response = self.client.get(reverse('core:dashboard'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['daily_calls']['generated'], 0)

    def test_metrics_view(self):
        self.client.force_login(self.manager)

        response = self.client.get(reverse('core:metrics'))

        self.assertEqual(json.loads(response.content)['metrics']['total_prospects'], 2)


class TeamViewTest(CoreViewTestCase):
    """Test the manager team view"""

    def setUp(self):
        super().setUp()
        prospect = Prospect.objects.create(company_name='Hotel Radisson')
        Activity.objects.create(prospect=prospect, scheduled_date=self.today, assigned_to=self.laura)
        Activity.objects.create(prospect=prospect, scheduled_date=self.today - timedelta(days=1), assigned_to=self.carlos)
        Activity.objects.create(
            prospect=prospect,
            scheduled_date=self.today,
            assigned_to=self.carlos,
            status=Activity.STATUS_COMPLETED,
            completion_comment='Cliente aceptó cotización',
            completed_at=timezone.now()
        )

    def test_salesperson_forbidden(self):
        self.client.force_login(self.laura)

        response = self.client.get(reverse('core:team'))

        self.assertEqual(response.status_code, 403)

    def test_team_stats(self):
        self.client.force_login(self.manager)

        response = self.client.get(reverse('core:team'))

        data = json.loads(response.content)
        self.assertEqual(len(data['salespersons']), 2)
        self.assertEqual(data['team_stats'], {
            'total': 3,
            'completed_this_week': 1,
            'pending': 2,
            'overdue': 1,
            'blocked': 0,
        })


class UserLogsViewTest(CoreViewTestCase):
    """Test the per-user activity log"""

    def setUp(self):
        super().setUp()
        self.url = reverse('core:user_logs', args=[self.laura.pk])

        log_action(self.laura, ActivityLog.ACTION_LOGIN, details={'email': self.laura.email})
        log_action(self.laura, ActivityLog.ACTION_CREATE, details={'prospect_name': 'Hotel Radisson'})
        log_action(self.laura, ActivityLog.ACTION_COMPLETE, details={'prospect_name': 'Hotel Radisson'})
        log_action(self.laura, ActivityLog.ACTION_COMPLETE, details={'prospect_name': 'Marriott San José'})

        old = log_action(self.laura, ActivityLog.ACTION_BLOCK, details={'prospect_name': 'Hotel Radisson'})
        yesterday_noon = timezone.make_aware(datetime.combine(self.today - timedelta(days=1), time(12)))
        ActivityLog.objects.filter(pk=old.pk).update(created_at=yesterday_noon)

        self.client.force_login(self.manager)

    def test_salesperson_forbidden(self):
        self.client.force_login(self.laura)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, 403)

    def test_today_summary(self):
        response = self.client.get(self.url)

        data = json.loads(response.content)
        self.assertEqual(data['range'], 'today')
        self.assertEqual(len(data['logs']), 4)
        self.assertEqual(data['summary']['logins'], 1)
        self.assertEqual(data['summary']['completed'], 2)
        self.assertEqual(data['summary']['created'], 1)
        self.assertEqual(data['summary']['blocked'], 0)
        self.assertEqual(data['summary']['active_time'], 'Aún activo')

    def test_yesterday(self):
        response = self.client.get(self.url, {'range': 'yesterday'})

        logs = json.loads(response.content)['logs']
        self.assertEqual([log['action_type'] for log in logs], ['block'])

    def test_action_filter_keeps_full_summary(self):
        response = self.client.get(self.url, {'action': 'complete'})

        data = json.loads(response.content)
        self.assertEqual(len(data['logs']), 2)
        self.assertEqual(data['summary']['created'], 1)

    def test_month_includes_yesterday_unless_first_day(self):
        response = self.client.get(self.url, {'range': 'month'})

        expected = 4 if self.today.day == 1 else 5
        self.assertEqual(len(json.loads(response.content)['logs']), expected)

    def test_invalid_filters(self):
        self.assertEqual(self.client.get(self.url, {'range': 'year'}).status_code, 400)
        self.assertEqual(self.client.get(self.url, {'action': 'delete'}).status_code, 400)

    def test_unknown_user(self):
        response = self.client.get(reverse('core:user_logs', args=[9999]))

        self.assertEqual(response.status_code, 404)


class LogHelpersTest(TestCase):
    """Test date ranges and active time"""

    def test_date_range_bounds(self):
        # Wednesday afternoon
        now = timezone.make_aware(datetime(2024, 2, 7, 15, 30))
        def start_of(day):
            return timezone.make_aware(datetime.combine(day, time.min))

        self.assertEqual(date_range_bounds('today', now), (start_of(now.date()), None))
        self.assertEqual(
            date_range_bounds('yesterday', now),
            (start_of(now.date() - timedelta(days=1)), start_of(now.date()))
        )
        self.assertEqual(date_range_bounds('week', now), (start_of(now.date() - timedelta(days=2)), None))
        self.assertEqual(date_range_bounds('month', now), (start_of(now.date().replace(day=1)), None))

    def test_active_time(self):
        login_at = timezone.make_aware(datetime(2024, 2, 7, 8, 0))
        logs = [
            ActivityLog(action_type=ActivityLog.ACTION_LOGOUT, created_at=login_at + timedelta(hours=2, minutes=30)),
            ActivityLog(action_type=ActivityLog.ACTION_COMPLETE, created_at=login_at + timedelta(hours=1)),
            ActivityLog(action_type=ActivityLog.ACTION_LOGIN, created_at=login_at),
        ]

        self.assertEqual(format_active_time(logs), '2h 30min')

    def test_active_time_still_logged_in(self):
        login_at = timezone.make_aware(datetime(2024, 2, 7, 8, 0))
        logs = [
            ActivityLog(action_type=ActivityLog.ACTION_LOGIN, created_at=login_at),
            ActivityLog(action_type=ActivityLog.ACTION_LOGOUT, created_at=login_at - timedelta(hours=12)),
        ]

        self.assertEqual(format_active_time(logs), 'Aún activo')

    def test_no_session(self):
        self.assertEqual(format_active_time([]), 'Sin sesión registrada')
