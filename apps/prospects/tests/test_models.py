"""
Prospect Model Tests
====================

Test Coverage:
1. conversion_rate - advanced / (Lead + advanced)
2. pipeline_value - Cotización + Negociación only
3. change_phase - audit entry with from/to
4. with_activity_stats - pending count, next date and assignee
5. days_in_phase

Run tests:
    python manage.py test apps.prospects.tests.test_models
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.utils import timezone
from apps.activities.models import Activity
from apps.core.models import ActivityLog
from apps.prospects.models import Prospect

User = get_user_model()


class ProspectMetricsTest(TestCase):
    """Test the dashboard metric helpers"""

    def test_conversion_rate_without_leads(self):
        Prospect.objects.create(company_name='Hotel Radisson')

        self.assertEqual(Prospect.objects.conversion_rate(), 0)

    def test_conversion_rate(self):
        Prospect.objects.create(company_name='A', current_phase=Prospect.PHASE_LEAD)
        Prospect.objects.create(company_name='B', current_phase=Prospect.PHASE_LEAD)
        Prospect.objects.create(company_name='C', current_phase=Prospect.PHASE_QUOTE)
        # Not counted on either side
        Prospect.objects.create(company_name='D', current_phase=Prospect.PHASE_PROSPECTING)
        Prospect.objects.create(company_name='E', current_phase=Prospect.PHASE_LOST)

        # 1 / (2 + 1) * 100 = 33.3
        self.assertEqual(Prospect.objects.conversion_rate(), 33)

    def test_pipeline_value(self):
        Prospect.objects.create(company_name='A', current_phase=Prospect.PHASE_QUOTE, estimated_value=Decimal('1500.50'))
        Prospect.objects.create(company_name='B', current_phase=Prospect.PHASE_NEGOTIATION, estimated_value=Decimal('2500'))
        Prospect.objects.create(company_name='C', current_phase=Prospect.PHASE_WON, estimated_value=Decimal('9999'))

        self.assertEqual(Prospect.objects.pipeline_value(), Decimal('4000.50'))

    def test_pipeline_value_empty(self):
        self.assertEqual(Prospect.objects.pipeline_value(), Decimal('0'))


class ProspectChangePhaseTest(TestCase):
    """Test phase changes and their audit entries"""

    def setUp(self):
        """Setup test data"""
        self.user = User.objects.create_user(
            email='laura@empresa.com',
            password='testpass123',
            first_name='Laura',
            last_name='Mora'
        )
        self.prospect = Prospect.objects.create(company_name='Hotel Radisson')

    def test_defaults(self):
        self.assertEqual(self.prospect.current_phase, Prospect.PHASE_PROSPECTING)
        self.assertEqual(self.prospect.estimated_value, Decimal('0'))
        self.assertEqual(self.prospect.days_in_phase(), 0)

    def test_change_phase_logs_update(self):
        changed = self.prospect.change_phase(Prospect.PHASE_LEAD, user=self.user)

        self.assertTrue(changed)
        self.prospect.refresh_from_db()
        self.assertEqual(self.prospect.current_phase, Prospect.PHASE_LEAD)

        log = ActivityLog.objects.get(action_type=ActivityLog.ACTION_UPDATE)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.entity_type, 'prospect')
        self.assertEqual(log.entity_id, self.prospect.pk)
        self.assertEqual(log.details['prospect_name'], 'Hotel Radisson')
        self.assertEqual(
            log.details['changes'],
            {'current_phase': {'from': 'Prospección', 'to': 'Lead'}}
        )

    def test_same_phase_is_noop(self):
        changed = self.prospect.change_phase(Prospect.PHASE_PROSPECTING, user=self.user)

        self.assertFalse(changed)
        self.assertFalse(ActivityLog.objects.filter(action_type=ActivityLog.ACTION_UPDATE).exists())

    def test_days_in_phase(self):
        Prospect.objects.filter(pk=self.prospect.pk).update(updated_at=timezone.now() - timedelta(days=5, hours=1))
        self.prospect.refresh_from_db()

        self.assertEqual(self.prospect.days_in_phase(), 5)


class ProspectActivityStatsTest(TestCase):
    """Test with_activity_stats annotations"""

    def setUp(self):
        """Setup test data"""
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
        self.prospect = Prospect.objects.create(company_name='Hotel Radisson')

    def test_no_activities(self):
        prospect = Prospect.objects.with_activity_stats().get(pk=self.prospect.pk)
        data = prospect.to_dict()

        self.assertEqual(data['pending_activities'], 0)
        self.assertIsNone(data['next_activity_date'])
        self.assertIsNone(data['assigned_user_name'])

    def test_next_pending_activity(self):
        Activity.objects.create(prospect=self.prospect, scheduled_date=self.today + timedelta(days=5), assigned_to=self.laura)
        Activity.objects.create(prospect=self.prospect, scheduled_date=self.today + timedelta(days=2), assigned_to=self.carlos)
        Activity.objects.create(
            prospect=self.prospect,
            scheduled_date=self.today - timedelta(days=3),
            assigned_to=self.laura,
            status=Activity.STATUS_COMPLETED,
            completion_comment='Llamada realizada con éxito',
            completed_at=timezone.now()
        )

        data = Prospect.objects.with_activity_stats().get(pk=self.prospect.pk).to_dict()

        self.assertEqual(data['pending_activities'], 2)
        self.assertEqual(data['next_activity_date'], (self.today + timedelta(days=2)).isoformat())
        self.assertEqual(data['assigned_user_name'], 'Carlos Vargas')

    def test_stats_for_salesperson(self):
        Activity.objects.create(prospect=self.prospect, scheduled_date=self.today + timedelta(days=5), assigned_to=self.laura)
        Activity.objects.create(prospect=self.prospect, scheduled_date=self.today + timedelta(days=2), assigned_to=self.carlos)

        data = Prospect.objects.with_activity_stats(self.laura).get(pk=self.prospect.pk).to_dict()

        self.assertEqual(data['pending_activities'], 1)
        self.assertEqual(data['next_activity_date'], (self.today + timedelta(days=5)).isoformat())
        self.assertEqual(data['assigned_user_name'], 'Laura Mora')

    def test_plain_to_dict_has_no_stats(self):
        self.assertNotIn('pending_activities', self.prospect.to_dict())
