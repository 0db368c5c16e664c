"""
User Admin Tests
================

Test Coverage:
1. Changelist - pending activity column per user
2. Role actions - make_salesperson / make_manager

Run tests:
    python manage.py test apps.accounts.tests.test_admin
"""

from django.test import TestCase, Client
from django.urls import reverse
from django.contrib import admin
from django.contrib.auth import get_user_model
from django.utils import timezone
from apps.activities.models import Activity

User = get_user_model()


class UserAdminTest(TestCase):

    def setUp(self):
        """Setup test data"""
        self.client = Client()
        self.admin_user = User.objects.create_superuser(
            email='admin@empresa.com',
            password='testpass123',
            first_name='Admin'
        )
        self.laura = User.objects.create_user(
            email='laura@empresa.com',
            password='testpass123',
            first_name='Laura',
            last_name='Mora'
        )
        today = timezone.localdate()
        Activity.objects.create(scheduled_date=today, assigned_to=self.laura, activity_type=Activity.TYPE_GENERAL)
        Activity.objects.create(
            scheduled_date=today,
            assigned_to=self.laura,
            activity_type=Activity.TYPE_GENERAL,
            status=Activity.STATUS_BLOCKED,
            block_reason='Cliente de vacaciones'
        )
        self.client.force_login(self.admin_user)
        self.model_admin = admin.site._registry[User]

    def test_changelist_loads(self):
        response = self.client.get(reverse('admin:accounts_user_changelist'))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'laura@empresa.com')

    def test_pending_count_ignores_other_statuses(self):
        request = self.client.get(reverse('admin:accounts_user_changelist')).wsgi_request

        laura = self.model_admin.get_queryset(request).get(pk=self.laura.pk)

        self.assertEqual(self.model_admin.pending_count(laura), 1)

    def test_make_manager_action(self):
        response = self.client.post(reverse('admin:accounts_user_changelist'), {
            'action': 'make_manager',
            '_selected_action': [self.laura.pk],
        })

        self.assertEqual(response.status_code, 302)
        self.laura.refresh_from_db()
        self.assertTrue(self.laura.is_manager())

    def test_make_salesperson_action(self):
        self.laura.role = User.ROLE_MANAGER
        self.laura.save()

        self.client.post(reverse('admin:accounts_user_changelist'), {
            'action': 'make_salesperson',
            '_selected_action': [self.laura.pk],
        })

        self.laura.refresh_from_db()
        self.assertEqual(self.laura.role, User.ROLE_SALESPERSON)
