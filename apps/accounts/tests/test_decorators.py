"""
Tests for Custom Decorators
============================

Tests all custom decorators to ensure proper access control.

Test Cases:
1. manager_required decorator
2. salesperson_required decorator
3. role_required decorator
4. json_body decorator

Run tests:
    python manage.py test apps.accounts.tests.test_decorators
"""

import json

from django.test import TestCase, RequestFactory
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse, JsonResponse
from apps.accounts.decorators import (
    manager_required,
    salesperson_required,
    role_required,
    json_body
)

User = get_user_model()


class ManagerRequiredDecoratorTest(TestCase):
    """Test @manager_required decorator"""

    def setUp(self):
        """Setup test data"""
        self.factory = RequestFactory()

        self.manager = User.objects.create_user(
            email='manager@test.com',
            password='testpass123',
            first_name='Marta',
            last_name='Solano',
            role=User.ROLE_MANAGER
        )

        self.salesperson = User.objects.create_user(
            email='sales@test.com',
            password='testpass123',
            first_name='Laura',
            last_name='Mora',
            role=User.ROLE_SALESPERSON
        )

        @manager_required
        def manager_only_view(request):
            return HttpResponse('Manager Access')

        self.manager_only_view = manager_only_view

    def test_manager_allowed(self):
        """Manager should be allowed"""
        request = self.factory.get('/team/')
        request.user = self.manager

        response = self.manager_only_view(request)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content.decode(), 'Manager Access')

    def test_superuser_allowed(self):
        """Superusers count as managers"""
        superuser = User.objects.create_superuser(email='root@test.com', password='testpass123')
        request = self.factory.get('/team/')
        request.user = superuser

        response = self.manager_only_view(request)

        self.assertEqual(response.status_code, 200)

    def test_salesperson_denied(self):
        """Salesperson gets a JSON 403"""
        request = self.factory.get('/team/')
        request.user = self.salesperson

        response = self.manager_only_view(request)

        self.assertEqual(response.status_code, 403)
        data = json.loads(response.content)
        self.assertFalse(data['success'])

    def test_anonymous_user_unauthorized(self):
        """Anonymous user gets a JSON 401"""
        request = self.factory.get('/team/')
        request.user = AnonymousUser()

        response = self.manager_only_view(request)

        self.assertEqual(response.status_code, 401)


class SalespersonRequiredDecoratorTest(TestCase):
    """Test @salesperson_required decorator"""

    def setUp(self):
        """Setup test data"""
        self.factory = RequestFactory()

        self.manager = User.objects.create_user(
            email='manager@test.com',
            password='testpass123',
            role=User.ROLE_MANAGER
        )
        self.salesperson = User.objects.create_user(
            email='sales@test.com',
            password='testpass123',
            role=User.ROLE_SALESPERSON
        )

        @salesperson_required
        def salesperson_view(request):
            return HttpResponse('Salesperson Access')

        self.salesperson_view = salesperson_view

    def test_salesperson_allowed(self):
        request = self.factory.get('/my-activities/')
        request.user = self.salesperson

        response = self.salesperson_view(request)

        self.assertEqual(response.status_code, 200)

    def test_manager_denied(self):
        request = self.factory.get('/my-activities/')
        request.user = self.manager

        response = self.salesperson_view(request)

        self.assertEqual(response.status_code, 403)


class RoleRequiredDecoratorTest(TestCase):
    """Test @role_required decorator"""

    def setUp(self):
        """Setup test data"""
        self.factory = RequestFactory()

        self.salesperson = User.objects.create_user(
            email='sales@test.com',
            password='testpass123',
            role=User.ROLE_SALESPERSON
        )

        @role_required(User.ROLE_MANAGER)
        def manager_role_view(request):
            return HttpResponse('OK')

        @role_required(User.ROLE_MANAGER, User.ROLE_SALESPERSON)
        def any_role_view(request):
            return HttpResponse('OK')

        self.manager_role_view = manager_role_view
        self.any_role_view = any_role_view

    def test_role_in_allowed_roles(self):
        request = self.factory.get('/')
        request.user = self.salesperson

        self.assertEqual(self.any_role_view(request).status_code, 200)

    def test_role_not_in_allowed_roles(self):
        request = self.factory.get('/')
        request.user = self.salesperson

        self.assertEqual(self.manager_role_view(request).status_code, 403)

    def test_anonymous_user(self):
        request = self.factory.get('/')
        request.user = AnonymousUser()

        self.assertEqual(self.any_role_view(request).status_code, 401)


class JsonBodyDecoratorTest(TestCase):
    """Test @json_body decorator"""

    def setUp(self):
        """Setup test data"""
        self.factory = RequestFactory()

        @json_body
        def echo_view(request):
            return JsonResponse({'data': request.data})

        self.echo_view = echo_view

    def test_json_body_decoded(self):
        request = self.factory.post(
            '/echo/',
            data=json.dumps({'company_name': 'Hotel Radisson'}),
            content_type='application/json'
        )

        response = self.echo_view(request)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)['data'], {'company_name': 'Hotel Radisson'})

    def test_form_body_falls_back_to_post(self):
        request = self.factory.post('/echo/', data={'company_name': 'Hotel Radisson'})

        response = self.echo_view(request)

        self.assertEqual(json.loads(response.content)['data'], {'company_name': 'Hotel Radisson'})

    def test_invalid_json_rejected(self):
        request = self.factory.post('/echo/', data='{not json', content_type='application/json')

        response = self.echo_view(request)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['error'], 'Invalid JSON format')

    def test_non_object_json_rejected(self):
        request = self.factory.post('/echo/', data='[1, 2]', content_type='application/json')

        response = self.echo_view(request)

        self.assertEqual(response.status_code, 400)
