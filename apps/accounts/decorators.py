# Decorators in this file:
# 1. manager_required - Only managers can access
# 2. salesperson_required - Only salespersons can access
# 3. role_required - Any of the given roles can access
# 4. json_body - Parse a JSON or form body into request.data
#
# Every endpoint of the CRM answers JSON, so access denials are 403 JSON
# responses instead of redirects with flash messages.
# ==============================================================================

import json
from functools import wraps
from django.http import JsonResponse
from django.utils.translation import gettext_lazy as _


def _forbidden(message):
    return JsonResponse({
        'success': False,
        'error': str(message)
    }, status=403)


def _unauthenticated():
    return JsonResponse({
        'success': False,
        'error': str(_('Please login to continue.'))
    }, status=401)


# ROLE-BASED DECORATORS
def manager_required(view_func):
    """
    Decorator: Only managers can access this view

    Checks:
    1. User is authenticated (logged in)
    2. User role is 'manager' OR is superuser
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        # Should already be checked by @login_required
        if not request.user.is_authenticated:
            return _unauthenticated()

        if request.user.is_manager():
            return view_func(request, *args, **kwargs)

        return _forbidden(_('Manager access required'))

    return wrapper


def salesperson_required(view_func):
    """
    Checks:
    1. User is authenticated
    2. User role is 'salesperson'
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return _unauthenticated()

        if request.user.is_salesperson():
            return view_func(request, *args, **kwargs)

        return _forbidden(_('This endpoint is only accessible to salespersons.'))

    return wrapper


def role_required(*allowed_roles):
    """
    Decorator: Only specific roles can access

    Args:
        *allowed_roles: Tuple of allowed role names

    Usage:
        @login_required
        @role_required('manager', 'salesperson')
        def view(request): ...
    """

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return _unauthenticated()

            if request.user.role in allowed_roles or request.user.is_superuser:
                return view_func(request, *args, **kwargs)

            return _forbidden(_('You do not have permission to access this endpoint.'))

        return wrapper

    return decorator


# REQUEST BODY DECORATORS
def json_body(view_func):
    """
    Decorator: Expose the request payload as request.data

    JSON bodies (Content-Type: application/json) are decoded, anything else
    falls back to request.POST. Invalid JSON answers 400 before the view runs.
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if request.content_type == 'application/json':
            try:
                data = json.loads(request.body or b'{}')
            except json.JSONDecodeError:
                return JsonResponse({
                    'success': False,
                    'error': 'Invalid JSON format'
                }, status=400)

            if not isinstance(data, dict):
                return JsonResponse({
                    'success': False,
                    'error': 'JSON body must be an object'
                }, status=400)
            request.data = data
        else:
            request.data = request.POST.dict()

        return view_func(request, *args, **kwargs)

    return wrapper
