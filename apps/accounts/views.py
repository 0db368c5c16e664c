from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.decorators import login_required
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext_lazy as _
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.activities.models import Activity
from .decorators import json_body, manager_required
from .forms import LoginForm
from .models import User


# Session lifetime when "remember me" is checked (30 days)
REMEMBER_ME_SECONDS = 30 * 24 * 60 * 60


def user_stats(user):
    """Activity counters for one salesperson"""
    stats = Activity.objects.filter(assigned_to=user).stats()
    data = user.to_dict()
    data['stats'] = stats
    return data


# AUTHENTICATION VIEWS
@never_cache
@require_http_methods(['GET', 'POST'])
@json_body
def login_view(request):
    """
    GET: who is logged in (401 when nobody is)
    POST: email + password login, answers the user data
    """
    if request.method == 'GET':
        if request.user.is_authenticated:
            return JsonResponse({'success': True, 'user': request.user.to_dict()})
        return JsonResponse({
            'success': False,
            'error': str(_('Please login to continue.'))
        }, status=401)

    form = LoginForm(request.data)
    if not form.is_valid():
        return JsonResponse({
            'success': False,
            'errors': {field: [str(e) for e in errors] for field, errors in form.errors.items()}
        }, status=400)

    # Returns User object if valid, None if invalid or inactive
    user = authenticate(
        request,
        username=form.cleaned_data['email'],
        password=form.cleaned_data['password'],
    )

    if user is None:
        return JsonResponse({
            'success': False,
            'error': str(_('Invalid email or password. Please try again.'))
        }, status=400)

    # Creates the session; the user_logged_in signal writes the audit entry
    login(request, user)

    if form.cleaned_data.get('remember'):
        request.session.set_expiry(REMEMBER_ME_SECONDS)
    else:
        # Session expires when browser closes
        request.session.set_expiry(0)

    return JsonResponse({
        'success': True,
        'message': str(_('Welcome back, {}!').format(user.get_full_name())),
        'user': user.to_dict(),
    })


@login_required
@require_POST
def logout_view(request):
    user_name = request.user.get_full_name()

    # Clears the session; the user_logged_out signal writes the audit entry
    logout(request)

    return JsonResponse({
        'success': True,
        'message': str(_('You have been logged out successfully. See you soon, {}!').format(user_name)),
    })


@login_required
@require_GET
def me_view(request):
    return JsonResponse({'success': True, 'user': request.user.to_dict()})


# USER LISTINGS
@login_required
@require_GET
def user_list_view(request):
    """Active users (assignee pickers), optionally filtered by role or name"""
    queryset = User.objects.filter(is_active=True)

    role_filter = request.GET.get('role', '')
    if role_filter in (User.ROLE_SALESPERSON, User.ROLE_MANAGER):
        queryset = queryset.filter(role=role_filter)

    search_query = request.GET.get('q', '').strip()
    if search_query:
        queryset = queryset.filter(
            Q(first_name__icontains=search_query) |
            Q(last_name__icontains=search_query) |
            Q(email__icontains=search_query)
        )

    return JsonResponse({
        'success': True,
        'users': [user.to_dict() for user in queryset.order_by('first_name', 'last_name')],
    })


@login_required
@manager_required
@require_GET
def salesperson_list_view(request):
    """Salespersons with their activity counters"""
    return JsonResponse({
        'success': True,
        'salespersons': [user_stats(user) for user in User.objects.salespersons()],
    })


@login_required
@require_GET
def user_stats_view(request, pk):
    """Managers can see anyone's counters, salespersons only their own"""
    user = get_object_or_404(User, pk=pk)

    if not request.user.is_manager() and request.user.pk != user.pk:
        return JsonResponse({
            'success': False,
            'error': str(_('You do not have permission to access this endpoint.'))
        }, status=403)

    return JsonResponse({'success': True, 'user': user_stats(user)})
