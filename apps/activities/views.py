import logging

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import json_body, manager_required
from . import workflow
from .daily_calls import generate_daily_calls
from .forms import ActivityCreateForm, ActivityOutcomeForm, NextActivityForm
from .models import Activity

logger = logging.getLogger(__name__)

QUICK_UPDATE_FIELDS = ['scheduled_date', 'assigned_to', 'status']


def _visible_activity(request, pk):
    """404 for activities the user cannot see"""
    queryset = Activity.objects.visible_to(request.user).select_related('prospect', 'assigned_to')
    return get_object_or_404(queryset, pk=pk)


def _as_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _validation_error(error):
    return JsonResponse({
        'success': False,
        'error': ' '.join(error.messages)
    }, status=400)


def _form_errors(form):
    return JsonResponse({
        'success': False,
        'errors': {field: [str(e) for e in errors] for field, errors in form.errors.items()}
    }, status=400)


def _database_error(message):
    return JsonResponse({
        'success': False,
        'error': message
    }, status=500)


def _reassignment_conflict(exc):
    return JsonResponse({
        'success': False,
        'requires_confirmation': True,
        'error': str(exc),
        'current_assignee': exc.current_assignee.to_dict(),
        'new_assignee': exc.new_assignee.to_dict() if exc.new_assignee else None,
    }, status=409)


@login_required
@require_POST
@json_body
def activity_create_view(request):
    form = ActivityCreateForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    activity = form.save(commit=False)
    if activity.assigned_to is None:
        activity.assigned_to = request.user
    activity.created_by = Activity.created_by_for(request.user)
    activity._changed_by = request.user

    try:
        with transaction.atomic():
            activity.save()
    except DatabaseError:
        logger.exception('Error creating activity')
        return _database_error('Could not create the activity, please try again')

    logger.info('Activity %s created by %s', activity.pk, request.user)
    return JsonResponse({
        'success': True,
        'message': 'Activity created',
        'activity': activity.to_dict(),
    }, status=201)


@login_required
@require_GET
def activity_detail_view(request, pk):
    activity = _visible_activity(request, pk)

    data = activity.to_dict()
    data['awaiting_next_activity'] = activity.awaiting_next_activity
    data['follow_ups'] = [follow_up.to_dict() for follow_up in activity.follow_ups.select_related('prospect', 'assigned_to')]

    return JsonResponse({
        'success': True,
        'activity': data,
    })


@login_required
@require_POST
@json_body
def activity_outcome_view(request, pk):
    """
    Record complete / not-complete / block for a pending activity

    A completed prospect activity answers state "awaiting-next-activity";
    the client must then post to the next-activity endpoint.
    """
    activity = _visible_activity(request, pk)

    form = ActivityOutcomeForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    try:
        result = workflow.submit_outcome(
            activity,
            form.cleaned_data['outcome'],
            form.cleaned_data['comment'],
            request.user,
        )
    except ValidationError as e:
        return _validation_error(e)
    except DatabaseError:
        logger.exception('Error saving outcome for activity %s', pk)
        return _database_error('Could not update the activity, please try again')

    response = {'success': True}
    response.update(result.to_dict())
    return JsonResponse(response)


@login_required
@require_POST
@json_body
def activity_next_activity_view(request, pk):
    """Schedule the mandatory follow-up of a completed activity"""
    activity = _visible_activity(request, pk)

    form = NextActivityForm(request.data)
    if not form.is_valid():
        return _form_errors(form)

    try:
        follow_up = workflow.schedule_next_activity(
            activity,
            form.cleaned_data['activity_type'],
            form.cleaned_data['scheduled_date'],
            form.cleaned_data['description'],
            request.user,
            custom_type=form.cleaned_data.get('custom_type'),
        )
    except ValidationError as e:
        return _validation_error(e)
    except DatabaseError:
        logger.exception('Error scheduling next activity for %s', pk)
        return _database_error('Could not schedule the next activity, please try again')

    return JsonResponse({
        'success': True,
        'state': workflow.STATE_DONE,
        'message': 'Next activity scheduled',
        'activity': follow_up.to_dict(),
    }, status=201)


@login_required
@manager_required
@require_POST
def activity_unblock_view(request, pk):
    activity = _visible_activity(request, pk)

    try:
        with transaction.atomic():
            activity.unblock(user=request.user)
    except ValidationError as e:
        return _validation_error(e)
    except DatabaseError:
        logger.exception('Error unblocking activity %s', pk)
        return _database_error('Could not unblock the activity, please try again')

    return JsonResponse({
        'success': True,
        'message': 'Activity unblocked',
        'activity': activity.to_dict(),
    })


def _apply_changes(request, activity, changes):
    """Shared tail of the quick-update and edit endpoints"""
    try:
        diff = workflow.apply_manager_changes(
            activity,
            changes,
            request.user,
            confirm_reassign=_as_bool(request.data.get('confirm_reassign', False)),
            request=request,
        )
    except workflow.ReassignmentConfirmationRequired as e:
        return _reassignment_conflict(e)
    except ValidationError as e:
        return _validation_error(e)
    except DatabaseError:
        logger.exception('Error updating activity %s', activity.pk)
        return _database_error('Could not update the activity, please try again')

    return JsonResponse({
        'success': True,
        'changed': bool(diff),
        'changes': diff,
        'activity': activity.to_dict(),
    })


@login_required
@manager_required
@require_POST
@json_body
def activity_quick_update_view(request, pk):
    """Change one of scheduled_date, assigned_to or status inline"""
    activity = _visible_activity(request, pk)

    field = request.data.get('field')
    if field not in QUICK_UPDATE_FIELDS:
        return JsonResponse({
            'success': False,
            'error': 'Field not allowed'
        }, status=400)

    if 'value' not in request.data:
        return JsonResponse({
            'success': False,
            'error': 'Field and value are required'
        }, status=400)

    changes = {field: request.data['value']}

    # Status changes carry their comment or reason along
    if field == 'status':
        for text_field in ('completion_comment', 'block_reason'):
            if text_field in request.data:
                changes[text_field] = request.data[text_field]

    return _apply_changes(request, activity, changes)


@login_required
@manager_required
@require_POST
@json_body
def activity_edit_view(request, pk):
    activity = _visible_activity(request, pk)

    changes = {
        field: request.data[field]
        for field in workflow.EDITABLE_FIELDS
        if field in request.data
    }
    if not changes:
        return JsonResponse({
            'success': False,
            'error': 'No changes submitted'
        }, status=400)

    return _apply_changes(request, activity, changes)


@login_required
@require_POST
def generate_daily_calls_view(request):
    """Manual trigger; the dashboard runs the same generator on load"""
    try:
        result = generate_daily_calls()
    except DatabaseError:
        logger.exception('Error generating daily calls')
        return _database_error('Could not generate daily calls, please try again')

    response = {'success': True}
    response.update(result.to_dict())
    return JsonResponse(response)
