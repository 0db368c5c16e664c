"""
Activity outcome workflow

Recording the outcome of a pending activity moves it through:

    buttons -> complete | not-complete | block
    complete (prospect linked) -> awaiting-next-activity -> done

A completed prospect activity is only closed once a follow-up activity has
been scheduled for the same prospect. Manager edits (reassignment, date and
status changes) also live here because they reuse the lifecycle rules.
"""
import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.accounts.models import User
from apps.core.models import ActivityLog
from apps.core.utils import log_action

from .models import Activity, validate_min_length

logger = logging.getLogger(__name__)


# Flow states
STATE_BUTTONS = 'buttons'
STATE_COMPLETE = 'complete'
STATE_NOT_COMPLETE = 'not-complete'
STATE_BLOCK = 'block'
STATE_AWAITING_NEXT_ACTIVITY = 'awaiting-next-activity'
STATE_DONE = 'done'

# Outcomes a user can submit from the buttons step
OUTCOME_COMPLETE = STATE_COMPLETE
OUTCOME_NOT_COMPLETE = STATE_NOT_COMPLETE
OUTCOME_BLOCK = STATE_BLOCK
OUTCOMES = (OUTCOME_COMPLETE, OUTCOME_NOT_COMPLETE, OUTCOME_BLOCK)

# Fields a manager may change through the edit endpoints
EDITABLE_FIELDS = (
    'activity_type',
    'custom_type',
    'scheduled_date',
    'status',
    'assigned_to',
    'notes',
    'completion_comment',
    'block_reason',
)


class ReassignmentConfirmationRequired(Exception):
    """Raised when an assigned activity would move to someone else unconfirmed"""

    def __init__(self, current_assignee, new_assignee):
        self.current_assignee = current_assignee
        self.new_assignee = new_assignee
        super().__init__(
            f'Activity is assigned to {current_assignee.get_full_name()}; confirm the reassignment'
        )


@dataclass
class FlowResult:
    state: str
    activity: Activity
    message: str = ''
    prefill: dict = field(default_factory=dict)

    @property
    def requires_next_activity(self):
        return self.state == STATE_AWAITING_NEXT_ACTIVITY

    def to_dict(self):
        return {
            'state': self.state,
            'requires_next_activity': self.requires_next_activity,
            'message': self.message,
            'activity': self.activity.to_dict(),
            'prefill': self.prefill,
        }


def parse_scheduled_date(value):
    """Accept a date or an ISO string (YYYY-MM-DD)"""
    if value in (None, ''):
        raise ValidationError('Scheduled date is required')
    if hasattr(value, 'isoformat'):
        return value
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError('Invalid date format, expected YYYY-MM-DD')
    return parsed


def _clean_text(field_name, value):
    """Stripped text, or None when blank"""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field_name} must be text')
    return value.strip() or None


def validate_activity_type(activity_type, custom_type=None):
    """Return (activity_type, custom_type) with custom_type dropped unless the type is "Otro" """
    if not isinstance(activity_type, str) or activity_type not in dict(Activity.TYPE_CHOICES):
        raise ValidationError('Invalid activity type')

    if activity_type != Activity.TYPE_OTHER:
        return activity_type, None

    custom_type = _clean_text('custom_type', custom_type)
    if not custom_type:
        raise ValidationError('Specify the activity type')
    return activity_type, custom_type


def submit_outcome(activity, outcome, comment, user):
    """
    Record the outcome of a pending activity

    Args:
        activity (Activity): Pending activity
        outcome (str): 'complete', 'not-complete' or 'block'
        comment (str): Completion comment or block reason
        user (User): Who records the outcome

    Returns:
        FlowResult: awaiting-next-activity for completed prospect activities,
        done otherwise

    Raises:
        ValidationError: unknown outcome, activity not pending, or comment too short
    """
    if outcome not in OUTCOMES:
        raise ValidationError('Invalid outcome')

    with transaction.atomic():
        if outcome == OUTCOME_COMPLETE:
            activity.complete(comment, user=user)
        elif outcome == OUTCOME_NOT_COMPLETE:
            activity.mark_not_completed(comment, user=user)
        else:
            activity.block(comment, user=user)

    logger.info('Activity %s outcome %s by %s', activity.pk, outcome, user)

    if outcome == OUTCOME_COMPLETE and activity.prospect_id:
        assignee = activity.assigned_to or user
        return FlowResult(
            state=STATE_AWAITING_NEXT_ACTIVITY,
            activity=activity,
            message='Activity completed. Schedule the next activity for this prospect.',
            prefill={
                'prospect_id': activity.prospect_id,
                'prospect_name': activity.prospect.company_name,
                'assigned_to': assignee.id if assignee else None,
                'assigned_to_name': assignee.get_full_name() if assignee else None,
            },
        )

    messages = {
        OUTCOME_COMPLETE: 'Activity completed',
        OUTCOME_NOT_COMPLETE: 'Activity marked as not completed',
        OUTCOME_BLOCK: 'Activity blocked',
    }
    return FlowResult(state=STATE_DONE, activity=activity, message=messages[outcome])


def schedule_next_activity(completed_activity, activity_type, scheduled_date, description, user, custom_type=None):
    """
    Create the mandatory follow-up for a completed prospect activity

    The follow-up goes to the same prospect and the same assignee
    (or the user when the completed activity had none).

    Raises:
        ValidationError: the activity is not awaiting a follow-up, or the input is invalid
    """
    if not completed_activity.awaiting_next_activity:
        raise ValidationError('This activity is not awaiting a next activity')

    activity_type, custom_type = validate_activity_type(activity_type, custom_type)

    scheduled_date = parse_scheduled_date(scheduled_date)
    if scheduled_date < timezone.localdate():
        raise ValidationError('Scheduled date cannot be in the past')

    min_length = settings.ACTIVITY_MIN_NEXT_DESCRIPTION_LENGTH
    description = validate_min_length(
        description, min_length, f'Description must be at least {min_length} characters'
    )

    with transaction.atomic():
        follow_up = Activity(
            prospect=completed_activity.prospect,
            activity_type=activity_type,
            custom_type=custom_type,
            scheduled_date=scheduled_date,
            status=Activity.STATUS_PENDING,
            notes=description,
            assigned_to=completed_activity.assigned_to or user,
            created_by=Activity.created_by_for(user),
            previous_activity=completed_activity,
        )
        follow_up._changed_by = user
        follow_up.save()

    logger.info('Follow-up %s scheduled for activity %s', follow_up.pk, completed_activity.pk)
    return follow_up


def _display(field_name, value):
    if field_name == 'assigned_to':
        return value.get_full_name() if value else None
    if field_name == 'scheduled_date':
        return value.isoformat() if value else None
    return value


def _resolve_assignee(value):
    if value in (None, ''):
        return None
    try:
        return User.objects.get(pk=value, is_active=True)
    except (User.DoesNotExist, ValueError, TypeError):
        raise ValidationError('Assigned user does not exist')


def apply_manager_changes(activity, changes, user, confirm_reassign=False, request=None):
    """
    Apply a manager edit to an activity and audit it

    Args:
        activity (Activity): Activity being edited
        changes (dict): Subset of EDITABLE_FIELDS with their new values
        user (User): Manager performing the edit
        confirm_reassign (bool): Allows moving the activity away from its current assignee

    Returns:
        dict: {field: {'from': old, 'to': new}} for every changed field (empty when nothing changed)

    Raises:
        ReassignmentConfirmationRequired: assignee change without confirmation
        ValidationError: invalid values or lifecycle rule broken
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f'Field not allowed: {", ".join(sorted(unknown))}')

    new_values = {}

    if 'activity_type' in changes or 'custom_type' in changes:
        activity_type, custom_type = validate_activity_type(
            changes.get('activity_type', activity.activity_type),
            changes.get('custom_type', activity.custom_type),
        )
        new_values['activity_type'] = activity_type
        new_values['custom_type'] = custom_type

    if 'scheduled_date' in changes:
        new_date = parse_scheduled_date(changes['scheduled_date'])
        today = timezone.localdate()
        # A past date is only kept for activities that were already overdue
        if new_date < today and activity.scheduled_date >= today:
            raise ValidationError('Scheduled date cannot be in the past')
        new_values['scheduled_date'] = new_date

    if 'assigned_to' in changes:
        new_assignee = _resolve_assignee(changes['assigned_to'])
        current = activity.assigned_to
        new_id = new_assignee.id if new_assignee else None
        if current is not None and new_id != current.id and not confirm_reassign:
            raise ReassignmentConfirmationRequired(current, new_assignee)
        new_values['assigned_to'] = new_assignee

    for text_field in ('notes', 'completion_comment', 'block_reason'):
        if text_field in changes:
            new_values[text_field] = _clean_text(text_field, changes[text_field])
    if 'notes' in new_values:
        new_values['notes'] = new_values['notes'] or ''

    if 'status' in changes:
        new_status = changes['status']
        if not isinstance(new_status, str) or new_status not in dict(Activity.STATUS_CHOICES):
            raise ValidationError('Invalid status value')
        new_values['status'] = new_status

    status = new_values.get('status', activity.status)
    min_length = settings.ACTIVITY_MIN_COMMENT_LENGTH

    status_changed = status != activity.status

    if status == Activity.STATUS_COMPLETED and (status_changed or 'completion_comment' in new_values):
        comment = new_values.get('completion_comment', activity.completion_comment)
        new_values['completion_comment'] = validate_min_length(
            comment, min_length, f'Completion comment must be at least {min_length} characters'
        )
        if status_changed:
            new_values['completed_at'] = timezone.now()
            new_values['block_reason'] = None
    elif status == Activity.STATUS_BLOCKED and (status_changed or 'block_reason' in new_values):
        reason = new_values.get('block_reason', activity.block_reason)
        new_values['block_reason'] = validate_min_length(
            reason, min_length, f'Block reason must be at least {min_length} characters'
        )
        if status_changed:
            new_values['completed_at'] = None
    elif status == Activity.STATUS_PENDING and status_changed:
        new_values['block_reason'] = None
        new_values['completed_at'] = None

    diff = {}
    for field_name, new_value in new_values.items():
        old_value = getattr(activity, field_name)
        if old_value == new_value:
            continue
        diff[field_name] = {
            'from': _display(field_name, old_value),
            'to': _display(field_name, new_value),
        }

    if not diff:
        return {}

    with transaction.atomic():
        for field_name in diff:
            setattr(activity, field_name, new_values[field_name])
        activity._changed_by = user
        activity.save()

        log_action(
            user,
            ActivityLog.ACTION_UPDATE,
            entity=activity,
            details={
                'changes': diff,
                'updated_by': user.get_full_name() if user else None,
                'prospect_name': activity.prospect.company_name if activity.prospect_id else None,
            },
            request=request,
        )

    logger.info('Activity %s updated by %s: %s', activity.pk, user, ', '.join(diff))
    return diff

