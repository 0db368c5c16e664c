from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from apps.core.models import ActivityLog
from apps.core.utils import log_action
from .models import Activity


def _base_details(activity):
    return {
        'prospect_name': activity.prospect.company_name if activity.prospect_id else None,
        'activity_type': activity.display_type,
        'scheduled_date': activity.scheduled_date,
    }


@receiver(pre_save, sender=Activity)
def track_activity_changes(sender, instance, **kwargs):
    # Remember the stored status so post_save can tell what changed
    if instance.pk:
        try:
            instance._old_status = Activity.objects.only('status').get(pk=instance.pk).status
        except Activity.DoesNotExist:
            instance._old_status = None
    else:
        instance._old_status = None


@receiver(post_save, sender=Activity)
def log_activity_lifecycle(sender, instance, created, **kwargs):
    """
    Audit trail for activity creation and status changes

    The acting user comes from instance._changed_by (None for the system).
    """
    user = getattr(instance, '_changed_by', None)
    details = _base_details(instance)

    if created:
        details.update({
            'notes': instance.notes,
            'assigned_to_name': instance.assigned_to.get_full_name() if instance.assigned_to else None,
        })
        log_action(user, ActivityLog.ACTION_CREATE, entity=instance, details=details)
        return

    old_status = getattr(instance, '_old_status', None)
    if old_status is None or old_status == instance.status:
        return

    if instance.status == Activity.STATUS_COMPLETED:
        details.update({
            'completion_comment': instance.completion_comment,
            'completed_at': instance.completed_at,
            'notes': instance.notes,
        })
        log_action(user, ActivityLog.ACTION_COMPLETE, entity=instance, details=details)

    elif instance.status == Activity.STATUS_BLOCKED:
        details['block_reason'] = instance.block_reason
        log_action(user, ActivityLog.ACTION_BLOCK, entity=instance, details=details)

    elif old_status == Activity.STATUS_BLOCKED and instance.status == Activity.STATUS_PENDING:
        log_action(user, ActivityLog.ACTION_UNBLOCK, entity=instance, details=details)
