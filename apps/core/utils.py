"""
Helper utilities shared by every app: audit logging and request metadata
"""
import logging

from apps.core.models import ActivityLog

logger = logging.getLogger(__name__)


def get_client_ip(request):

    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        # First one is the original client IP
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_action(user, action_type, entity=None, details=None, request=None):
    """
    Append an entry to the audit trail

    Args:
        user: User performing the action (None for system actions)
        action_type (str): One of ActivityLog.ACTION_CHOICES
        entity: Model instance the action applies to (optional)
        details (dict): Structured payload stored as JSON
        request: HttpRequest, used for IP address and user agent

    Returns:
        ActivityLog: The created entry
    """
    if user is not None and not getattr(user, 'is_authenticated', True):
        user = None

    entry = ActivityLog.objects.create(
        user=user,
        action_type=action_type,
        entity_type=entity._meta.model_name if entity is not None else None,
        entity_id=entity.pk if entity is not None else None,
        details=details or {},
        ip_address=get_client_ip(request) if request is not None else None,
        user_agent=request.META.get('HTTP_USER_AGENT') if request is not None else None,
    )
    logger.debug('Audit %s on %s #%s by %s', action_type, entry.entity_type, entry.entity_id, user)
    return entry
