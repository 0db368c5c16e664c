from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver

from apps.core.models import ActivityLog
from apps.core.utils import log_action


# LOGIN / LOGOUT AUDIT
# Both entries feed the "active time" summary of the team view.
@receiver(user_logged_in)
def log_user_login(sender, request, user, **kwargs):
    log_action(user, ActivityLog.ACTION_LOGIN, details={'email': user.email}, request=request)


@receiver(user_logged_out)
def log_user_logout(sender, request, user, **kwargs):
    # user is None when the session was already anonymous
    if user is None:
        return
    log_action(user, ActivityLog.ACTION_LOGOUT, details={'email': user.email}, request=request)
