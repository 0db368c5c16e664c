from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils.translation import gettext_lazy as _


class ActivityLog(models.Model):
    """
    Append-only audit trail of what each user does in the CRM

    Written by:
    - activity signals (create / complete / block / unblock)
    - login and logout signals
    - explicit calls for manager edits and prospect phase changes
    """

    ACTION_LOGIN = 'login'
    ACTION_LOGOUT = 'logout'
    ACTION_CREATE = 'create'
    ACTION_COMPLETE = 'complete'
    ACTION_BLOCK = 'block'
    ACTION_UNBLOCK = 'unblock'
    ACTION_UPDATE = 'update'

    ACTION_CHOICES = [
        (ACTION_LOGIN, _('Inicio de sesión')),
        (ACTION_LOGOUT, _('Cierre de sesión')),
        (ACTION_CREATE, _('Creación')),
        (ACTION_COMPLETE, _('Completada')),
        (ACTION_BLOCK, _('Bloqueada')),
        (ACTION_UNBLOCK, _('Desbloqueada')),
        (ACTION_UPDATE, _('Actualización')),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs', help_text='Who performed the action (empty for the system)')
    action_type = models.CharField(max_length=20, choices=ACTION_CHOICES, db_index=True)
    entity_type = models.CharField(max_length=30, blank=True, null=True, help_text='activity, prospect, ...')
    entity_id = models.PositiveBigIntegerField(blank=True, null=True)
    details = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'activity_logs'
        verbose_name = 'Activity Log'
        verbose_name_plural = 'Activity Logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='log_user_created_idx'),
            models.Index(fields=['entity_type', 'entity_id'], name='log_entity_idx'),
        ]

    def __str__(self):
        user_name = self.user.get_full_name() if self.user else 'System'
        return f"{user_name}: {self.get_action_type_display()} ({self.created_at:%Y-%m-%d %H:%M})"

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'action_type': self.action_type,
            'action_display': self.get_action_type_display(),
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'details': self.details,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'created_at': self.created_at.isoformat(),
        }
