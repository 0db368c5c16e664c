from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Count, Q
from django.utils import timezone

from apps.prospects.models import Prospect


def validate_min_length(value, min_length, message):
    """Strip the value and raise ValidationError when it is too short"""
    if value is not None and not isinstance(value, str):
        raise ValidationError(message)
    value = (value or '').strip()
    if len(value) < min_length:
        raise ValidationError(message)
    return value


class ActivityQuerySet(models.QuerySet):

    # VISIBILITY
    def visible_to(self, user):
        """
        Row-level visibility: managers see every activity,
        salespersons only the ones assigned to them
        """
        if user is None or not user.is_authenticated:
            return self.none()
        if user.is_manager():
            return self
        return self.filter(assigned_to=user)

    # STATUS
    def pending(self):
        return self.filter(status=Activity.STATUS_PENDING)

    def completed(self):
        return self.filter(status=Activity.STATUS_COMPLETED)

    def blocked(self):
        return self.filter(status=Activity.STATUS_BLOCKED)

    # DASHBOARD BUCKETS
    def urgent(self, today=None):
        """Pending prospect activities whose date already passed"""
        today = today or timezone.localdate()
        return self.pending().filter(prospect__isnull=False, scheduled_date__lt=today)

    def due_today(self, today=None):
        today = today or timezone.localdate()
        return self.pending().filter(prospect__isnull=False, scheduled_date=today)

    def this_week(self, today=None):
        """Pending prospect activities in the next DASHBOARD_WEEK_DAYS days (today excluded)"""
        today = today or timezone.localdate()
        end = today + timedelta(days=settings.DASHBOARD_WEEK_DAYS)
        return self.pending().filter(
            prospect__isnull=False,
            scheduled_date__gt=today,
            scheduled_date__lte=end,
        )

    def new_calls(self, today=None):
        """System generated calls scheduled for today"""
        today = today or timezone.localdate()
        return self.pending().filter(
            activity_type=Activity.TYPE_CALL,
            created_by=Activity.CREATED_BY_SYSTEM,
            scheduled_date=today,
        )

    def general(self):
        """Pending tasks not tied to any prospect"""
        return self.pending().filter(prospect__isnull=True)

    def awaiting_next_activity(self):
        """Completed prospect activities whose follow-up was never scheduled"""
        return self.completed().filter(prospect__isnull=False, follow_ups__isnull=True)

    # STATISTICS
    def stats(self, today=None):
        """
        Counters shown per salesperson in the team view

        completed_this_week counts completions since the start of the day
        seven days ago.
        """
        today = today or timezone.localdate()
        week_start = timezone.make_aware(datetime.combine(today - timedelta(days=7), time.min))
        pending = Q(status=Activity.STATUS_PENDING)

        return self.aggregate(
            total=Count('id'),
            completed_this_week=Count('id', filter=Q(status=Activity.STATUS_COMPLETED, completed_at__gte=week_start)),
            pending=Count('id', filter=pending),
            overdue=Count('id', filter=pending & Q(scheduled_date__lt=today)),
            blocked=Count('id', filter=Q(status=Activity.STATUS_BLOCKED)),
        )


class Activity(models.Model):

    # Activity types
    TYPE_CALL = 'Llamada'
    TYPE_EMAIL = 'Correo'
    TYPE_VISIT = 'Visita'
    TYPE_FOLLOW_UP = 'Seguimiento'
    TYPE_PROPOSAL = 'Propuesta'
    TYPE_QUOTE = 'Cotización'
    TYPE_BILLING = 'Facturación'
    TYPE_GENERAL = 'General'
    TYPE_OTHER = 'Otro'

    TYPE_CHOICES = [
        (TYPE_CALL, 'Llamada'),
        (TYPE_EMAIL, 'Correo'),
        (TYPE_VISIT, 'Visita'),
        (TYPE_FOLLOW_UP, 'Seguimiento'),
        (TYPE_PROPOSAL, 'Propuesta'),
        (TYPE_QUOTE, 'Cotización'),
        (TYPE_BILLING, 'Facturación'),
        (TYPE_GENERAL, 'General'),
        (TYPE_OTHER, 'Otro'),
    ]

    # Status
    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_BLOCKED = 'blocked'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pendiente'),
        (STATUS_COMPLETED, 'Completada'),
        (STATUS_BLOCKED, 'Bloqueada'),
    ]

    # Origin
    CREATED_BY_SYSTEM = 'system'
    CREATED_BY_MANAGER = 'manager'
    CREATED_BY_SALESPERSON = 'salesperson'

    CREATED_BY_CHOICES = [
        (CREATED_BY_SYSTEM, 'Sistema'),
        (CREATED_BY_MANAGER, 'Gerente'),
        (CREATED_BY_SALESPERSON, 'Vendedor'),
    ]

    prospect = models.ForeignKey(Prospect, on_delete=models.CASCADE, null=True, blank=True, related_name='activities', help_text='Empty for general tasks')
    activity_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_CALL)
    custom_type = models.CharField(max_length=100, blank=True, null=True, help_text='Only kept when the type is "Otro"')
    scheduled_date = models.DateField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    notes = models.TextField(blank=True)
    completion_comment = models.TextField(blank=True, null=True)
    block_reason = models.TextField(blank=True, null=True)

    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_activities', help_text='Salesperson responsible for this activity')
    created_by = models.CharField(max_length=20, choices=CREATED_BY_CHOICES, default=CREATED_BY_SALESPERSON)
    previous_activity = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='follow_ups', help_text='Completed activity this one follows up')

    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActivityQuerySet.as_manager()

    class Meta:
        db_table = 'activities'
        verbose_name = 'Activity'
        verbose_name_plural = 'Activities'
        ordering = ['scheduled_date', 'created_at']
        indexes = [
            models.Index(fields=['assigned_to', 'status', 'scheduled_date'], name='activity_assignee_status_idx'),
            models.Index(fields=['prospect', 'status'], name='activity_prospect_status_idx'),
            models.Index(fields=['created_by', 'activity_type', 'scheduled_date'], name='activity_origin_type_date_idx'),
        ]

    def __str__(self):
        target = self.prospect.company_name if self.prospect_id else 'General'
        return f"{self.display_type} - {target} ({self.scheduled_date})"

    @classmethod
    def created_by_for(cls, user):
        """Origin value for an activity created by this user"""
        if user is None:
            return cls.CREATED_BY_SYSTEM
        return cls.CREATED_BY_MANAGER if user.is_manager() else cls.CREATED_BY_SALESPERSON

    @property
    def display_type(self):
        if self.activity_type == self.TYPE_OTHER and self.custom_type:
            return self.custom_type
        return self.activity_type

    @property
    def is_overdue(self):
        return self.status == self.STATUS_PENDING and self.scheduled_date < timezone.localdate()

    @property
    def awaiting_next_activity(self):
        """
        True while a completed prospect activity has no follow-up

        The completion flow stays open (and cannot be dismissed) until
        schedule_next_activity() links a new activity to this one.
        """
        if self.status != self.STATUS_COMPLETED or not self.prospect_id:
            return False
        return not self.follow_ups.exists()

    def _require_pending(self):
        if self.status != self.STATUS_PENDING:
            raise ValidationError('Only pending activities can be updated this way')

    # LIFECYCLE
    def complete(self, comment, user=None):
        """
        Mark the activity as completed

        Raises:
            ValidationError: not pending, or comment shorter than ACTIVITY_MIN_COMMENT_LENGTH
        """
        self._require_pending()
        comment = validate_min_length(
            comment,
            settings.ACTIVITY_MIN_COMMENT_LENGTH,
            f'Comment must be at least {settings.ACTIVITY_MIN_COMMENT_LENGTH} characters',
        )

        self.status = self.STATUS_COMPLETED
        self.completion_comment = comment
        self.completed_at = timezone.now()
        self._changed_by = user
        self.save(update_fields=['status', 'completion_comment', 'completed_at', 'updated_at'])

    def mark_not_completed(self, comment, user=None):
        """Record why the activity did not happen; it stays pending"""
        self._require_pending()
        comment = validate_min_length(
            comment,
            settings.ACTIVITY_MIN_COMMENT_LENGTH,
            f'Comment must be at least {settings.ACTIVITY_MIN_COMMENT_LENGTH} characters',
        )

        self.completion_comment = comment
        self._changed_by = user
        self.save(update_fields=['completion_comment', 'updated_at'])

    def block(self, reason, user=None):
        """Block the activity until a manager releases it"""
        self._require_pending()
        reason = validate_min_length(
            reason,
            settings.ACTIVITY_MIN_COMMENT_LENGTH,
            f'Block reason must be at least {settings.ACTIVITY_MIN_COMMENT_LENGTH} characters',
        )

        self.status = self.STATUS_BLOCKED
        self.block_reason = reason
        self.completion_comment = reason
        self._changed_by = user
        self.save(update_fields=['status', 'block_reason', 'completion_comment', 'updated_at'])

    def unblock(self, user=None):
        if self.status != self.STATUS_BLOCKED:
            raise ValidationError('Only blocked activities can be unblocked')

        self.status = self.STATUS_PENDING
        self.block_reason = None
        self._changed_by = user
        self.save(update_fields=['status', 'block_reason', 'updated_at'])

    def to_dict(self):
        assignee = self.assigned_to
        return {
            'id': self.id,
            'prospect_id': self.prospect_id,
            'prospect_name': self.prospect.company_name if self.prospect_id else None,
            'activity_type': self.activity_type,
            'custom_type': self.custom_type,
            'display_type': self.display_type,
            'scheduled_date': self.scheduled_date.isoformat() if self.scheduled_date else None,
            'status': self.status,
            'status_display': self.get_status_display(),
            'notes': self.notes,
            'completion_comment': self.completion_comment,
            'block_reason': self.block_reason,
            'assigned_to': assignee.id if assignee else None,
            'assigned_to_name': assignee.get_full_name() if assignee else None,
            'created_by': self.created_by,
            'previous_activity_id': self.previous_activity_id,
            'is_overdue': self.is_overdue,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
