from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Count, Min, OuterRef, Q, Subquery, Sum
from django.utils import timezone

from apps.core.models import ActivityLog
from apps.core.utils import log_action


class ProspectQuerySet(models.QuerySet):

    def search(self, term):
        """Company or contact name contains the term"""
        term = (term or '').strip()
        if not term:
            return self
        return self.filter(Q(company_name__icontains=term) | Q(contact_name__icontains=term))

    def in_phase(self, phase):
        return self.filter(current_phase=phase)

    def with_activity_stats(self, user=None):
        """
        Annotate each prospect with its pending activity figures

        - pending_activities: number of pending activities
        - next_activity_date: earliest pending scheduled date
        - next_assignee_first_name / next_assignee_last_name: assignee of that activity

        With a user, only the activities visible to that user are counted.
        """
        from apps.activities.models import Activity

        activities = Activity.objects.all() if user is None else Activity.objects.visible_to(user)
        next_pending = activities.filter(
            prospect=OuterRef('pk'),
            status=Activity.STATUS_PENDING,
        ).order_by('scheduled_date', 'created_at')

        pending = Q(activities__status=Activity.STATUS_PENDING)
        if user is not None:
            pending &= Q(activities__in=activities)

        return self.annotate(
            pending_activities=Count('activities', filter=pending),
            next_activity_date=Min('activities__scheduled_date', filter=pending),
            next_assignee_first_name=Subquery(next_pending.values('assigned_to__first_name')[:1]),
            next_assignee_last_name=Subquery(next_pending.values('assigned_to__last_name')[:1]),
        )

    def pipeline_value(self):
        """Sum of estimated values for prospects in Cotización and Negociación"""
        total = self.filter(current_phase__in=Prospect.PIPELINE_VALUE_PHASES).aggregate(
            total=Sum('estimated_value')
        )['total']
        return total or Decimal('0')

    def conversion_rate(self):
        """
        Percentage of prospects past the Lead phase

        Formula: advanced / (Lead + advanced) * 100, rounded
        """
        lead_count = self.filter(current_phase=Prospect.PHASE_LEAD).count()
        advanced_count = self.filter(current_phase__in=Prospect.ADVANCED_PHASES).count()
        if lead_count + advanced_count == 0:
            return 0
        return round(advanced_count / (lead_count + advanced_count) * 100)


class Prospect(models.Model):

    # Pipeline phases (ordered left to right on the board)
    PHASE_PROSPECTING = 'Prospección'
    PHASE_LEAD = 'Lead'
    PHASE_QUOTE = 'Cotización'
    PHASE_NEGOTIATION = 'Negociación'
    PHASE_WON = 'Ganada'
    PHASE_LOST = 'Perdida'
    PHASE_IN_PRODUCTION = 'En Producción'
    PHASE_INVOICED = 'Facturada'
    PHASE_POST_SALE = 'Post Venta'

    PHASE_CHOICES = [
        (PHASE_PROSPECTING, 'Prospección'),
        (PHASE_LEAD, 'Lead'),
        (PHASE_QUOTE, 'Cotización'),
        (PHASE_NEGOTIATION, 'Negociación'),
        (PHASE_WON, 'Ganada'),
        (PHASE_LOST, 'Perdida'),
        (PHASE_IN_PRODUCTION, 'En Producción'),
        (PHASE_INVOICED, 'Facturada'),
        (PHASE_POST_SALE, 'Post Venta'),
    ]

    # Phases counted in the pipeline value metric
    PIPELINE_VALUE_PHASES = [PHASE_QUOTE, PHASE_NEGOTIATION]

    # Phases counted as converted from Lead
    ADVANCED_PHASES = [
        PHASE_QUOTE,
        PHASE_NEGOTIATION,
        PHASE_WON,
        PHASE_IN_PRODUCTION,
        PHASE_INVOICED,
        PHASE_POST_SALE,
    ]

    company_name = models.CharField(max_length=200, help_text='Company name (required)')
    contact_name = models.CharField(max_length=200, blank=True, help_text='Person we talk to')
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField(blank=True, null=True)
    current_phase = models.CharField(max_length=20, choices=PHASE_CHOICES, default=PHASE_PROSPECTING, db_index=True)
    estimated_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0'), validators=[MinValueValidator(Decimal('0'))])
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    # Also marks the last phase change (days in phase are counted from here)
    updated_at = models.DateTimeField(auto_now=True, db_index=True)

    objects = ProspectQuerySet.as_manager()

    class Meta:
        db_table = 'prospects'
        verbose_name = 'Prospect'
        verbose_name_plural = 'Prospects'
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['company_name'], name='prospect_company_name_idx'),
        ]

    def __str__(self):
        return f"{self.company_name} ({self.current_phase})"

    def days_in_phase(self):
        """Whole days since the prospect was last updated"""
        reference = self.updated_at or self.created_at or timezone.now()
        return max((timezone.now() - reference).days, 0)

    def change_phase(self, new_phase, user=None, request=None):
        """
        Move the prospect to another pipeline phase and audit the change

        Returns:
            bool: False when the phase is unchanged
        """
        old_phase = self.current_phase
        if new_phase == old_phase:
            return False

        self.current_phase = new_phase
        self.save(update_fields=['current_phase', 'updated_at'])

        log_action(
            user,
            ActivityLog.ACTION_UPDATE,
            entity=self,
            details={
                'prospect_name': self.company_name,
                'changes': {'current_phase': {'from': old_phase, 'to': new_phase}},
            },
            request=request,
        )
        return True

    def to_dict(self):
        data = {
            'id': self.id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'phone': self.phone,
            'email': self.email,
            'current_phase': self.current_phase,
            'estimated_value': str(self.estimated_value),
            'notes': self.notes,
            'days_in_phase': self.days_in_phase(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

        # Present when the queryset was annotated by with_activity_stats()
        if hasattr(self, 'pending_activities'):
            assignee = ' '.join(
                part for part in (self.next_assignee_first_name, self.next_assignee_last_name) if part
            )
            data.update({
                'pending_activities': self.pending_activities,
                'next_activity_date': self.next_activity_date.isoformat() if self.next_activity_date else None,
                'assigned_user_name': assignee or None,
            })
        return data
