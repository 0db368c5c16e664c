from django.contrib import admin
from django.utils.html import format_html

from apps.activities.models import Activity
from apps.core.models import ActivityLog
from apps.core.utils import log_action
from .models import Prospect


PHASE_COLORS = {
    Prospect.PHASE_PROSPECTING: '#6c757d',
    Prospect.PHASE_LEAD: '#17a2b8',
    Prospect.PHASE_QUOTE: '#ffc107',
    Prospect.PHASE_NEGOTIATION: '#fd7e14',
    Prospect.PHASE_WON: '#28a745',
    Prospect.PHASE_LOST: '#dc3545',
    Prospect.PHASE_IN_PRODUCTION: '#667eea',
    Prospect.PHASE_INVOICED: '#20c997',
    Prospect.PHASE_POST_SALE: '#6f42c1',
}


class ActivityInline(admin.TabularInline):

    model = Activity
    fk_name = 'prospect'
    extra = 0
    fields = ['scheduled_date', 'activity_type', 'status', 'assigned_to', 'notes']
    readonly_fields = fields
    classes = ['collapse']
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('assigned_to').order_by('-scheduled_date')


@admin.register(Prospect)
class ProspectAdmin(admin.ModelAdmin):

    list_display = [
        'id',
        'company_name',
        'contact_name',
        'phone',
        'phase_badge',
        'estimated_value',
        'days_in_phase_display',
        'updated_at',
    ]

    list_filter = ['current_phase', 'created_at']
    search_fields = ['company_name', 'contact_name', 'email', 'phone']
    ordering = ['-updated_at']
    list_per_page = 50
    date_hierarchy = 'created_at'

    fieldsets = [
        ('Company', {
            'fields': ['company_name', 'contact_name', 'phone', 'email']
        }),
        ('Pipeline', {
            'fields': ['current_phase', 'estimated_value']
        }),
        ('Additional Info', {
            'fields': ['notes'],
            'classes': ['collapse'],
        }),
        ('Timestamps', {
            'fields': ['created_at', 'updated_at'],
            'classes': ['collapse'],
        }),
    ]

    readonly_fields = ['created_at', 'updated_at']
    inlines = [ActivityInline]
    actions = ['mark_as_lead', 'mark_as_lost']

    def phase_badge(self, obj):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            PHASE_COLORS.get(obj.current_phase, '#6c757d'),
            obj.current_phase
        )
    phase_badge.short_description = 'Phase'

    def days_in_phase_display(self, obj):
        return f'{obj.days_in_phase()} d'
    days_in_phase_display.short_description = 'In phase'

    def _move_to_phase(self, request, queryset, phase):
        count = 0
        for prospect in queryset:
            if prospect.change_phase(phase, user=request.user, request=request):
                count += 1
        self.message_user(request, f'Moved {count} prospects to "{phase}"')

    def mark_as_lead(self, request, queryset):
        self._move_to_phase(request, queryset, Prospect.PHASE_LEAD)
    mark_as_lead.short_description = 'Move to "Lead"'

    def mark_as_lost(self, request, queryset):
        self._move_to_phase(request, queryset, Prospect.PHASE_LOST)
    mark_as_lost.short_description = 'Move to "Perdida"'

    def save_model(self, request, obj, form, change):
        old_phase = form.initial.get('current_phase') if change else None
        super().save_model(request, obj, form, change)
        if change and old_phase and old_phase != obj.current_phase:
            log_action(
                request.user,
                ActivityLog.ACTION_UPDATE,
                entity=obj,
                details={
                    'prospect_name': obj.company_name,
                    'changes': {'current_phase': {'from': old_phase, 'to': obj.current_phase}},
                },
                request=request,
            )
