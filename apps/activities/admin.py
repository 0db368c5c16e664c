from django.contrib import admin
from django.utils.html import format_html

from .models import Activity


STATUS_COLORS = {
    Activity.STATUS_PENDING: '#ffc107',
    Activity.STATUS_COMPLETED: '#28a745',
    Activity.STATUS_BLOCKED: '#dc3545',
}


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):

    list_display = [
        'id',
        'type_display',
        'prospect',
        'scheduled_date_display',
        'status_badge',
        'assigned_to_display',
        'created_by',
    ]

    list_filter = ['status', 'activity_type', 'created_by', 'scheduled_date', 'assigned_to']
    search_fields = ['prospect__company_name', 'notes', 'completion_comment', 'block_reason']
    ordering = ['-scheduled_date']
    list_per_page = 50
    date_hierarchy = 'scheduled_date'
    raw_id_fields = ['prospect', 'previous_activity']

    fieldsets = [
        ('Activity', {
            'fields': ['prospect', 'activity_type', 'custom_type', 'scheduled_date', 'notes']
        }),
        ('Status', {
            'fields': ['status', 'completion_comment', 'block_reason', 'completed_at']
        }),
        ('Assignment', {
            'fields': ['assigned_to', 'created_by', 'previous_activity']
        }),
        ('Timestamps', {
            'fields': ['created_at', 'updated_at'],
            'classes': ['collapse'],
        }),
    ]

    readonly_fields = ['completed_at', 'created_at', 'updated_at']
    actions = ['unblock_selected']

    def type_display(self, obj):
        return obj.display_type
    type_display.short_description = 'Type'

    def scheduled_date_display(self, obj):
        color = '#dc3545' if obj.is_overdue else 'inherit'
        return format_html(
            '<span style="color: {};">{}</span>',
            color,
            obj.scheduled_date.strftime('%Y-%m-%d')
        )
    scheduled_date_display.short_description = 'Date'

    def status_badge(self, obj):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.status, '#6c757d'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def assigned_to_display(self, obj):
        if obj.assigned_to:
            return format_html(
                '<span style="background-color: #667eea; color: white; '
                'padding: 2px 6px; border-radius: 50%; font-size: 10px; '
                'margin-right: 5px;">{}</span> {}',
                obj.assigned_to.get_initials(),
                obj.assigned_to.get_full_name()
            )
        return format_html('<span style="color: #999;">Unassigned</span>')
    assigned_to_display.short_description = 'Assigned To'

    def unblock_selected(self, request, queryset):
        count = 0
        for activity in queryset.filter(status=Activity.STATUS_BLOCKED):
            activity.unblock(user=request.user)
            count += 1
        self.message_user(request, f'Unblocked {count} activities')
    unblock_selected.short_description = 'Unblock selected activities'

    def save_model(self, request, obj, form, change):
        obj._changed_by = request.user
        super().save_model(request, obj, form, change)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('prospect', 'assigned_to')
