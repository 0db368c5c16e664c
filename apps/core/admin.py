from django.contrib import admin
from django.utils.html import format_html
from .models import ActivityLog


ACTION_COLORS = {
    ActivityLog.ACTION_LOGIN: '#17a2b8',
    ActivityLog.ACTION_LOGOUT: '#6c757d',
    ActivityLog.ACTION_CREATE: '#667eea',
    ActivityLog.ACTION_COMPLETE: '#28a745',
    ActivityLog.ACTION_BLOCK: '#dc3545',
    ActivityLog.ACTION_UNBLOCK: '#fd7e14',
    ActivityLog.ACTION_UPDATE: '#ffc107',
}


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):

    list_display = [
        'id',
        'user',
        'action_badge',
        'entity_type',
        'entity_id',
        'ip_address',
        'created_at',
    ]
    list_filter = ['action_type', 'entity_type', 'created_at', 'user']
    search_fields = ['user__email', 'user__first_name', 'user__last_name', 'ip_address']
    ordering = ['-created_at']
    list_per_page = 100
    date_hierarchy = 'created_at'
    readonly_fields = [
        'user',
        'action_type',
        'entity_type',
        'entity_id',
        'details',
        'ip_address',
        'user_agent',
        'created_at',
    ]

    def action_badge(self, obj):
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            ACTION_COLORS.get(obj.action_type, '#6c757d'),
            obj.get_action_type_display()
        )
    action_badge.short_description = 'Action'

    # The audit trail is append-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related('user')
