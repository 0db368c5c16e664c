from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count, Q
from django.utils.translation import gettext_lazy as _
from django.utils.html import format_html

from apps.activities.models import Activity
from .models import User


ROLE_COLORS = {
    User.ROLE_MANAGER: '#28a745',
    User.ROLE_SALESPERSON: '#007bff',
}


# SALES TEAM ADMIN
@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = (
        'email',
        'full_name',
        'role_badge',
        'is_active',
        'pending_count',
        'last_login',
    )
    list_display_links = ('email', 'full_name')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('first_name', 'last_name')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        (_('Sales team'), {
            'fields': ('first_name', 'last_name', 'role', 'is_active'),
            'description': _('Salespersons only see their own activities, managers see everything')
        }),
        (_('Admin access'), {
            'fields': ('is_staff', 'is_superuser'),
            'classes': ('collapse',),
        }),
    )
    add_fieldsets = (
        (None, {
            'fields': ('email', 'first_name', 'last_name', 'role', 'password1', 'password2'),
            'classes': ('wide',),
        }),
    )
    readonly_fields = ('last_login',)

    actions = ['make_salesperson', 'make_manager']

    def get_queryset(self, request):
        # One query for the pending column instead of one per row
        return super().get_queryset(request).annotate(
            pending=Count(
                'assigned_activities',
                filter=Q(assigned_activities__status=Activity.STATUS_PENDING),
            )
        )

    def full_name(self, obj):
        return obj.get_full_name()

    full_name.short_description = _('Name')
    full_name.admin_order_field = 'first_name'

    def role_badge(self, obj):
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 10px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            ROLE_COLORS.get(obj.role, '#6c757d'), obj.get_role_display()
        )

    role_badge.short_description = _('Role')
    role_badge.admin_order_field = 'role'

    def pending_count(self, obj):
        return obj.pending

    pending_count.short_description = _('Pending activities')
    pending_count.admin_order_field = 'pending'

    def _set_role(self, request, queryset, role):
        updated = queryset.exclude(role=role).update(role=role)
        self.message_user(
            request,
            _('%(count)d user(s) changed to %(role)s.') % {
                'count': updated,
                'role': dict(User.ROLE_CHOICES)[role],
            },
            level='success'
        )

    def make_salesperson(self, request, queryset):
        """Salespersons receive daily calls and only see their own activities"""
        self._set_role(request, queryset, User.ROLE_SALESPERSON)

    make_salesperson.short_description = _('Change role to salesperson')

    def make_manager(self, request, queryset):
        self._set_role(request, queryset, User.ROLE_MANAGER)

    make_manager.short_description = _('Change role to manager')


admin.site.site_header = _('Ventas CRM')
admin.site.site_title = _('Ventas CRM')
admin.site.index_title = _('Sales team and activities')
