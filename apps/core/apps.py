from django.apps import AppConfig


class CoreConfig(AppConfig):
    """
    Configuration for Core application

    This app contains:
        - ActivityLog model (audit trail)
        - Dashboard view (metrics and activity buckets)
        - Team view (salesperson counters and logs)
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'
