# Celery is a distributed task queue for running background jobs
#
# - Generate the Monday-Thursday daily calls when nobody opened the dashboard
#
# Start worker: celery -A config worker -l info
# Start beat: celery -A config beat -l info
# ==============================================================================

import os
from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for Celery
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# 'ventas_crm' is the app name (appears in logs and monitoring)
app = Celery('ventas_crm')

# All settings prefixed with 'CELERY_' will be used
app.config_from_object('django.conf:settings', namespace='CELERY')

# Looks for tasks.py file in each app
app.autodiscover_tasks()


# CELERY BEAT SCHEDULE (Periodic Tasks)

# The dashboard already generates the daily calls on load; generation is
# idempotent per day, so this entry only covers days nobody logs in early.
app.conf.beat_schedule = {
    'generate-daily-calls': {
        'task': 'apps.activities.tasks.generate_daily_calls',
        'schedule': crontab(hour=7, minute=0, day_of_week='mon-thu'),
    },
}

