# ==============================================================================
# VENTAS CRM - CONFIG PACKAGE INITIALIZER
# ==============================================================================

# Import Celery app to ensure it's loaded when Django starts
from .celery import app as celery_app

# This allows importing as: from config import celery_app
__all__ = ('celery_app',)
