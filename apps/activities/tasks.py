from celery import shared_task

from .daily_calls import generate_daily_calls as run_daily_calls


@shared_task
def generate_daily_calls():
    result = run_daily_calls()
    return result.message
