from django.core.management.base import BaseCommand
from django.utils.dateparse import parse_date

from apps.activities.daily_calls import generate_daily_calls


class Command(BaseCommand):
    help = 'Generate the daily qualification calls (Monday to Thursday)'

    def add_arguments(self, parser):
        parser.add_argument('--date', help='Run as if today were this date (YYYY-MM-DD)')
        parser.add_argument('--limit', type=int, help='Maximum number of calls to create')

    def handle(self, *args, **options):
        today = parse_date(options['date']) if options.get('date') else None
        result = generate_daily_calls(today=today, limit=options.get('limit'))

        style = self.style.SUCCESS if result.generated else self.style.WARNING
        self.stdout.write(style(result.message))
