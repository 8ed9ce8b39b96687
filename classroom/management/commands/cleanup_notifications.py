from django.core.management.base import BaseCommand

from classroom.notifications import cleanup_old_notifications


class Command(BaseCommand):
    help = 'Delete read notifications older than the retention period'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=None, help='Override the retention period in days')

    def handle(self, *args, **options):
        deleted = cleanup_old_notifications(options['days'])
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} notifications'))
