from django.core.management.base import BaseCommand

from apps.shipping.notifications import NotificationDispatcher


class Command(BaseCommand):
    help = 'Retry pending shipment notifications whose backoff has elapsed.'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=100, help='Maximum messages to attempt in this run.')

    def handle(self, *args, **options):
        results = NotificationDispatcher.dispatch_due(limit=options['limit'])
        self.stdout.write(self.style.SUCCESS(
            f"Notifications sent: {results['sent']}, failed attempts: {results['failed']}, "
            f"skipped: {results['skipped']}"
        ))
