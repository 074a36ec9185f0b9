from django.core.management.base import BaseCommand

from quotes.services import QuoteLifecycleService


class Command(BaseCommand):
    help = 'Mark quoted offers whose validity window has passed as expired (run from cron)'

    def handle(self, *args, **options):
        expired = QuoteLifecycleService.expire_stale_quotes()
        self.stdout.write(self.style.SUCCESS(f'Expired {expired} quote(s)'))
