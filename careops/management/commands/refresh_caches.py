from django.core.management.base import BaseCommand
from django.utils import timezone
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync

from careops.services import reports


class Command(BaseCommand):
    help = "Rebuild the dashboard and daily report caches; broadcast a WebSocket refresh event."

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=1, help='Daily reports to rebuild, counting back from today.')

    def handle(self, *args, **options):
        now = timezone.now()
        keys_refreshed = []

        reports.dashboard(refresh=True)
        keys_refreshed.append(reports.DASHBOARD_CACHE_KEY)

        today = timezone.localdate()
        for offset in range(max(1, options['days'])):
            day = today - timezone.timedelta(days=offset)
            reports.daily_report(day, refresh=True)
            keys_refreshed.append(reports.daily_cache_key(day))

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(),
                     "keys": keys_refreshed[:50]}
            async_to_sync(channel_layer.group_send)("updates", event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
