from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from repairshop.notifications.utils import get_organization_admins, send_service_waiting_notification
from repairshop.services.models import ServiceOrder


class Command(BaseCommand):
    help = 'Notify technicians (or admins) about open service orders without updates for N days'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=3,
            help='Minimum number of days without updates (default: 3)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List stale services without creating notifications'
        )

    def handle(self, *args, **options):
        days = options['days']
        dry_run = options['dry_run']
        now = timezone.now()
        cutoff = now - timedelta(days=days)

        stale = ServiceOrder.objects.filter(
            status__in=ServiceOrder.OPEN_STATUSES,
            updated_at__lte=cutoff
        ).select_related('technician', 'organization').order_by('updated_at')

        self.stdout.write(f'Found {stale.count()} service(s) without updates for {days}+ day(s)')

        sent = 0
        for service in stale:
            idle_days = (now - service.updated_at).days
            recipients = [service.technician] if service.technician else list(get_organization_admins(service.organization))
            if not recipients:
                self.stdout.write(self.style.WARNING(f'  Service #{service.id}: nobody to notify'))
                continue
            for user in recipients:
                if dry_run:
                    self.stdout.write(f'  Would notify {user.username} about service #{service.id} ({idle_days} days)')
                    continue
                send_service_waiting_notification(user, service.id, idle_days, service.id)
                sent += 1

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run finished, no notifications created'))
        else:
            self.stdout.write(self.style.SUCCESS(f'✓ Sent {sent} notification(s)'))
