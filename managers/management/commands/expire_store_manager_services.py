"""
Expire store manager services whose subscription has ended.
Run periodically (cron). Suspended services are left alone.
"""
from django.core.management.base import BaseCommand

from managers.services import expire_overdue


class Command(BaseCommand):
    help = "Mark active store manager services past their end date as expired."

    def handle(self, *args, **options):
        count = expire_overdue()
        self.stdout.write(self.style.SUCCESS(f"Expired {count} service(s)."))
