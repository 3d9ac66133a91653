"""
Seed the Cayman Islands delivery districts.
Existing districts (same name or code) are left untouched.
"""
from django.core.management.base import BaseCommand

from delivery.districts import seed_cayman_districts


class Command(BaseCommand):
    help = "Create the default Cayman Islands districts."

    def handle(self, *args, **options):
        created, skipped = seed_cayman_districts()
        for district in created:
            self.stdout.write(f"  + {district.code} {district.name}")
        self.stdout.write(
            self.style.SUCCESS(f"Created {len(created)} district(s), skipped {len(skipped)}.")
        )
