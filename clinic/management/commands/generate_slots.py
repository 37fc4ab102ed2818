from datetime import date, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from clinic.utils.slots import generate_slots


class Command(BaseCommand):
    help = "Generate availability slots from active availability rules."

    def add_arguments(self, parser):
        parser.add_argument("--facility", type=int, help="Only rules of this facility ID.")
        parser.add_argument("--doctor", type=int, help="Only rules of this doctor ID.")
        parser.add_argument(
            "--start-date",
            type=date.fromisoformat,
            help="First day to generate (YYYY-MM-DD, default today).",
        )
        parser.add_argument(
            "--end-date",
            type=date.fromisoformat,
            help=f"Last day to generate (YYYY-MM-DD, default start + {settings.CLINIC_SLOT_GENERATION_DAYS} days).",
        )

    def handle(self, *args, **opts):
        start = opts["start_date"] or date.today()
        end = opts["end_date"] or start + timedelta(days=settings.CLINIC_SLOT_GENERATION_DAYS)
        if end < start:
            raise CommandError("--end-date must not be before --start-date.")

        if opts["facility"]:
            self.stdout.write(f"Filtering by facility ID: {opts['facility']}")
        if opts["doctor"]:
            self.stdout.write(f"Filtering by doctor ID: {opts['doctor']}")
        self.stdout.write(f"Generating slots from {start} to {end}")

        total = generate_slots(start, end, facility_id=opts["facility"], doctor_id=opts["doctor"])

        self.stdout.write(self.style.SUCCESS(f"Total slots created: {total}"))
