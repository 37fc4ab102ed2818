from django.core.management.base import BaseCommand

from clinic.utils.slots import release_expired_reservations


class Command(BaseCommand):
    help = "Reopen reserved slots whose reservation has expired."

    def handle(self, *args, **opts):
        released = release_expired_reservations()
        if not released:
            self.stdout.write(self.style.WARNING("No expired reservations."))
            return
        self.stdout.write(self.style.SUCCESS(f"Released {released} expired reservations."))
