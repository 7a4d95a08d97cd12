from __future__ import annotations

from django.core.management.base import BaseCommand

from parking.seed import seed_demo_spots


class Command(BaseCommand):
    help = "Seed demo parking spots (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--update-existing",
            action="store_true",
            help="Update existing demo spots to match the default seed values.",
        )
        parser.add_argument(
            "--valid-days",
            type=int,
            default=90,
            help="How many days from today the seeded spots stay bookable.",
        )

    def handle(self, *args, **options):
        result = seed_demo_spots(
            update_existing=options["update_existing"],
            valid_days=options["valid_days"],
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: created={result['created']} updated={result['updated']} skipped={result['skipped']}"
            )
        )
