import logging
import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from ledger.catalog import ToolCatalog

logger = logging.getLogger(__name__)

DEMO_EMAIL = "user@example.com"
DEMO_BALANCE = Decimal("500.00")


class Command(BaseCommand):
    help = "Seed the product catalog with tools and optionally a funded demo user."

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=10, help="Number of products to create.")
        parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible catalogs.")
        parser.add_argument(
            "--with-demo-user",
            action="store_true",
            help=f"Also create {DEMO_EMAIL} / password with a {DEMO_BALANCE} balance.",
        )

    def handle(self, *args, **options):
        catalog = ToolCatalog(random.Random(options["seed"]))

        with transaction.atomic():
            products = catalog.create_products(options["count"])

            if options["with_demo_user"]:
                if get_user_model().objects.filter(username=DEMO_EMAIL).exists():
                    self.stdout.write(f"Demo user {DEMO_EMAIL} already exists, skipped.")
                else:
                    catalog.create_user(email=DEMO_EMAIL, balance=DEMO_BALANCE, name="Test User")
                    self.stdout.write(f"Created demo user {DEMO_EMAIL}.")

        logger.info("Catalog seeded: products=%s", len(products))
        self.stdout.write(self.style.SUCCESS(f"Created {len(products)} products."))
