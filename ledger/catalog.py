"""
Tool catalog data builder.

Produces realistic product rows (and users with funded accounts) for the
seed command and the test suite. Randomness comes from the `random.Random`
instance handed to the builder, so a seeded builder always yields the same
catalog and nothing is shared between builders.
"""

import random
from decimal import Decimal

from django.contrib.auth import get_user_model

from ledger.models import Account, Product

TOOLS = (
    {"name": "Bosch GSB 13 RE Impact Drill", "category": "Drills", "company": "Bosch"},
    {"name": "DeWalt DCD996 Cordless Hammer Drill", "category": "Drills", "company": "DeWalt"},
    {"name": "Makita HR2475 SDS-Plus Rotary Hammer", "category": "Hammers", "company": "Makita"},
    {"name": "Milwaukee 2715-20 M18 Fuel Rotary Hammer", "category": "Hammers", "company": "Milwaukee"},
    {"name": "Stanley STHT51304 16-Ounce Rip Claw Hammer", "category": "Hammers", "company": "Stanley"},
    {"name": "Klein Tools 8-Inch Long Nose Pliers", "category": "Pliers", "company": "Klein Tools"},
    {"name": "Irwin VISE-GRIP Locking Pliers", "category": "Pliers", "company": "Irwin"},
    {"name": "Craftsman CMHT65075 Screwdriver Set", "category": "Screwdrivers", "company": "Craftsman"},
    {"name": "Wiha 32092 Precision Screwdriver", "category": "Screwdrivers", "company": "Wiha"},
    {"name": "Snap-On SOEX710 Flank Drive Wrench Set", "category": "Wrenches", "company": "Snap-On"},
    {"name": "GearWrench 120XP Flex Head Ratcheting Wrench Set", "category": "Wrenches", "company": "GearWrench"},
    {"name": "Ridgid 31100 Model 818 Pipe Wrench", "category": "Wrenches", "company": "Ridgid"},
    {"name": "Hitachi C10FCG 10-Inch Miter Saw", "category": "Saws", "company": "Hitachi"},
    {"name": "Ryobi P507 One+ Circular Saw", "category": "Saws", "company": "Ryobi"},
    {"name": "Festool TS 55 REQ Plunge Cut Track Saw", "category": "Saws", "company": "Festool"},
    {"name": "Dremel 8220 Cordless Rotary Tool", "category": "Rotary Tools", "company": "Dremel"},
    {"name": "Black+Decker BDERO100 Random Orbit Sander", "category": "Sanders", "company": "Black+Decker"},
    {"name": "Makita BO5030K Random Orbit Sander", "category": "Sanders", "company": "Makita"},
    {"name": "DeWalt DCW210B Cordless Orbital Sander", "category": "Sanders", "company": "DeWalt"},
)


class ToolCatalog:
    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self._user_seq = 0

    def tool(self):
        return dict(self.rng.choice(TOOLS))

    def amount(self, low, high):
        """Random amount with two decimal places in [low, high]."""
        cents = self.rng.randint(low * 100, high * 100)
        return Decimal(cents).scaleb(-2)

    def product_attributes(self, **overrides):
        attributes = self.tool()
        attributes["price"] = self.amount(100, 1000)
        attributes["rental_price"] = self.amount(10, 50)
        attributes.update(overrides)
        return attributes

    def create_product(self, **overrides):
        return Product.objects.create(**self.product_attributes(**overrides))

    def create_products(self, count, **overrides):
        return [self.create_product(**overrides) for _ in range(count)]

    def create_user(self, email=None, password="password", balance=Decimal("0.00"), name=None):
        """Create a login and its Account holding `balance`."""
        self._user_seq += 1
        email = email or f"user{self._user_seq}-{self.rng.randrange(10 ** 8)}@example.com"

        user = get_user_model().objects.create_user(
            username=email,
            email=email,
            password=password,
            first_name=name or f"User {self._user_seq}",
        )
        Account.objects.create(user=user, balance=Decimal(balance))
        return user
