"""Seed the known suppliers, their feed layouts and brands."""
from django.core.management.base import BaseCommand
from django.db import transaction

from suppliers.models import Brand, Supplier

ORG = Supplier.IdentifierType.ORG_NUMBER
MEMBER = Supplier.IdentifierType.MEMBER_NUMBER


class Command(BaseCommand):
    help = "Create or update suppliers with their feed layout, identifier type and brands"

    SUPPLIERS = [
        {
            "name": "L'Oréal Norge",
            "feed_layout": "loreal",
            "cumulative_reporting": True,
            "brands": ["L'Oréal Professionnel", "Kérastase", "Redken", "Matrix", "Shu Uemura"],
        },
        {"name": "Maria Nila", "feed_layout": "maria_nila", "brands": ["Maria Nila"]},
        {"name": "ICON Hairspa", "feed_layout": "icon_hairspa", "brands": ["ICON Hairspa"]},
        {
            "name": "Heidenstrøm",
            "feed_layout": "heidenstrom",
            "identifier_type": ORG,
            "brands": ["Matrix", "Nõberu of Sweden", "Rekvisita", "Vision Haircare"],
        },
        {"name": "Verdant", "feed_layout": "verdant", "brands": ["Verdant"]},
        {"name": "InGoodHands", "feed_layout": "ingoodhands", "brands": ["InGoodHands"]},
        {
            "name": "We Are One",
            "feed_layout": "we_are_one",
            "identifier_type": ORG,
            "brands": ["AVEDA", "Bumble and Bumble"],
        },
        {"name": "Wella", "feed_layout": "wella", "brands": ["GHD"]},
        {"name": "Sæther", "feed_layout": "saether", "brands": ["Sæther"]},
        {"name": "Proud Production", "feed_layout": "proud_production", "brands": ["Proud Production"]},
        {"name": "Pretty Good", "feed_layout": "pretty_good", "brands": ["Pretty Good"]},
    ]

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Show what would be created without saving")

    def handle(self, *args, **options):
        if options["dry_run"]:
            for entry in self.SUPPLIERS:
                self.stdout.write(f"{entry['name']} ({entry['feed_layout']}): {', '.join(entry['brands'])}")
            return

        created = 0
        brands = 0
        with transaction.atomic():
            for entry in self.SUPPLIERS:
                supplier, was_created = Supplier.objects.update_or_create(
                    name=entry["name"],
                    defaults={
                        "feed_layout": entry["feed_layout"],
                        "cumulative_reporting": entry.get("cumulative_reporting", False),
                        "identifier_type": entry.get("identifier_type", MEMBER),
                    },
                )
                created += int(was_created)
                for brand_name in entry["brands"]:
                    if not supplier.brands.filter(name__iexact=brand_name).exists():
                        Brand.objects.create(supplier=supplier, name=brand_name)
                        brands += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {len(self.SUPPLIERS)} suppliers ({created} new), {brands} new brands"
        ))
