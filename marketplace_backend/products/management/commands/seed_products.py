import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from permissions.roles import ROLE_SELLER
from products.models import Product
from products.services.inventory import adjust_stock

User = get_user_model()


class Command(BaseCommand):
    help = "Seed a demo seller with marketplace listings and opening stock"

    def add_arguments(self, parser):
        parser.add_argument("--seller-email", default="seller@marketplace.local")
        parser.add_argument("--password", default="SellerPass123!")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding seller, products and stock..."))

        seller = User.objects.filter(email=options["seller_email"]).first()
        if seller is None:
            seller = User.objects.create_user(
                email=options["seller_email"],
                password=options["password"],
                first_name="Demo",
                last_name="Seller",
                role=ROLE_SELLER,
            )

        # -------------------------------
        # PRODUCTS
        # -------------------------------
        products_data = [
            ("BAMBOO-BRUSH", "Bamboo Toothbrush", "4.50"),
            ("STEEL-STRAW", "Steel Straw Set", "9.99"),
            ("BEESWAX-WRAP", "Beeswax Food Wraps", "14.00"),
            ("TOTE-ORGANIC", "Organic Cotton Tote", "12.50"),
            ("SOAP-OLIVE", "Olive Oil Soap Bar", "6.25"),
        ]

        for sku, name, price in products_data:
            product, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "seller": seller,
                    "price": Decimal(price),
                },
            )

            # -------------------------------
            # OPENING STOCK (audited)
            # -------------------------------
            if created:
                adjust_stock(
                    product_id=product.pk,
                    quantity_delta=random.randint(20, 50),
                    user=seller,
                )

        self.stdout.write(
            self.style.SUCCESS("✅ Products and stock seeded successfully.")
        )
