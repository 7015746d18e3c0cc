from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.offers.models import Offer
from modules.offers.repositories.django_repository import OfferDjangoRepository
from modules.orders.dtos import PlaceOrderDTO, ShippingAddressDTO
from modules.orders.exceptions import CartChanged, EmptyOrder, InsufficientStock
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.pricing.constants import OfferType, OfferValueKind
from modules.pricing.dtos import CartItemDTO
from modules.pricing.services import PricingService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.sellers.models import Seller

SELLERS = [
    # (email, name, state, gstin)
    ("kaveri@example.com", "Kaveri Handlooms", "KA", "29ABCDE1234F1Z5"),
    ("pune-spices@example.com", "Pune Spice Co.", "MH", ""),
    ("jaipur-crafts@example.com", "Jaipur Crafts", "RJ", "08FGHIJ5678K1Z2"),
    ("chennai-books@example.com", "Chennai Book House", "TN", ""),
]

# (sku, name, category, price, seller email or None for first-party)
CATALOG = [
    ("HL-SAREE-01", "Mysore Silk Saree", "apparel", Decimal("2499.00"), "kaveri@example.com"),
    ("HL-DUP-02", "Cotton Dupatta", "apparel", Decimal("449.00"), "kaveri@example.com"),
    ("SP-MASALA-01", "Garam Masala 200g", "grocery", Decimal("149.00"), "pune-spices@example.com"),
    ("SP-CHILLI-02", "Kolhapuri Chilli 500g", "grocery", Decimal("229.00"), "pune-spices@example.com"),
    ("JC-LAMP-01", "Brass Diya Lamp", "home", Decimal("899.00"), "jaipur-crafts@example.com"),
    ("JC-RUG-02", "Hand-knotted Rug", "home", Decimal("5499.00"), "jaipur-crafts@example.com"),
    ("CB-NOVEL-01", "Tamil Classics Box Set", "books", Decimal("1299.00"), "chennai-books@example.com"),
    ("FP-EARBUD-01", "Wireless Earbuds", "electronics", Decimal("1799.00"), None),
    ("FP-KETTLE-02", "Electric Kettle 1.5L", "home", Decimal("999.00"), None),
    ("FP-TOY-03", "Wooden Puzzle Set", "toys", Decimal("349.00"), None),
]

OFFERS = [
    {
        "key": "festive-10",
        "name": "Festive 10% off above ₹1000",
        "type": OfferType.DISCOUNT_MIN.value,
        "value": Decimal("10"),
        "value_kind": OfferValueKind.PERCENT.value,
        "min_amount": Decimal("1000"),
    },
    {
        "key": "pack-of-3",
        "name": "₹20 off each when buying 3",
        "type": OfferType.PACK_MIN.value,
        "value": Decimal("20"),
        "value_kind": OfferValueKind.FLAT.value,
        "min_quantity": 3,
    },
    {
        "key": "grocery-5",
        "name": "5% off groceries",
        "type": OfferType.CATEGORY.value,
        "value": Decimal("5"),
        "category": "grocery",
    },
    {
        "key": "silk-week",
        "name": "Silk week: ₹200 off",
        "type": OfferType.SEARCH.value,
        "value": Decimal("200"),
        "value_kind": OfferValueKind.FLAT.value,
        "search_term": "silk",
    },
]

CUSTOMERS = [
    ("Ananya Rao", "ananya@example.com", "9876543210", "KA", "Bengaluru", "560001"),
    ("Rohan Mehta", "rohan@example.com", "9822012345", "MH", "Pune", "411001"),
    ("Priya Iyer", "priya@example.com", "9445098765", "TN", "Chennai", "600004"),
    ("Vikram Singh", "vikram@example.com", "9414011223", "RJ", "Jaipur", "302001"),
    ("Meera Nair", "meera@example.com", "9847055443", "KL", "Kochi", "682001"),
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        sellers = self._seed_sellers()
        products = self._seed_products(sellers)
        offers = self._seed_offers()
        customers = self._seed_customers()
        orders_created = self._seed_orders(customers, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"sellers={len(sellers)}, "
                f"products={len(products)}, "
                f"offers={len(offers)}, "
                f"customers={len(customers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="support").exists():
            User.objects.create_user("support", password="support123", is_staff=True)
            created += 1
        return created

    def _seed_sellers(self) -> dict[str, Seller]:
        self.stdout.write("Creating sellers...")
        sellers: dict[str, Seller] = {}
        for email, name, state, gstin in SELLERS:
            seller, _ = Seller.objects.get_or_create(
                email=email,
                defaults={"name": name, "state": state, "gstin": gstin},
            )
            sellers[email] = seller
        self.stdout.write(self.style.SUCCESS("Creating sellers... Done!"))
        return sellers

    def _seed_products(self, sellers: dict[str, Seller]) -> list[Product]:
        self.stdout.write("Creating products...")
        repository = ProductDjangoRepository()
        products: list[Product] = []
        for sku, name, category, price, seller_email in CATALOG:
            product = repository.get_by_sku(sku)
            if product is None:
                product = repository.save(
                    Product(
                        sku=sku,
                        name=name,
                        description=f"{name} ({category})",
                        category=category,
                        price=price,
                        stock_quantity=random.randint(10, 200),
                        is_admin_product=seller_email is None,
                        seller=sellers.get(seller_email) if seller_email else None,
                        weight=Decimal(random.randint(200, 3000)),
                        weight_unit="g",
                        height=Decimal(random.randint(5, 40)),
                        width=Decimal(random.randint(5, 40)),
                        dimension_unit="cm",
                        status=ProductStatus.ACTIVE,
                    )
                )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_offers(self) -> list[Offer]:
        self.stdout.write("Creating offers...")
        offers = []
        for position, fields in enumerate(OFFERS):
            offer, _ = Offer.objects.get_or_create(
                key=fields["key"],
                defaults={**fields, "display_order": position},
            )
            offers.append(offer)
        self.stdout.write(self.style.SUCCESS("Creating offers... Done!"))
        return offers

    def _seed_customers(self) -> list[tuple[Customer, tuple]]:
        self.stdout.write("Creating customers...")
        repository = CustomerDjangoRepository()
        customers = []
        for name, email, phone, state, city, pincode in CUSTOMERS:
            customer = repository.get_by_email(email)
            if customer is None:
                customer = repository.save(
                    Customer(name=name, email=email, phone=phone, is_active=True)
                )
            customers.append((customer, (state, city, pincode)))
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_orders(self, customers, products: list[Product]) -> int:
        """Place orders through ``OrderService`` so totals match pricing."""
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        product_repository = ProductDjangoRepository()
        service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=product_repository,
            pricing_service=PricingService(
                product_repository=product_repository,
                offer_repository=OfferDjangoRepository(),
            ),
        )
        offer_keys = [fields["key"] for fields in OFFERS] + [None, None]

        orders_created = 0
        for i in range(20):
            customer, (state, city, pincode) = random.choice(customers)
            picked = random.sample(products, k=random.randint(1, 3))
            dto = PlaceOrderDTO(
                customer_id=customer.id,
                items=[
                    CartItemDTO(
                        product_id=str(product.id),
                        quantity=random.randint(1, 3),
                        offer_key=random.choice(offer_keys),
                    )
                    for product in picked
                ],
                shipping=ShippingAddressDTO(
                    name=customer.name,
                    phone=customer.phone,
                    address=f"{i + 1}, MG Road",
                    city=city,
                    state=state,
                    pincode=pincode,
                ),
                notes=f"Seed order {i + 1}",
                idempotency_key=f"seed-order-{i + 1}",
            )
            try:
                service.place_order(dto)
            except (CartChanged, EmptyOrder, InsufficientStock) as exc:
                # Sellers without GST only ship within their state.
                self.stdout.write(f"Skipped seed order {i + 1}: {exc}")
                continue
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
