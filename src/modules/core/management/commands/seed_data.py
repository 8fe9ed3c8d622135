from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.constants import Subscription, UserRole
from modules.accounts.models import StoreProfile
from modules.logistics.models import Colony, SystemSettings
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CreateOrderDTO
from modules.orders.views import build_order_service
from modules.products.models import Product


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        settings = SystemSettings.load()
        colonies = self._seed_colonies()
        users_created = self._seed_users()
        stores = self._seed_stores(colonies)
        products = self._seed_products(stores)
        orders_created = self._seed_orders(colonies, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"tariff=({settings.base_fee}, {settings.km_rate}), "
                f"colonies={len(colonies)}, "
                f"users={users_created}, "
                f"stores={len(stores)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_colonies(self) -> list[Colony]:
        self.stdout.write("Creating colonies...")
        seed_colonies = [
            ("Centro", 19.4326, -99.1332),
            ("Roma Norte", 19.4194, -99.1617),
            ("Condesa", 19.4111, -99.1731),
            ("Coyoacán", 19.3500, -99.1620),
            ("Narvarte", 19.3958, -99.1556),
        ]
        colonies = []
        for name, lat, lng in seed_colonies:
            colony, _ = Colony.objects.get_or_create(
                name=name, defaults={"lat": lat, "lng": lng}
            )
            colonies.append(colony)
        self.stdout.write(self.style.SUCCESS("Creating colonies... Done!"))
        return colonies

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        accounts = [
            ("admin", "admin123", UserRole.MASTER, {"is_staff": True, "is_superuser": True}),
            ("cliente", "cliente123", UserRole.CLIENT, {}),
            ("repartidor", "repartidor123", UserRole.DELIVERY, {}),
        ]
        for username, password, role, extra in accounts:
            if User.objects.filter(username=username).exists():
                continue
            User.objects.create_user(
                username,
                email=f"{username}@example.com",
                password=password,
                role=role,
                approved=True,
                **extra,
            )
            created += 1
        return created

    def _seed_stores(self, colonies: list[Colony]) -> list:
        self.stdout.write("Creating stores...")
        User = get_user_model()
        seed_stores = [
            ("tacos_el_guero", "Tacos El Güero", Subscription.ULTRA),
            ("pizzeria_roma", "Pizzería Roma", Subscription.PREMIUM),
            ("cafe_condesa", "Café Condesa", Subscription.STANDARD),
        ]
        stores = []
        for index, (username, store_name, subscription) in enumerate(seed_stores):
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    email=f"{username}@example.com",
                    password="tienda123",
                    role=UserRole.STORE,
                    approved=True,
                )
                StoreProfile.objects.create(
                    user=user,
                    store_name=store_name,
                    street="Av. Insurgentes",
                    number=str(100 + index),
                    colony=colonies[index % len(colonies)],
                    is_open=True,
                    subscription=subscription,
                    prep_time="20-30 min",
                )
            stores.append(user)
        self.stdout.write(self.style.SUCCESS("Creating stores... Done!"))
        return stores

    def _seed_products(self, stores: list) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Taco al pastor", "Tacos", Decimal("25.00")),
            ("Quesadilla", "Antojitos", Decimal("40.00")),
            ("Pizza margarita", "Pizzas", Decimal("180.00")),
            ("Lasaña", "Pastas", Decimal("150.00")),
            ("Café americano", "Bebidas", Decimal("35.00")),
            ("Pan de elote", "Postres", Decimal("45.00")),
        ]
        products: list[Product] = []
        for store in stores:
            for name, category, price in random.sample(catalog, k=3):
                product, _ = Product.objects.get_or_create(
                    store=store,
                    name=name,
                    defaults={"category": category, "price": price},
                )
                products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, colonies: list[Colony], products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        customer = get_user_model().objects.filter(username="cliente").first()
        if customer is None or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customer/products)."))
            return 0

        service = build_order_service()
        by_store: dict = {}
        for product in products:
            by_store.setdefault(product.store_id, []).append(product)

        for _ in range(count):
            store_id = random.choice(list(by_store))
            chosen = random.sample(by_store[store_id], k=random.randint(1, 2))
            service.create_order(
                CreateOrderDTO(
                    customer_id=customer.id,
                    store_id=store_id,
                    items=[
                        {"product_id": p.id, "quantity": random.randint(1, 3)}
                        for p in chosen
                    ],
                    payment_method=random.choice(PaymentMethod.values),
                    delivery_address={
                        "street": "Calle Durango",
                        "number": str(random.randint(1, 300)),
                        "colony_id": random.choice(colonies).id,
                    },
                )
            )

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count
