from __future__ import annotations

import random
from decimal import Decimal
from typing import List, Sequence

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.customers.models import Customer, CustomerPrice
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

SEED_OPERATOR = "seed"

# Status paths walked from draft; the last element is the final status.
LIFECYCLE_PATHS: Sequence[Sequence[str]] = (
    (),
    (OrderStatus.PROCESSING,),
    (OrderStatus.PROCESSING, OrderStatus.COMPLETED),
    (OrderStatus.CANCELLED,),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
)


class Command(BaseCommand):
    help = "Seed database with development data (customers, prices, orders)."

    def add_arguments(self, parser) -> None:
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        products = self._seed_products()
        prices_created = self._seed_custom_prices(customers, products)
        orders_created = self._seed_orders(customers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"custom_prices={prices_created}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        return created

    def _seed_customers(self) -> List[Customer]:
        seed_customers = [
            ("Zhang Wei", "13800000001"),
            ("Li Na", "13900000002"),
            ("Wang Fang", "15000000003"),
            ("Liu Yang", ""),
            ("Chen Jing", "18600000005"),
        ]
        customers = []
        for name, phone in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                name=name, defaults={"phone": phone}
            )
            customers.append(customer)
        return customers

    def _seed_products(self) -> List[Product]:
        catalog = [
            ("Rice 5kg", Decimal("39.90"), "bag"),
            ("Soy sauce", Decimal("12.50"), "bottle"),
            ("Cooking oil 5L", Decimal("69.00"), "barrel"),
            ("Eggs", Decimal("0.80"), "piece"),
            ("Flour 2kg", Decimal("15.00"), "bag"),
            ("Green tea", Decimal("48.00"), "box"),
        ]
        products = []
        for name, price, unit in catalog:
            product, _ = Product.objects.get_or_create(
                name=name, defaults={"global_price": price, "unit": unit}
            )
            products.append(product)
        return products

    def _seed_custom_prices(
        self, customers: List[Customer], products: List[Product]
    ) -> int:
        created = 0
        for customer in customers[:2]:
            for product in random.sample(products, k=min(3, len(products))):
                discounted = (product.global_price * Decimal("0.9")).quantize(
                    Decimal("0.01")
                )
                _, was_created = CustomerPrice.objects.get_or_create(
                    customer=customer,
                    product=product,
                    defaults={"price": discounted},
                )
                created += int(was_created)
        return created

    def _seed_orders(
        self, customers: List[Customer], products: List[Product], count: int
    ) -> int:
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )

        for i in range(count):
            lines = random.sample(products, k=random.randint(1, min(4, len(products))))
            order = service.create_order(
                CreateOrderDTO(
                    customer_id=random.choice(customers).id,
                    items=[
                        CreateOrderItemDTO(
                            product_id=product.id,
                            quantity=Decimal(random.randint(1, 10)),
                        )
                        for product in lines
                    ],
                    remark=f"Seed order {i + 1}",
                ),
                operator=SEED_OPERATOR,
            )
            for target in random.choice(LIFECYCLE_PATHS):
                if target == OrderStatus.CANCELLED:
                    service.request_cancellation(order.id, operator=SEED_OPERATOR)
                else:
                    service.request_transition(
                        order.id, target, operator=SEED_OPERATOR
                    )
        return count
