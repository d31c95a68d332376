from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from modules.companies.models import Company, CompanyType, CompanyUser, MemberRole
from modules.core.validators import compute_check_digits
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderStatusHistory

# Stage each seeded order is left in, to exercise the whole workflow.
SEED_STATUSES = [
    OrderStatus.LANCADO_PELA_MARCA,
    OrderStatus.DISPONIVEL_PARA_OUTRAS,
    OrderStatus.ACEITO_PELA_FACCAO,
    OrderStatus.EM_PREPARACAO_SAIDA_MARCA,
    OrderStatus.EM_PRODUCAO,
    OrderStatus.PRONTO,
    OrderStatus.EM_TRANSITO_PARA_MARCA,
    OrderStatus.EM_REVISAO,
    OrderStatus.FINALIZADO,
    OrderStatus.REPROVADO,
]

PRODUCTS = [
    ("Camiseta", "Camiseta básica algodão"),
    ("Calça", "Calça jeans slim"),
    ("Vestido", "Vestido midi viscose"),
    ("Jaqueta", "Jaqueta corta-vento"),
    ("Moletom", "Moletom canguru"),
]


def seed_cnpj(base: str) -> str:
    return base + compute_check_digits(base)


class Command(BaseCommand):
    help = "Seed database with a brand, two suppliers and orders in several stages."

    @transaction.atomic
    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        brand, suppliers = self._seed_companies(users)
        orders_created = self._seed_orders(brand, suppliers, users["marca"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"companies={1 + len(suppliers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        User = get_user_model()
        users = {}
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
        for username in ("marca", "faccao1", "faccao2"):
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": f"{username}@example.com"},
            )
            if created:
                user.set_password(f"{username}123")
                user.save(update_fields=["password"])
            users[username] = user
        return users

    def _seed_companies(self, users: dict) -> tuple[Company, list[Company]]:
        self.stdout.write("Creating companies...")
        seed = [
            ("marca", CompanyType.BRAND, "Moda Sul Confecções Ltda", "Moda Sul", "112223330001"),
            ("faccao1", CompanyType.SUPPLIER, "Costura Fina Facção Ltda", "Costura Fina", "223334440001"),
            ("faccao2", CompanyType.SUPPLIER, "Ponto Certo Facção ME", "Ponto Certo", "334445550001"),
        ]
        companies = []
        for username, company_type, legal_name, trade_name, base in seed:
            company, _ = Company.objects.get_or_create(
                document=seed_cnpj(base),
                defaults={
                    "type": company_type,
                    "legal_name": legal_name,
                    "trade_name": trade_name,
                    "email": f"contato@{trade_name.lower().replace(' ', '')}.com.br",
                    "city": "Blumenau",
                    "state": "SC",
                },
            )
            CompanyUser.objects.get_or_create(
                user=users[username],
                company=company,
                defaults={"role": MemberRole.OWNER},
            )
            companies.append(company)
        self.stdout.write(self.style.SUCCESS("Creating companies... Done!"))
        return companies[0], companies[1:]

    def _seed_orders(self, brand: Company, suppliers: list[Company], user) -> int:
        self.stdout.write("Creating orders...")
        if brand.brand_orders.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        today = timezone.localdate()
        for i, status in enumerate(SEED_STATUSES):
            product_type, product_name = random.choice(PRODUCTS)
            supplier = None
            if status != OrderStatus.DISPONIVEL_PARA_OUTRAS:
                supplier = suppliers[i % len(suppliers)]
            order = Order.objects.create(
                brand=brand,
                supplier=supplier,
                status=status,
                product_type=product_type,
                product_name=product_name,
                quantity=random.choice([100, 250, 500]),
                price_per_unit=Decimal(random.randint(8, 40)),
                delivery_deadline=today + timedelta(days=random.randint(10, 45)),
                materials_provided=i % 2 == 0,
            )
            OrderStatusHistory.objects.create(
                order=order,
                new_status=status,
                user=user,
                notes=f"Seed order {i + 1}",
            )

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return len(SEED_STATUSES)
