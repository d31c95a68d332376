from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.companies.models import Company, CompanyType, CompanyUser, MemberRole
from modules.companies.repositories.django_repository import CompanyDjangoRepository
from modules.core.validators import compute_check_digits
from modules.orders.constants import OrderStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

BRAND_CNPJ = "112223330001" + compute_check_digits("112223330001")
SUPPLIER_CNPJ = "223334440001" + compute_check_digits("223334440001")
OTHER_SUPPLIER_CNPJ = "334445550001" + compute_check_digits("334445550001")


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and companies
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    def _make(username: str):
        return get_user_model().objects.create_user(
            username=username,
            email=f"{username}@example.com",
            password="s3cret-pass",
        )

    return _make


def _company(type_: str, name: str, document: str) -> Company:
    return Company.objects.create(
        type=type_,
        legal_name=name,
        document=document,
        email=f"contato@{name.lower().replace(' ', '')}.com.br",
        city="São Paulo",
        state="SP",
    )


@pytest.fixture()
def brand():
    return _company(CompanyType.BRAND, "Marca Exemplo", BRAND_CNPJ)


@pytest.fixture()
def supplier():
    return _company(CompanyType.SUPPLIER, "Facção Costura", SUPPLIER_CNPJ)


@pytest.fixture()
def other_supplier():
    return _company(CompanyType.SUPPLIER, "Facção Ponto Fino", OTHER_SUPPLIER_CNPJ)


@pytest.fixture()
def brand_user(make_user, brand):
    user = make_user("marca")
    CompanyUser.objects.create(user=user, company=brand, role=MemberRole.OWNER)
    return user


@pytest.fixture()
def supplier_user(make_user, supplier):
    user = make_user("faccao")
    CompanyUser.objects.create(user=user, company=supplier, role=MemberRole.OWNER)
    return user


@pytest.fixture()
def other_supplier_user(make_user, other_supplier):
    user = make_user("faccao2")
    CompanyUser.objects.create(user=user, company=other_supplier, role=MemberRole.OWNER)
    return user


@pytest.fixture()
def outsider(make_user):
    return make_user("outsider")


@pytest.fixture()
def brand_client(brand_user):
    client = APIClient()
    client.force_authenticate(user=brand_user)
    return client


@pytest.fixture()
def supplier_client(supplier_user):
    client = APIClient()
    client.force_authenticate(user=supplier_user)
    return client


@pytest.fixture()
def other_supplier_client(other_supplier_user):
    client = APIClient()
    client.force_authenticate(user=other_supplier_user)
    return client


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        company_repository=CompanyDjangoRepository(),
    )


@pytest.fixture()
def make_order(brand, supplier):
    """Create an order directly in the given status (bypasses the workflow)."""

    def _make(status=OrderStatus.LANCADO_PELA_MARCA, **overrides):
        values = {
            "brand": brand,
            "supplier": supplier,
            "status": status,
            "product_type": "Camiseta",
            "product_name": "Camiseta Básica Algodão",
            "description": "Malha 30.1 penteada, gola careca",
            "quantity": 100,
            "price_per_unit": Decimal("12.50"),
            "delivery_deadline": date(2026, 12, 15),
            "materials_provided": True,
            "observations": "Etiqueta interna bordada",
        }
        values.update(overrides)
        return Order.objects.create(**values)

    return _make
