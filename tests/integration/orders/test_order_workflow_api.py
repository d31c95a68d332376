"""Integration tests for the Order API.

Covers:
- Launch via POST /api/v1/orders/ and party checks.
- Visibility of GET /api/v1/orders/ and detail for both parties.
- Technical sheet protection before acceptance.
- GET /api/v1/orders/{id}/transitions/ (camelCase policy payload).
- PATCH /api/v1/orders/{id}/status/ with domain error mapping.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.companies.models import CompanyUser
from modules.orders.constants import OrderStatus
from modules.orders.models import OrderStatusHistory
from modules.orders.services import OrderService

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


def _status_url(order):
    return f"{URL}{order.id}/status/"


class TestCreateOrder:
    def _payload(self, brand, **overrides):
        payload = {
            "brand_id": str(brand.id),
            "product_type": "Moletom",
            "product_name": "Moletom Canguru Flanelado",
            "quantity": 120,
            "price_per_unit": "18.40",
            "delivery_deadline": "2026-12-10",
            "materials_provided": True,
            "description": "Ficha técnica v2",
        }
        payload.update(overrides)
        return payload

    def test_brand_launches_order(self, brand_client, brand, supplier):
        response = brand_client.post(
            URL, self._payload(brand, supplier_id=str(supplier.id)), format="json"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == OrderStatus.LANCADO_PELA_MARCA
        assert data["display_id"].startswith("TX-")
        assert data["total_value"] == "2208.00"
        assert data["supplier"]["id"] == str(supplier.id)
        assert data["status_history"][0]["notes"] == "Order created"

    def test_supplier_cannot_launch_for_brand(self, supplier_client, brand):
        response = supplier_client.post(URL, self._payload(brand), format="json")

        assert response.status_code == 403

    def test_invalid_payload(self, brand_client, brand):
        response = brand_client.post(
            URL, self._payload(brand, quantity=0), format="json"
        )

        assert response.status_code == 400
        assert "quantity" in response.json()

    def test_requires_authentication(self, api_client, brand):
        response = api_client.post(URL, self._payload(brand), format="json")

        assert response.status_code == 401


class TestReadOrders:
    def test_list_shows_only_visible_orders(
        self, supplier_client, other_supplier_client, make_order
    ):
        assigned = make_order()
        open_order = make_order(OrderStatus.DISPONIVEL_PARA_OUTRAS, supplier=None)

        mine = supplier_client.get(URL).json()
        others = other_supplier_client.get(URL).json()

        assert {o["id"] for o in mine["results"]} == {
            str(assigned.id),
            str(open_order.id),
        }
        assert [o["id"] for o in others["results"]] == [str(open_order.id)]

    def test_list_filters_by_status(self, brand_client, make_order):
        make_order()
        in_production = make_order(OrderStatus.EM_PRODUCAO)

        response = brand_client.get(URL, {"status": OrderStatus.EM_PRODUCAO})

        assert [o["id"] for o in response.json()["results"]] == [str(in_production.id)]

    def test_retrieve_by_outsider_forbidden(self, other_supplier_client, make_order):
        order = make_order()

        response = other_supplier_client.get(f"{URL}{order.id}/")

        assert response.status_code == 403

    def test_retrieve_unknown_returns_404(self, brand_client):
        response = brand_client.get(f"{URL}{uuid4()}/")

        assert response.status_code == 404

    def test_supplier_cannot_see_technical_sheet_before_accepting(
        self, supplier_client, brand_client, make_order
    ):
        order = make_order()

        supplier_view = supplier_client.get(f"{URL}{order.id}/").json()
        brand_view = brand_client.get(f"{URL}{order.id}/").json()

        assert supplier_view["technical_sheet_protected"] is True
        assert supplier_view["description"] == ""
        assert supplier_view["observations"] == ""
        assert brand_view["technical_sheet_protected"] is False
        assert brand_view["description"] == "Malha 30.1 penteada, gola careca"

    def test_supplier_sees_technical_sheet_after_accepting(
        self, supplier_client, make_order
    ):
        order = make_order(OrderStatus.ACEITO_PELA_FACCAO)

        data = supplier_client.get(f"{URL}{order.id}/").json()

        assert data["technical_sheet_protected"] is False
        assert data["observations"] == "Etiqueta interna bordada"


class TestTransitionsEndpoint:
    def test_supplier_view(self, supplier_client, make_order):
        order = make_order()

        response = supplier_client.get(f"{URL}{order.id}/transitions/")

        assert response.status_code == 200
        data = response.json()
        assert data["canAdvance"] is True
        assert data["waitingFor"] == "SUPPLIER"
        assert data["waitingLabel"] == "Aguardando a Facção aceitar o pedido"
        assert data["transitions"][0] == {
            "nextStatus": OrderStatus.ACEITO_PELA_FACCAO,
            "label": "Aceitar Pedido",
            "description": "Aceitar este pedido e iniciar o fluxo de produção",
            "requiresConfirmation": True,
            "requiresNotes": False,
            "requiresReview": False,
        }

    def test_brand_waiting_on_supplier(self, brand_client, make_order):
        order = make_order(OrderStatus.EM_PRODUCAO)

        data = brand_client.get(f"{URL}{order.id}/transitions/").json()

        assert data == {
            "canAdvance": False,
            "waitingFor": "SUPPLIER",
            "waitingLabel": "Facção em produção",
            "transitions": [],
        }

    def test_terminal_order(self, brand_client, make_order):
        order = make_order(OrderStatus.FINALIZADO)

        data = brand_client.get(f"{URL}{order.id}/transitions/").json()

        assert data["canAdvance"] is False
        assert data["waitingFor"] is None

    def test_waiting_flips_after_supplier_acts(
        self, brand_client, supplier_client, make_order
    ):
        order = make_order(OrderStatus.EM_PRODUCAO)
        assert (
            brand_client.get(f"{URL}{order.id}/transitions/").json()["waitingFor"]
            == "SUPPLIER"
        )

        supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.PRONTO, "confirmed": True},
            format="json",
        )

        data = brand_client.get(f"{URL}{order.id}/transitions/").json()
        assert data["waitingFor"] == "BRAND"
        assert data["canAdvance"] is True


class TestUpdateStatus:
    def test_supplier_accepts(self, supplier_client, make_order):
        order = make_order()

        response = supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.ACEITO_PELA_FACCAO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.ACEITO_PELA_FACCAO
        assert OrderStatusHistory.objects.filter(
            order=order, new_status=OrderStatus.ACEITO_PELA_FACCAO
        ).exists()

    def test_confirmation_required(self, supplier_client, make_order):
        order = make_order()

        response = supplier_client.patch(
            _status_url(order), {"status": OrderStatus.ACEITO_PELA_FACCAO}, format="json"
        )

        assert response.status_code == 400

    def test_notes_required(self, brand_client, make_order):
        order = make_order()

        response = brand_client.patch(
            _status_url(order),
            {"status": OrderStatus.CANCELADO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 400

    def test_wrong_party_forbidden(self, brand_client, make_order):
        order = make_order(OrderStatus.EM_PRODUCAO)

        response = brand_client.patch(
            _status_url(order),
            {"status": OrderStatus.PRONTO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 403

    def test_missing_edge_bad_request(self, supplier_client, make_order):
        order = make_order(OrderStatus.EM_PRODUCAO)

        response = supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.FINALIZADO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 400

    def test_unknown_status_value(self, supplier_client, make_order):
        order = make_order()

        response = supplier_client.patch(
            _status_url(order), {"status": "ARQUIVADO"}, format="json"
        )

        assert response.status_code == 400
        assert "status" in response.json()

    def test_brand_cancels_with_notes(self, brand_client, make_order):
        order = make_order()

        response = brand_client.patch(
            _status_url(order),
            {
                "status": OrderStatus.CANCELADO,
                "confirmed": True,
                "notes": "Coleção adiada",
            },
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["rejection_reason"] == "Coleção adiada"

    def test_unknown_order_not_found(self, brand_client):
        response = brand_client.patch(
            f"{URL}{uuid4()}/status/",
            {"status": OrderStatus.PRONTO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 404


class TestMarketplaceOrders:
    """Orders launched without a supplier, open to any active supplier."""

    def test_any_supplier_accepts_and_is_assigned(
        self, other_supplier_client, other_supplier, make_order
    ):
        order = make_order(supplier=None)

        response = other_supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.ACEITO_PELA_FACCAO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 200
        order.refresh_from_db()
        assert order.status == OrderStatus.ACEITO_PELA_FACCAO
        assert order.supplier_id == other_supplier.id

    def test_negotiating_supplier_keeps_access(
        self, supplier_client, supplier, other_supplier_client, make_order
    ):
        order = make_order(supplier=None)

        response = supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.EM_NEGOCIACAO, "notes": "Prazo maior"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.EM_NEGOCIACAO
        order.refresh_from_db()
        assert order.supplier_id == supplier.id

        transitions = supplier_client.get(f"{URL}{order.id}/transitions/")
        assert transitions.status_code == 200
        assert [t["nextStatus"] for t in transitions.json()["transitions"]] == [
            OrderStatus.ACEITO_PELA_FACCAO,
            OrderStatus.RECUSADO_PELA_FACCAO,
        ]
        assert other_supplier_client.get(f"{URL}{order.id}/").status_code == 403

        accepted = supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.ACEITO_PELA_FACCAO, "confirmed": True},
            format="json",
        )
        assert accepted.status_code == 200
        order.refresh_from_db()
        assert order.status == OrderStatus.ACEITO_PELA_FACCAO
        assert order.supplier_id == supplier.id

    def test_refusal_keeps_order_open_to_others(
        self, supplier_client, other_supplier_client, other_supplier, make_order
    ):
        order = make_order(supplier=None)

        response = supplier_client.patch(
            _status_url(order),
            {
                "status": OrderStatus.DISPONIVEL_PARA_OUTRAS,
                "confirmed": True,
                "notes": "Sem capacidade este mês",
            },
            format="json",
        )

        assert response.status_code == 200
        order.refresh_from_db()
        assert order.status == OrderStatus.DISPONIVEL_PARA_OUTRAS
        assert order.supplier_id is None

        accepted = other_supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.ACEITO_PELA_FACCAO, "confirmed": True},
            format="json",
        )
        assert accepted.status_code == 200
        order.refresh_from_db()
        assert order.supplier_id == other_supplier.id

    def test_assigned_supplier_refusal_releases_order(
        self, supplier_client, other_supplier_client, make_order
    ):
        order = make_order()

        response = supplier_client.patch(
            _status_url(order),
            {
                "status": OrderStatus.DISPONIVEL_PARA_OUTRAS,
                "confirmed": True,
                "notes": "Máquinas paradas",
            },
            format="json",
        )

        assert response.status_code == 200
        order.refresh_from_db()
        assert order.supplier_id is None
        assert other_supplier_client.get(f"{URL}{order.id}/").status_code == 200

    def test_committed_move_is_reported_even_if_access_changes(
        self, supplier_client, supplier_user, make_order, monkeypatch
    ):
        order = make_order()
        original = OrderService.update_status

        def update_then_leave_company(service, *args, **kwargs):
            updated = original(service, *args, **kwargs)
            CompanyUser.objects.filter(user=supplier_user).delete()
            return updated

        monkeypatch.setattr(OrderService, "update_status", update_then_leave_company)

        response = supplier_client.patch(
            _status_url(order),
            {"status": OrderStatus.ACEITO_PELA_FACCAO, "confirmed": True},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.ACEITO_PELA_FACCAO
