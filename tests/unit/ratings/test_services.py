"""Unit tests for RatingService."""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import OrderAccessDenied
from modules.ratings.dtos import CreateRatingDTO
from modules.ratings.exceptions import RatingAlreadyExists, RatingNotAllowed
from modules.ratings.models import Rating
from modules.ratings.repositories.django_repository import RatingDjangoRepository
from modules.ratings.services import RatingService

pytestmark = pytest.mark.unit


@pytest.fixture()
def service(order_service):
    return RatingService(
        rating_repository=RatingDjangoRepository(), order_service=order_service
    )


class TestRateOrder:
    def test_brand_rates_supplier(self, service, make_order, brand, supplier, brand_user):
        order = make_order(OrderStatus.FINALIZADO)

        rating = service.rate_order(
            str(order.id), brand_user, CreateRatingDTO(score=4, comment=" Ótimo acabamento ")
        )

        assert rating.from_company_id == brand.id
        assert rating.to_company_id == supplier.id
        assert rating.comment == "Ótimo acabamento"
        supplier.refresh_from_db()
        assert supplier.average_rating == Decimal("4.00")
        assert supplier.rating_count == 1

    def test_supplier_rates_brand(self, service, make_order, brand, supplier_user):
        order = make_order(OrderStatus.FINALIZADO)

        rating = service.rate_order(str(order.id), supplier_user, CreateRatingDTO(score=5))

        assert rating.to_company_id == brand.id

    def test_average_is_recomputed(self, service, make_order, supplier, brand_user):
        for score in (5, 4, 4):
            order = make_order(OrderStatus.FINALIZADO)
            service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=score))

        supplier.refresh_from_db()
        assert supplier.average_rating == Decimal("4.33")
        assert supplier.rating_count == 3

    def test_one_rating_per_side(self, service, make_order, brand_user):
        order = make_order(OrderStatus.FINALIZADO)
        service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=3))

        with pytest.raises(RatingAlreadyExists):
            service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=5))

    def test_concurrent_duplicate_maps_to_already_exists(
        self, service, make_order, brand_user, monkeypatch
    ):
        order = make_order(OrderStatus.FINALIZADO)
        service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=3))
        # The other request passed the existence check before this one committed.
        monkeypatch.setattr(service._repo, "exists", lambda *args: False)

        with pytest.raises(RatingAlreadyExists):
            service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=5))

        assert Rating.objects.filter(order=order).count() == 1

    def test_only_finalized_orders(self, service, make_order, brand_user):
        order = make_order(OrderStatus.EM_PRODUCAO)

        with pytest.raises(RatingNotAllowed):
            service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=3))

    def test_outsider_denied(self, service, make_order, outsider):
        order = make_order(OrderStatus.FINALIZADO)

        with pytest.raises(OrderAccessDenied):
            service.rate_order(str(order.id), outsider, CreateRatingDTO(score=3))

    def test_list_ratings(self, service, make_order, brand_user, supplier_user):
        order = make_order(OrderStatus.FINALIZADO)
        service.rate_order(str(order.id), brand_user, CreateRatingDTO(score=3))
        service.rate_order(str(order.id), supplier_user, CreateRatingDTO(score=5))

        assert len(service.list_ratings(str(order.id), brand_user)) == 2


def test_score_out_of_range():
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        CreateRatingDTO(score=6)
