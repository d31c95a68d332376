"""Rating API views."""

from __future__ import annotations

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.companies.repositories.django_repository import CompanyDjangoRepository
from modules.orders.exceptions import OrderAccessDenied, OrderNotFound
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.ratings.dtos import CreateRatingDTO
from modules.ratings.exceptions import RatingAlreadyExists, RatingNotAllowed
from modules.ratings.repositories.django_repository import RatingDjangoRepository
from modules.ratings.serializers import CreateRatingSerializer, RatingSerializer
from modules.ratings.services import RatingService


class OrderRatingsView(APIView):
    """GET|POST /api/v1/orders/{order_id}/ratings/"""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = RatingService(
            rating_repository=RatingDjangoRepository(),
            order_service=OrderService(
                order_repository=OrderDjangoRepository(),
                company_repository=CompanyDjangoRepository(),
            ),
        )

    def get(self, request: Request, order_id: str) -> Response:
        try:
            ratings = self._service.list_ratings(order_id, request.user)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except OrderAccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(RatingSerializer(ratings, many=True).data)

    def post(self, request: Request, order_id: str) -> Response:
        serializer = CreateRatingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = CreateRatingDTO(**serializer.validated_data)

        try:
            rating = self._service.rate_order(order_id, request.user, dto)
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."}, status=status.HTTP_404_NOT_FOUND
            )
        except OrderAccessDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except RatingNotAllowed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except RatingAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(RatingSerializer(rating).data, status=status.HTTP_201_CREATED)
