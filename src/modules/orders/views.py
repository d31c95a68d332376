"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.companies.repositories.django_repository import CompanyDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.constants import Party
from modules.orders.dtos import (
    CreateChildOrderDTO,
    CreateOrderDTO,
    CreateReviewDTO,
    UpdateOrderStatusDTO,
)
from modules.orders.exceptions import (
    BrandRequired,
    ConfirmationRequired,
    InvalidCounterparty,
    InvalidOrderStatus,
    InvalidReviewQuantities,
    NotesRequired,
    OrderAccessDenied,
    OrderNotFound,
    OrderNotReworkable,
    ReviewRequired,
    TransitionNotAllowed,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateChildOrderSerializer,
    CreateOrderSerializer,
    CreateReviewSerializer,
    OrderListSerializer,
    OrderReviewSerializer,
    OrderSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService

DOMAIN_ERROR_STATUS = {
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    OrderAccessDenied: status.HTTP_403_FORBIDDEN,
    TransitionNotAllowed: status.HTTP_403_FORBIDDEN,
    BrandRequired: status.HTTP_403_FORBIDDEN,
    InvalidOrderStatus: status.HTTP_400_BAD_REQUEST,
    ConfirmationRequired: status.HTTP_400_BAD_REQUEST,
    NotesRequired: status.HTTP_400_BAD_REQUEST,
    ReviewRequired: status.HTTP_400_BAD_REQUEST,
    InvalidReviewQuantities: status.HTTP_400_BAD_REQUEST,
    InvalidCounterparty: status.HTTP_400_BAD_REQUEST,
    OrderNotReworkable: status.HTTP_409_CONFLICT,
}
DOMAIN_ERRORS = tuple(DOMAIN_ERROR_STATUS)


def domain_error_response(exc: Exception) -> Response:
    return Response({"detail": str(exc)}, status=DOMAIN_ERROR_STATUS[type(exc)])


def validation_error_response(exc: PydanticValidationError) -> Response:
    return Response(
        {"detail": exc.errors(include_url=False, include_context=False)},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["display_id", "product_name", "brand__legal_name"]
    ordering_fields = ["created_at", "delivery_deadline", "total_value", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            company_repository=CompanyDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "update_status":
            throttle_scope = "order_status_update"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        return self._service.list_orders(self.request.user)

    def _detail(self, order: Order) -> dict:
        role = self._service.resolve_role(order, self.request.user)
        return OrderSerializer(order, context={"role": role}).data

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateOrderDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            order = self._service.create_order(dto, request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        out = OrderSerializer(order, context={"role": Party.BRAND})
        return Response(out.data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Only orders where the user's companies take part (plus open
        marketplace orders for suppliers).  Filtering and ordering are
        handled by ``filter_backends``.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, request.user)
            data = self._detail(order)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(data)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"])
    def transitions(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/transitions/"""
        try:
            result = self._service.get_available_transitions(pk, request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(result.to_json_dict())

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateOrderStatusDTO(**serializer.validated_data)

        try:
            # Serialised under the role held before the move: a committed
            # transition must not be answered with an access error.
            role = self._service.resolve_role(
                self._service.get_order(pk, request.user), request.user
            )
            order = self._service.update_status(pk, request.user, dto)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(OrderSerializer(order, context={"role": role}).data)

    # ------------------------------------------------------------------
    # Quality review
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"])
    def reviews(self, request: Request, pk: str | None = None) -> Response:
        """GET|POST /api/v1/orders/{pk}/reviews/"""
        if request.method == "GET":
            try:
                reviews = self._service.list_reviews(pk, request.user)
            except DOMAIN_ERRORS as exc:
                return domain_error_response(exc)
            return Response(OrderReviewSerializer(reviews, many=True).data)

        serializer = CreateReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateReviewDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            review = self._service.create_review(pk, request.user, dto)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(
            OrderReviewSerializer(review).data, status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=["get"], url_path="stats/reviews")
    def review_stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/reviews/"""
        stats = self._service.get_review_stats(request.user)
        return Response(stats.to_json_dict())

    # ------------------------------------------------------------------
    # Rework
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="child-orders")
    def child_orders(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/child-orders/"""
        serializer = CreateChildOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            dto = CreateChildOrderDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return validation_error_response(exc)

        try:
            child = self._service.create_child_order(pk, request.user, dto)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        out = OrderSerializer(child, context={"role": Party.BRAND})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def hierarchy(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/hierarchy/"""
        try:
            tree = self._service.get_order_hierarchy(pk, request.user)
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        return Response(
            {
                "current": OrderListSerializer(tree.current).data,
                "root": OrderListSerializer(tree.root).data,
                "parent": (
                    OrderListSerializer(tree.parent).data if tree.parent else None
                ),
                "children": OrderListSerializer(tree.children, many=True).data,
            }
        )
