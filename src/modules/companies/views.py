"""Company API views.

Exposes the ``CompanyService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.companies.dtos import AddMemberDTO, CreateCompanyDTO, UpdateCompanyDTO
from modules.companies.exceptions import (
    CompanyAlreadyExists,
    CompanyNotFound,
    CompanyPermissionDenied,
    MembershipAlreadyExists,
    UserNotFound,
)
from modules.companies.filters import CompanyFilter
from modules.companies.models import Company
from modules.companies.repositories.django_repository import CompanyDjangoRepository
from modules.companies.serializers import (
    AddMemberSerializer,
    CompanyMembershipSerializer,
    CompanySerializer,
    CreateCompanySerializer,
    UpdateCompanySerializer,
)
from modules.companies.services import CompanyService

NOT_FOUND = {"detail": "Company not found."}


class CompanyViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Company onboarding and membership.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    filterset_class = CompanyFilter
    search_fields = ["legal_name", "trade_name", "document", "city"]
    ordering_fields = ["legal_name", "created_at", "average_rating"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Company.objects.alive()
    serializer_class = CompanySerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CompanyService(repository=CompanyDjangoRepository())

    def get_queryset(self):
        return self._service.list_companies()

    # ------------------------------------------------------------------
    # Retrieve
    # ------------------------------------------------------------------

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/companies/{pk}/"""
        try:
            company = self._service.get_company(pk)
        except CompanyNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(CompanySerializer(company).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/companies/"""
        serializer = CreateCompanySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateCompanyDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            company = self._service.create_company(dto, owner=request.user)
        except CompanyAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            CompanySerializer(company).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/companies/{pk}/"""
        serializer = UpdateCompanySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = UpdateCompanyDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            company = self._service.update_company(pk, dto, user=request.user)
        except CompanyNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except CompanyPermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)

        return Response(CompanySerializer(company).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/companies/{pk}/"""
        try:
            self._service.delete_company(pk, user=request.user)
        except CompanyNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except CompanyPermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def members(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/companies/{pk}/members/"""
        serializer = AddMemberSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = AddMemberDTO(**serializer.validated_data)

        try:
            membership = self._service.add_member(pk, dto, user=request.user)
        except CompanyNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except CompanyPermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except UserNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except MembershipAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)

        return Response(
            CompanyMembershipSerializer(membership).data,
            status=status.HTTP_201_CREATED,
        )
