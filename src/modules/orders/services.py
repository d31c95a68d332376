"""Order service layer (Use Cases).

Orchestrates order creation, the status workflow between brand and
supplier, quality reviews and rework derivation.  All write operations
are atomic: the service defines the unit-of-work boundary.

Business rules enforced:
- Only members of an active BRAND company launch orders; the optional
  supplier must be an active SUPPLIER.
- Every status change is resolved through ``transitions.find_transition``
  for the acting party; confirmation, notes and review requirements of
  the rule are enforced here.
- Review-gated transitions are only taken by submitting a review.
- Rework never moves an order backwards: it derives a child order.
- History is recorded on every status change.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from modules.orders.constants import (
    MARKETPLACE_STATES,
    REVIEW_RESULT_STATUS,
    REWORKABLE_STATES,
    OrderOrigin,
    OrderStatus,
    Party,
    ReviewResult,
)
from modules.orders.dtos import ReviewStatsDTO
from modules.orders.events import (
    OrderCreated,
    OrderFinalized,
    OrderReviewed,
    OrderStatusChanged,
    ReworkOrderCreated,
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
)
from modules.orders.models import Order
from modules.orders.transitions import evaluate_transitions, find_transition

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.companies.models import Company, CompanyUser
    from modules.companies.repositories.interfaces import ICompanyRepository
    from modules.orders.dtos import (
        CreateChildOrderDTO,
        CreateOrderDTO,
        CreateReviewDTO,
        TransitionResponseDTO,
        UpdateOrderStatusDTO,
    )
    from modules.orders.models import OrderReview
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

# Leaving the order through these paths stores the notes as the reason.
_REASON_STATUSES = frozenset(
    {
        OrderStatus.DISPONIVEL_PARA_OUTRAS,
        OrderStatus.RECUSADO_PELA_FACCAO,
        OrderStatus.REPROVADO,
        OrderStatus.CANCELADO,
    }
)


def classify_review(approved: int, rejected: int, second_quality: int) -> str:
    """Map review quantities to a ``ReviewResult``."""
    if rejected == 0 and second_quality == 0:
        return ReviewResult.APPROVED
    if approved == 0:
        return ReviewResult.REJECTED
    return ReviewResult.PARTIAL


def _percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 1)


@dataclass(frozen=True)
class OrderHierarchy:
    current: Order
    root: Order
    parent: Optional[Order]
    children: List[Order]


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        company_repository: ICompanyRepository,
    ) -> None:
        self._order_repo = order_repository
        self._company_repo = company_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, user: Any) -> Order:
        """Launch a new order on behalf of a brand.

        Raises:
            InvalidCounterparty: brand/supplier missing, inactive or of the
                wrong type.
            BrandRequired: the user is not a member of the brand.
        """
        log = logger.bind(brand_id=str(dto.brand_id), user_id=user.pk)
        log.info("order.creation_started")

        brand = self._company_repo.get_by_id(str(dto.brand_id))
        if not brand or not brand.is_brand or not brand.is_active:
            raise InvalidCounterparty(f"Brand {dto.brand_id} is not an active brand.")
        if not self._company_repo.get_membership(brand.id, user.pk):
            raise BrandRequired("Only members of the brand can create its orders.")

        supplier = None
        if dto.supplier_id is not None:
            supplier = self._company_repo.get_by_id(str(dto.supplier_id))
            if not supplier or not supplier.is_supplier or not supplier.is_active:
                raise InvalidCounterparty(
                    f"Supplier {dto.supplier_id} is not an active supplier."
                )

        order = Order(
            brand=brand,
            supplier=supplier,
            status=OrderStatus.LANCADO_PELA_MARCA,
            product_type=dto.product_type,
            product_name=dto.product_name,
            description=dto.description,
            quantity=dto.quantity,
            price_per_unit=dto.price_per_unit,
            delivery_deadline=dto.delivery_deadline,
            materials_provided=dto.materials_provided,
            observations=dto.observations,
        )
        order = self._order_repo.save(order)
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                display_id=order.display_id,
                brand_id=brand.id,
                supplier_id=supplier.id if supplier else None,
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.LANCADO_PELA_MARCA,
            notes="Order created",
            user=user,
        )

        log.info("order.created", order_id=str(order.id), display_id=order.display_id)
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_status(
        self, order_id: str, user: Any, dto: UpdateOrderStatusDTO
    ) -> Order:
        """Move an order to ``dto.status`` on behalf of *user*.

        Acquires a row-level lock before resolving the rule so concurrent
        requests cannot both advance the same order.

        Raises:
            OrderNotFound: order does not exist.
            OrderAccessDenied: user belongs to neither party.
            InvalidOrderStatus: no edge to ``dto.status``.
            TransitionNotAllowed: the edge exists but not for this party.
            ReviewRequired: the edge is taken by submitting a review.
            ConfirmationRequired / NotesRequired: rule requirements unmet.
        """
        order = self._lock(order_id)
        role = self.resolve_role(order, user)

        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=dto.status,
            role=role,
        )

        try:
            rule = find_transition(
                order.status,
                dto.status,
                role,
                materials_provided=order.materials_provided,
                is_rework=order.is_rework,
            )
        except InvalidOrderStatus:
            log.warning("order.invalid_transition")
            raise

        if rule.requires_review:
            raise ReviewRequired(
                f"Moving to {dto.status} requires submitting a quality review."
            )
        if rule.requires_confirmation and not dto.confirmed:
            raise ConfirmationRequired(f"'{rule.label}' must be confirmed.")
        if rule.requires_notes and not dto.notes:
            raise NotesRequired(f"'{rule.label}' requires notes.")

        self._apply_transition(order, rule.next_status, user, role, notes=dto.notes)
        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order.id))

    @transaction.atomic
    def create_review(
        self, order_id: str, user: Any, dto: CreateReviewDTO
    ) -> OrderReview:
        """Record the brand's quality review and apply its outcome.

        The result (APPROVED / PARTIAL / REJECTED) selects one of the
        review-gated transitions out of ``EM_REVISAO``.

        Raises:
            BrandRequired: the user is not on the brand side.
            InvalidOrderStatus: the order is not under review.
            InvalidReviewQuantities: quantities do not add up.
            NotesRequired: partial approval / rejection without notes.
        """
        order = self._lock(order_id)
        role = self.resolve_role(order, user)
        if role != Party.BRAND:
            raise BrandRequired("Only the brand can review an order.")
        if order.status != OrderStatus.EM_REVISAO:
            raise InvalidOrderStatus(
                f"Order must be in {OrderStatus.EM_REVISAO} to be reviewed."
            )

        self._check_review_quantities(dto)

        result = classify_review(
            dto.approved_quantity, dto.rejected_quantity, dto.second_quality_quantity
        )
        rule = find_transition(
            order.status,
            REVIEW_RESULT_STATUS[result],
            role,
            materials_provided=order.materials_provided,
            is_rework=order.is_rework,
        )
        notes = dto.notes.strip()
        if rule.requires_notes and not notes:
            raise NotesRequired(f"'{rule.label}' requires notes.")

        review = self._order_repo.add_review(
            order,
            user,
            {
                "review_type": dto.review_type,
                "result": result,
                "total_quantity": dto.total_quantity,
                "approved_quantity": dto.approved_quantity,
                "rejected_quantity": dto.rejected_quantity,
                "second_quality_quantity": dto.second_quality_quantity,
                "notes": notes,
            },
            [item.model_dump() for item in dto.rejected_items],
            [
                {**item.model_dump(), "original_unit_value": order.price_per_unit}
                for item in dto.second_quality_items
            ],
        )

        order.total_review_count += 1
        order.approval_count += dto.approved_quantity
        order.rejection_count += dto.rejected_quantity
        order.second_quality_count += dto.second_quality_quantity
        order.add_domain_event(
            OrderReviewed(
                aggregate_id=order.id,
                display_id=order.display_id,
                result=result,
                approved_quantity=dto.approved_quantity,
                rejected_quantity=dto.rejected_quantity,
                second_quality_quantity=dto.second_quality_quantity,
            )
        )

        history_notes = f"Review completed: {result}"
        if notes:
            history_notes = f"{history_notes} - {notes}"
        self._apply_transition(
            order,
            rule.next_status,
            user,
            role,
            notes=notes,
            history_notes=history_notes,
        )

        logger.info(
            "order.reviewed",
            order_id=str(order.id),
            review_id=str(review.id),
            result=result,
        )
        return review

    @transaction.atomic
    def create_child_order(
        self, order_id: str, user: Any, dto: CreateChildOrderDTO
    ) -> Order:
        """Derive a rework order from a rejected or partially approved one.

        The child keeps both parties and the product, carries no price and
        starts in ``AGUARDANDO_RETRABALHO``; the parent moves there too.

        Raises:
            BrandRequired: the user is not on the brand side.
            OrderNotReworkable: the parent is not rejected / partially approved.
        """
        parent = self._lock(order_id)
        role = self.resolve_role(parent, user)
        if role != Party.BRAND:
            raise BrandRequired("Only the brand can request rework.")
        if parent.status not in REWORKABLE_STATES:
            raise OrderNotReworkable(
                f"Rework cannot be requested for an order in {parent.status}."
            )

        revision = self._order_repo.next_revision_number(parent)
        deadline = dto.delivery_deadline or (
            timezone.localdate()
            + timedelta(days=settings.REWORK_DEFAULT_DEADLINE_DAYS)
        )

        child = Order(
            display_id=Order.rework_display_id(parent.base_display_id, revision),
            brand_id=parent.brand_id,
            supplier_id=parent.supplier_id,
            status=OrderStatus.AGUARDANDO_RETRABALHO,
            product_type=parent.product_type,
            product_name=parent.product_name,
            description=dto.description or parent.description,
            quantity=dto.quantity,
            price_per_unit=Decimal("0.00"),
            delivery_deadline=deadline,
            materials_provided=False,
            observations=dto.observations,
            parent_order=parent,
            revision_number=revision,
            origin=OrderOrigin.REWORK,
        )
        child.add_domain_event(
            ReworkOrderCreated(
                aggregate_id=child.id,
                display_id=child.display_id,
                parent_id=parent.id,
                revision_number=revision,
            )
        )
        self._order_repo.save(child)
        self._order_repo.add_history(
            order_id=child.id,
            status=OrderStatus.AGUARDANDO_RETRABALHO,
            notes=f"Rework order created from {parent.display_id}",
            user=user,
        )

        self._apply_transition(
            parent,
            OrderStatus.AGUARDANDO_RETRABALHO,
            user,
            role,
            notes="",
            history_notes=f"Rework requested: {child.display_id}",
        )

        logger.info(
            "order.rework_created",
            order_id=str(parent.id),
            child_id=str(child.id),
            revision=revision,
        )
        return self._order_repo.get_by_id(str(child.id)) or child

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user: Any) -> Order:
        """Retrieve an order visible to *user*.

        Raises:
            OrderNotFound: the order does not exist.
            OrderAccessDenied: user belongs to neither party.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        self.resolve_role(order, user)
        return order

    def list_orders(self, user: Any) -> QuerySet:
        """Orders where the user's companies are brand or supplier.

        Supplier members also see open marketplace orders.
        """
        memberships = self._memberships(user)
        return self._order_repo.visible_to(
            [m.company_id for m in memberships],
            include_marketplace=self._active_supplier(memberships) is not None,
        )

    def get_available_transitions(
        self, order_id: str, user: Any
    ) -> TransitionResponseDTO:
        order = self.get_order(order_id, user)
        role = self.resolve_role(order, user)
        return evaluate_transitions(
            order.status,
            role,
            materials_provided=order.materials_provided,
            is_rework=order.is_rework,
        )

    def list_reviews(self, order_id: str, user: Any) -> List[OrderReview]:
        order = self.get_order(order_id, user)
        return self._order_repo.list_reviews(order.id)

    def get_order_hierarchy(self, order_id: str, user: Any) -> OrderHierarchy:
        order = self.get_order(order_id, user)
        root = order
        while root.parent_order is not None:
            root = root.parent_order
        return OrderHierarchy(
            current=order,
            root=root,
            parent=order.parent_order,
            children=self._order_repo.children(order),
        )

    def get_review_stats(self, user: Any) -> ReviewStatsDTO:
        """Review metrics over the original orders of the user's brands."""
        brand_ids = [
            m.company_id for m in self._memberships(user) if m.company.is_brand
        ]
        orders = self._order_repo.list(
            {"brand_id__in": brand_ids, "origin": OrderOrigin.ORIGINAL}
        )
        totals = orders.aggregate(
            total=Count("id"),
            reviewed=Count("id", filter=Q(total_review_count__gt=0)),
            second_quality=Sum("second_quality_count"),
        )
        with_rework = orders.filter(child_orders__isnull=False).distinct().count()
        first_time = orders.filter(
            total_review_count=1,
            status=OrderStatus.FINALIZADO,
            child_orders__isnull=True,
        ).count()

        reviewed = totals["reviewed"]
        return ReviewStatsDTO(
            total_orders=totals["total"],
            reviewed_orders=reviewed,
            orders_with_rework=with_rework,
            second_quality_pieces=totals["second_quality"] or 0,
            first_time_approval_rate=_percentage(first_time, reviewed),
            rework_rate=_percentage(with_rework, reviewed),
        )

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    def resolve_role(self, order: Order, user: Any) -> str:
        """Return the party *user* acts as on *order*.

        Raises:
            OrderAccessDenied: user belongs to neither party.
        """
        memberships = self._memberships(user)
        company_ids = {m.company_id for m in memberships}
        if order.brand_id in company_ids:
            return Party.BRAND
        if order.supplier_id is not None:
            if order.supplier_id in company_ids:
                return Party.SUPPLIER
        elif self._is_marketplace(order) and self._active_supplier(memberships):
            return Party.SUPPLIER
        raise OrderAccessDenied(f"User has no access to order {order.id}.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock(self, order_id: str) -> Order:
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _memberships(self, user: Any) -> List[CompanyUser]:
        return self._company_repo.memberships_for_user(user.pk)

    @staticmethod
    def _active_supplier(memberships: List[CompanyUser]) -> Optional[Company]:
        for membership in memberships:
            company = membership.company
            if company.is_supplier and company.is_active:
                return company
        return None

    @staticmethod
    def _is_marketplace(order: Order) -> bool:
        return order.supplier_id is None and order.status in MARKETPLACE_STATES

    def _apply_transition(
        self,
        order: Order,
        new_status: str,
        user: Any,
        role: str,
        notes: str,
        history_notes: Optional[str] = None,
    ) -> None:
        old_status = order.status

        if new_status == OrderStatus.DISPONIVEL_PARA_OUTRAS:
            order.supplier = None
        elif role == Party.SUPPLIER and self._is_marketplace(order):
            # Any supplier move off the marketplace other than refusing it
            # (accepting, negotiating) claims the order for that supplier.
            supplier = self._active_supplier(self._memberships(user))
            if supplier is None:
                raise InvalidCounterparty("User has no active supplier company.")
            order.supplier = supplier
        if new_status in _REASON_STATUSES and notes:
            order.rejection_reason = notes

        order.status = new_status
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                display_id=order.display_id,
                old_status=old_status,
                new_status=new_status,
                actor_role=role,
            )
        )
        if new_status == OrderStatus.FINALIZADO:
            order.add_domain_event(
                OrderFinalized(
                    aggregate_id=order.id,
                    display_id=order.display_id,
                    brand_id=order.brand_id,
                    supplier_id=order.supplier_id,
                )
            )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=history_notes if history_notes is not None else notes,
            old_status=old_status,
            user=user,
        )

    def _check_review_quantities(self, dto: CreateReviewDTO) -> None:
        counted = (
            dto.approved_quantity + dto.rejected_quantity + dto.second_quality_quantity
        )
        if counted != dto.total_quantity:
            raise InvalidReviewQuantities(
                f"Approved + rejected + second quality ({counted}) must equal "
                f"the total quantity ({dto.total_quantity})."
            )
        if sum(i.quantity for i in dto.rejected_items) > dto.rejected_quantity:
            raise InvalidReviewQuantities(
                "Rejected items exceed the rejected quantity."
            )
        if sum(i.quantity for i in dto.second_quality_items) > (
            dto.second_quality_quantity
        ):
            raise InvalidReviewQuantities(
                "Second-quality items exceed the second-quality quantity."
            )
