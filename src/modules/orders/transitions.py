"""Order status transition policy.

``STATUS_TRANSITIONS`` is the single source of truth for legal status
changes.  Each entry lists the rules leaving a status, in the order the
front-end renders them as action buttons.  New statuses are added as new
entries; the evaluator below never branches on a specific status except
for two waiting labels: the materials-dependent one of
``ACEITO_PELA_FACCAO`` and the parent side of ``AGUARDANDO_RETRABALHO``.

Rework is **not** an edge of this graph: a rejected order derives a new
child order (see ``OrderService.create_child_order``), which then follows
the ``rework_only`` rule out of ``AGUARDANDO_RETRABALHO``.

Everything here is pure and side-effect free apart from a warning log when
a status is missing from the table.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import structlog

from modules.orders.constants import TERMINAL_STATES, OrderStatus, Party
from modules.orders.dtos import AvailableTransitionDTO, TransitionResponseDTO
from modules.orders.exceptions import InvalidOrderStatus, TransitionNotAllowed

logger = structlog.get_logger(__name__)

BOTH_PARTIES = (Party.BRAND, Party.SUPPLIER)


@dataclass(frozen=True)
class TransitionRule:
    """One outgoing edge of the order lifecycle graph.

    ``requires_materials``: ``None`` applies to any order, ``True`` only when
    the brand ships the materials, ``False`` only when it does not.
    ``rework_only``: the rule applies only to rework child orders.
    """

    next_status: str
    allowed_roles: tuple[str, ...]
    label: str
    description: str
    requires_confirmation: bool = True
    requires_notes: bool = False
    requires_review: bool = False
    requires_materials: Optional[bool] = None
    rework_only: bool = False

    def applies_to(
        self,
        role: Optional[str],
        materials_provided: Optional[bool],
        is_rework: bool,
    ) -> bool:
        if role is not None and role not in self.allowed_roles:
            return False
        if self.rework_only and not is_rework:
            return False
        if self.requires_materials is None or materials_provided is None:
            return True
        return self.requires_materials == materials_provided

    def to_dto(self) -> AvailableTransitionDTO:
        return AvailableTransitionDTO(
            next_status=self.next_status,
            label=self.label,
            description=self.description,
            requires_confirmation=self.requires_confirmation,
            requires_notes=self.requires_notes,
            requires_review=self.requires_review,
        )


def _cancel_rule(description: str) -> TransitionRule:
    return TransitionRule(
        next_status=OrderStatus.CANCELADO,
        allowed_roles=(Party.BRAND,),
        label="Cancelar Pedido",
        description=description,
        requires_notes=True,
    )


def _accept_rule() -> TransitionRule:
    return TransitionRule(
        next_status=OrderStatus.ACEITO_PELA_FACCAO,
        allowed_roles=(Party.SUPPLIER,),
        label="Aceitar Pedido",
        description="Aceitar este pedido e iniciar o fluxo de produção",
    )


STATUS_TRANSITIONS: Mapping[str, tuple[TransitionRule, ...]] = MappingProxyType(
    {
        OrderStatus.LANCADO_PELA_MARCA: (
            _accept_rule(),
            TransitionRule(
                next_status=OrderStatus.EM_NEGOCIACAO,
                allowed_roles=(Party.SUPPLIER,),
                label="Negociar Condições",
                description="Propor à marca ajustes de prazo ou preço",
                requires_confirmation=False,
                requires_notes=True,
            ),
            TransitionRule(
                next_status=OrderStatus.DISPONIVEL_PARA_OUTRAS,
                allowed_roles=(Party.SUPPLIER,),
                label="Recusar Pedido",
                description="Recusar o pedido e liberá-lo para outras facções",
                requires_notes=True,
            ),
            _cancel_rule("Cancelar o pedido antes do aceite da facção"),
        ),
        OrderStatus.EM_NEGOCIACAO: (
            _accept_rule(),
            TransitionRule(
                next_status=OrderStatus.RECUSADO_PELA_FACCAO,
                allowed_roles=(Party.SUPPLIER,),
                label="Encerrar Negociação",
                description="Recusar o pedido definitivamente após a negociação",
                requires_notes=True,
            ),
            _cancel_rule("Cancelar o pedido durante a negociação"),
        ),
        OrderStatus.DISPONIVEL_PARA_OUTRAS: (
            _accept_rule(),
            _cancel_rule("Retirar o pedido do mercado"),
        ),
        OrderStatus.ACEITO_PELA_FACCAO: (
            TransitionRule(
                next_status=OrderStatus.EM_PREPARACAO_SAIDA_MARCA,
                allowed_roles=(Party.BRAND,),
                requires_materials=True,
                label="Preparar Insumos",
                description="Iniciar preparação dos insumos para envio à facção",
            ),
            TransitionRule(
                next_status=OrderStatus.EM_PRODUCAO,
                allowed_roles=(Party.SUPPLIER,),
                requires_materials=False,
                label="Iniciar Produção",
                description="Iniciar produção sem aguardar insumos da marca",
            ),
        ),
        OrderStatus.EM_PREPARACAO_SAIDA_MARCA: (
            TransitionRule(
                next_status=OrderStatus.EM_TRANSITO_PARA_FACCAO,
                allowed_roles=(Party.BRAND,),
                label="Despachar Insumos",
                description="Confirmar que os insumos foram despachados para a facção",
                requires_notes=True,
            ),
        ),
        OrderStatus.EM_TRANSITO_PARA_FACCAO: (
            TransitionRule(
                next_status=OrderStatus.EM_PREPARACAO_ENTRADA_FACCAO,
                allowed_roles=(Party.SUPPLIER,),
                label="Confirmar Recebimento",
                description="Confirmar que os insumos foram recebidos na facção",
            ),
        ),
        OrderStatus.EM_PREPARACAO_ENTRADA_FACCAO: (
            TransitionRule(
                next_status=OrderStatus.EM_PRODUCAO,
                allowed_roles=(Party.SUPPLIER,),
                label="Iniciar Produção",
                description="Iniciar a produção após conferência dos insumos",
            ),
        ),
        OrderStatus.EM_PRODUCAO: (
            TransitionRule(
                next_status=OrderStatus.PRONTO,
                allowed_roles=(Party.SUPPLIER,),
                label="Produção Concluída",
                description="Marcar a produção como concluída e pronta para envio",
            ),
        ),
        OrderStatus.PRONTO: (
            TransitionRule(
                next_status=OrderStatus.EM_TRANSITO_PARA_MARCA,
                allowed_roles=BOTH_PARTIES,
                label="Marcar Despacho",
                description="Confirmar que o pedido foi despachado para a marca",
                requires_notes=True,
            ),
        ),
        OrderStatus.EM_TRANSITO_PARA_MARCA: (
            TransitionRule(
                next_status=OrderStatus.EM_REVISAO,
                allowed_roles=(Party.BRAND,),
                label="Confirmar Recebimento",
                description=(
                    "Confirmar que o pedido foi recebido e iniciar revisão de qualidade"
                ),
            ),
        ),
        OrderStatus.EM_REVISAO: (
            TransitionRule(
                next_status=OrderStatus.FINALIZADO,
                allowed_roles=(Party.BRAND,),
                label="Aprovar Totalmente",
                description="Aprovar 100% do pedido e finalizar",
                requires_review=True,
            ),
            TransitionRule(
                next_status=OrderStatus.PARCIALMENTE_APROVADO,
                allowed_roles=(Party.BRAND,),
                label="Aprovação Parcial",
                description=(
                    "Aprovar parcialmente com itens rejeitados ou segunda qualidade"
                ),
                requires_notes=True,
                requires_review=True,
            ),
            TransitionRule(
                next_status=OrderStatus.REPROVADO,
                allowed_roles=(Party.BRAND,),
                label="Reprovar",
                description="Reprovar o pedido por problemas de qualidade",
                requires_notes=True,
                requires_review=True,
            ),
        ),
        OrderStatus.PARCIALMENTE_APROVADO: (
            TransitionRule(
                next_status=OrderStatus.FINALIZADO,
                allowed_roles=(Party.BRAND,),
                label="Encerrar Pedido",
                description="Aceitar as peças aprovadas e finalizar sem retrabalho",
            ),
        ),
        OrderStatus.REPROVADO: (
            TransitionRule(
                next_status=OrderStatus.CANCELADO,
                allowed_roles=(Party.BRAND,),
                label="Encerrar sem Retrabalho",
                description="Encerrar o pedido reprovado sem solicitar retrabalho",
                requires_notes=True,
            ),
        ),
        OrderStatus.AGUARDANDO_RETRABALHO: (
            TransitionRule(
                next_status=OrderStatus.EM_PRODUCAO,
                allowed_roles=(Party.SUPPLIER,),
                rework_only=True,
                label="Iniciar Retrabalho",
                description="Iniciar a produção das peças de retrabalho",
            ),
        ),
        OrderStatus.FINALIZADO: (),
        OrderStatus.RECUSADO_PELA_FACCAO: (),
        OrderStatus.CANCELADO: (),
    }
)


WAITING_FOR: Mapping[str, tuple[str, str]] = MappingProxyType(
    {
        OrderStatus.LANCADO_PELA_MARCA: (
            Party.SUPPLIER,
            "Aguardando a Facção aceitar o pedido",
        ),
        OrderStatus.EM_NEGOCIACAO: (
            Party.SUPPLIER,
            "Aguardando a Facção concluir a negociação",
        ),
        OrderStatus.DISPONIVEL_PARA_OUTRAS: (
            Party.SUPPLIER,
            "Aguardando uma Facção aceitar o pedido",
        ),
        OrderStatus.ACEITO_PELA_FACCAO: (
            Party.BRAND,
            "Aguardando a Marca preparar insumos",
        ),
        OrderStatus.EM_PREPARACAO_SAIDA_MARCA: (
            Party.BRAND,
            "Marca preparando insumos para envio",
        ),
        OrderStatus.EM_TRANSITO_PARA_FACCAO: (
            Party.SUPPLIER,
            "Aguardando a Facção confirmar recebimento",
        ),
        OrderStatus.EM_PREPARACAO_ENTRADA_FACCAO: (
            Party.SUPPLIER,
            "Facção conferindo insumos recebidos",
        ),
        OrderStatus.EM_PRODUCAO: (Party.SUPPLIER, "Facção em produção"),
        OrderStatus.PRONTO: (Party.BRAND, "Pronto para despacho"),
        OrderStatus.EM_TRANSITO_PARA_MARCA: (
            Party.BRAND,
            "Aguardando a Marca confirmar recebimento",
        ),
        OrderStatus.EM_REVISAO: (Party.BRAND, "Marca revisando qualidade"),
        OrderStatus.PARCIALMENTE_APROVADO: (
            Party.BRAND,
            "Aguardando a Marca decidir sobre o retrabalho",
        ),
        OrderStatus.REPROVADO: (
            Party.BRAND,
            "Aguardando a Marca decidir sobre o retrabalho",
        ),
        OrderStatus.AGUARDANDO_RETRABALHO: (
            Party.SUPPLIER,
            "Aguardando a Facção executar o retrabalho",
        ),
    }
)

# Leaving through one of these is an exit, not progress.
_EXIT_STATES = frozenset({OrderStatus.CANCELADO})

PARENT_REWORK_LABEL = "Retrabalho em andamento no pedido derivado"


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def rules_for(status: str) -> tuple[TransitionRule, ...]:
    """Return the rules leaving *status* (empty for unknown statuses)."""
    return STATUS_TRANSITIONS.get(status, ())


def _waiting_for(
    status: str, materials_provided: Optional[bool], is_rework: bool
) -> tuple[Optional[str], str]:
    if status == OrderStatus.ACEITO_PELA_FACCAO and materials_provided is False:
        return Party.SUPPLIER, "Aguardando a Facção iniciar produção"
    # The parent of a rework order waits on its child, not on either party.
    if status == OrderStatus.AGUARDANDO_RETRABALHO and not is_rework:
        return None, PARENT_REWORK_LABEL
    return WAITING_FOR.get(status, (None, ""))


def evaluate_transitions(
    status: str,
    role: Optional[str] = None,
    *,
    materials_provided: Optional[bool] = None,
    is_rework: bool = False,
) -> TransitionResponseDTO:
    """Compute what the viewer may do next with an order in *status*.

    ``role=None`` evaluates the table without a party filter.  The result
    is recomputed on every call and depends only on the arguments.
    """
    if status not in STATUS_TRANSITIONS:
        logger.warning("order.transition_table_miss", status=status, role=role)
        return TransitionResponseDTO(
            can_advance=False,
            waiting_for=None,
            waiting_label="",
            transitions=[],
        )

    available = [
        rule
        for rule in STATUS_TRANSITIONS[status]
        if rule.applies_to(role, materials_provided, is_rework)
    ]
    waiting_for, waiting_label = (
        (None, "")
        if is_terminal(status)
        else _waiting_for(status, materials_provided, is_rework)
    )
    return TransitionResponseDTO(
        can_advance=any(rule.next_status not in _EXIT_STATES for rule in available),
        waiting_for=waiting_for,
        waiting_label=waiting_label,
        transitions=[rule.to_dto() for rule in available],
    )


def find_transition(
    status: str,
    next_status: str,
    role: str,
    *,
    materials_provided: Optional[bool] = None,
    is_rework: bool = False,
) -> TransitionRule:
    """Resolve the rule allowing *role* to move an order to *next_status*.

    Raises:
        InvalidOrderStatus: no edge ``status -> next_status`` exists.
        TransitionNotAllowed: the edge exists but not for this role/order.
    """
    candidates = [r for r in rules_for(status) if r.next_status == next_status]
    if not candidates:
        raise InvalidOrderStatus(
            f"Cannot transition from {status} to {next_status}."
        )
    for rule in candidates:
        if rule.applies_to(role, materials_provided, is_rework):
            return rule
    raise TransitionNotAllowed(
        f"{role} is not allowed to move the order from {status} to {next_status}."
    )
