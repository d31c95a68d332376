"""Order domain constants.

Status values are stored as plain strings; labels are the Portuguese
names shown to brands and suppliers.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    LANCADO_PELA_MARCA = "LANCADO_PELA_MARCA", "Lançado pela marca"
    EM_NEGOCIACAO = "EM_NEGOCIACAO", "Em negociação"
    DISPONIVEL_PARA_OUTRAS = "DISPONIVEL_PARA_OUTRAS", "Disponível para outras facções"
    ACEITO_PELA_FACCAO = "ACEITO_PELA_FACCAO", "Aceito pela facção"
    EM_PREPARACAO_SAIDA_MARCA = "EM_PREPARACAO_SAIDA_MARCA", "Preparação de insumos"
    EM_TRANSITO_PARA_FACCAO = "EM_TRANSITO_PARA_FACCAO", "Em trânsito para a facção"
    EM_PREPARACAO_ENTRADA_FACCAO = (
        "EM_PREPARACAO_ENTRADA_FACCAO",
        "Conferência de insumos",
    )
    EM_PRODUCAO = "EM_PRODUCAO", "Em produção"
    PRONTO = "PRONTO", "Pronto"
    EM_TRANSITO_PARA_MARCA = "EM_TRANSITO_PARA_MARCA", "Em trânsito para a marca"
    EM_REVISAO = "EM_REVISAO", "Em revisão"
    PARCIALMENTE_APROVADO = "PARCIALMENTE_APROVADO", "Parcialmente aprovado"
    REPROVADO = "REPROVADO", "Reprovado"
    AGUARDANDO_RETRABALHO = "AGUARDANDO_RETRABALHO", "Aguardando retrabalho"
    FINALIZADO = "FINALIZADO", "Finalizado"
    RECUSADO_PELA_FACCAO = "RECUSADO_PELA_FACCAO", "Recusado pela facção"
    CANCELADO = "CANCELADO", "Cancelado"


class Party(models.TextChoices):
    BRAND = "BRAND", "Marca"
    SUPPLIER = "SUPPLIER", "Facção"


class OrderOrigin(models.TextChoices):
    ORIGINAL = "ORIGINAL", "Original"
    REWORK = "REWORK", "Retrabalho"


class ReviewType(models.TextChoices):
    QUALITY_CHECK = "QUALITY_CHECK", "Revisão de qualidade"
    REWORK_CHECK = "REWORK_CHECK", "Revisão de retrabalho"


class ReviewResult(models.TextChoices):
    APPROVED = "APPROVED", "Aprovado"
    PARTIAL = "PARTIAL", "Parcial"
    REJECTED = "REJECTED", "Reprovado"


TERMINAL_STATES: frozenset[str] = frozenset(
    {
        OrderStatus.FINALIZADO,
        OrderStatus.CANCELADO,
        OrderStatus.RECUSADO_PELA_FACCAO,
    }
)

# Suppliers only see the technical sheet after accepting the order.
PRE_ACCEPT_STATES: frozenset[str] = frozenset(
    {
        OrderStatus.LANCADO_PELA_MARCA,
        OrderStatus.EM_NEGOCIACAO,
        OrderStatus.DISPONIVEL_PARA_OUTRAS,
    }
)

# Parents that may spawn a rework child order.
REWORKABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.REPROVADO, OrderStatus.PARCIALMENTE_APROVADO}
)

REVIEW_RESULT_STATUS: dict[str, str] = {
    ReviewResult.APPROVED: OrderStatus.FINALIZADO,
    ReviewResult.PARTIAL: OrderStatus.PARCIALMENTE_APROVADO,
    ReviewResult.REJECTED: OrderStatus.REPROVADO,
}

DISPLAY_ID_PREFIX = "TX"

# Orders without a supplier in these states are open to every supplier.
MARKETPLACE_STATES: frozenset[str] = frozenset(
    {OrderStatus.LANCADO_PELA_MARCA, OrderStatus.DISPONIVEL_PARA_OUTRAS}
)
