"""
Shared enumerations and method constants for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class EntryStatus(str, enum.Enum):
    """Lifecycle of a ledger entry's balance."""
    PENDENTE = "pendente"
    PARCIAL = "parcial"
    PAGO = "pago"
    ATRASADO = "atrasado"
    CANCELADO = "cancelado"


class SourceKind(str, enum.Enum):
    """Where a ledger entry came from, fixed at creation."""
    MANUAL = "manual"
    SALE = "sale"
    INSTALLMENT = "installment"


class EntryType(str, enum.Enum):
    """Direction hint used for sign normalization."""
    ENTRADA = "entrada"
    SAIDA = "saida"
    VENDA = "venda"


# Payment methods are free strings on the wire; these are the
# ones the engine gives meaning to.
CREDIT_METHOD = "prazo"

IMMEDIATE_METHODS = frozenset({
    "dinheiro",
    "cash",
    "pix",
    "card",
    "cartao",
    "cartão",
    "credit_card",
    "debito",
    "debit",
})

SALES_CATEGORY = "Vendas"


def normalize_method(method: str | None) -> str | None:
    if method is None:
        return None
    method = method.strip().lower()
    return method or None


def is_credit_method(method: str | None) -> bool:
    return normalize_method(method) == CREDIT_METHOD
