"""
Machine d'états des commandes.

    new/created -> paid -> accepted -> preparing -> out_for_delivery -> delivered
    new -> cancelled
    new -> failed

Transitions automatiques (confirmation de paiement): uniquement new/created -> paid.
L'admin peut forcer n'importe quel état (appels téléphoniques, remboursements).
"""
from enum import Enum
from typing import Dict, FrozenSet

from vendgb.errors import ConflictError, ValidationError


class OrderStatus(str, Enum):
    NEW = "new"
    CREATED = "created"  # alias historique de NEW, accepté en lecture
    PAID = "paid"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    FAILED = "failed"


INITIAL_STATUS = OrderStatus.NEW
PAYABLE_STATUSES: FrozenSet[OrderStatus] = frozenset({OrderStatus.NEW, OrderStatus.CREATED})
TERMINAL_STATUSES: FrozenSet[OrderStatus] = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.FAILED}
)

# Graphe nominal (informatif pour le back-office; l'admin n'y est pas soumis)
WORKFLOW: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.FAILED}),
    OrderStatus.CREATED: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED, OrderStatus.FAILED}),
    OrderStatus.PAID: frozenset({OrderStatus.ACCEPTED, OrderStatus.PREPARING}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PREPARING}),
    OrderStatus.PREPARING: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.FAILED: frozenset(),
}

AUTOMATED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.NEW: frozenset({OrderStatus.PAID}),
    OrderStatus.CREATED: frozenset({OrderStatus.PAID}),
}


def parse_status(value: str) -> OrderStatus:
    """Convertit une chaîne en OrderStatus; 'created' est normalisé en 'new'."""
    try:
        status = OrderStatus(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus if s is not OrderStatus.CREATED)
        raise ValidationError(f"Invalid status '{value}'. Allowed: {allowed}")
    return OrderStatus.NEW if status is OrderStatus.CREATED else status


def is_payable(status: str) -> bool:
    return parse_status(status) in PAYABLE_STATUSES


def can_auto_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in AUTOMATED_TRANSITIONS.get(current, frozenset())


def check_auto_transition(current: str, target: str) -> OrderStatus:
    """Lève ConflictError si la transition automatique n'est pas autorisée."""
    src, dst = parse_status(current), parse_status(target)
    if not can_auto_transition(src, dst):
        raise ConflictError(f"Automated transition {src.value} -> {dst.value} is not allowed")
    return dst


def is_nominal(current: OrderStatus, target: OrderStatus) -> bool:
    """True si l'override admin suit le graphe nominal (sinon simple journalisation)."""
    return target in WORKFLOW.get(current, frozenset())
