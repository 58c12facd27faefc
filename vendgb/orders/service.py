"""Couche service des commandes.
Rôles:
- Order Builder: transformer un panier (productId + qty) en commande 'new' persistée,
  avec des prix toujours re-résolus depuis le catalogue (jamais ceux du client).
- Transition automatique new/created -> paid, appliquée une seule fois (compare-and-swap en base).
- Override admin: n'importe quel statut, sans contrôle du graphe nominal.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import uuid4
import logging

from vendgb.catalogue import service as catalogue_service
from vendgb.errors import ConflictError, OrderNotFound, ValidationError
from vendgb.orders import repository
from vendgb.orders.models import (
    CheckoutItem,
    CheckoutRequest,
    Order,
    OrderCreateRequest,
    OrderLine,
    order_from_row,
    order_to_row,
)
from vendgb.orders.status import (
    INITIAL_STATUS,
    PAYABLE_STATUSES,
    OrderStatus,
    check_auto_transition,
    is_nominal,
    parse_status,
)
from vendgb.utils.money import line_total, round2

logger = logging.getLogger(__name__)

_PAYABLE = [s.value for s in PAYABLE_STATUSES]


def _now() -> datetime:
    return datetime.now(timezone.utc)

def _validate_items(items: List[CheckoutItem]) -> None:
    if not items:
        raise ValidationError("No items provided")
    for it in items:
        if it.qty < 1:
            raise ValidationError(f"Invalid quantity {it.qty} for product '{it.product_id}'")

def price_lines(items: List[CheckoutItem]) -> Tuple[List[OrderLine], float]:
    """
    Résout chaque ligne contre le catalogue courant et calcule le total.
    - Produit inconnu, inactif ou indisponible -> ValidationError.
    - Quantité cumulée > maxOrderQty (si > 0) -> ValidationError.
    - total = round2(Σ qty × prix résolu); les prix envoyés par le client sont ignorés.
    """
    _validate_items(items)
    products = catalogue_service.resolve_many(it.product_id for it in items)

    requested: Dict[str, int] = {}
    for it in items:
        requested[it.product_id] = requested.get(it.product_id, 0) + it.qty

    for product_id, qty in requested.items():
        product = products.get(product_id)
        if product is None:
            raise ValidationError(f"Unknown product '{product_id}'")
        if not product.orderable:
            raise ValidationError(f"Product '{product.name}' is not available")
        if product.max_order_qty > 0 and qty > product.max_order_qty:
            raise ValidationError(f"Maximum {product.max_order_qty} of '{product.name}' per order")

    lines: List[OrderLine] = []
    total = Decimal("0")
    for it in items:
        product = products[it.product_id]
        amount = line_total(it.qty, product.unit_price)
        total += amount
        lines.append(OrderLine(
            product_id=product.id,
            name=product.name,
            qty=it.qty,
            unit_price=product.unit_price,
            line_total=round2(amount),
        ))
    return lines, round2(total)

def _quantities(items) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for it in items:
        totals[it.product_id] = totals.get(it.product_id, 0) + it.qty
    return totals

def _replay(existing: dict, request: CheckoutRequest, idempotency_key: str) -> Order:
    """Renvoie la commande déjà créée pour la clé; un corps différent est seulement signalé."""
    order = order_from_row(existing)
    if _quantities(order.items) != _quantities(request.items):
        logger.warning(
            "orders.build idempotency_key=%s reused with different items id=%s",
            idempotency_key, order.id,
        )
    return order

def build_order(request: CheckoutRequest, idempotency_key: Optional[str] = None) -> Order:
    """
    Crée une commande 'new' et la persiste (une écriture).
    - idempotency_key: une requête rejouée renvoie la commande déjà créée
      (articles différents: avertissement journalisé, la première commande reste la référence).
    """
    if idempotency_key:
        existing = repository.find_by_idempotency_key(idempotency_key)
        if existing:
            logger.info("orders.build replay idempotency_key=%s id=%s", idempotency_key, existing.get("id"))
            return _replay(existing, request, idempotency_key)

    lines, total = price_lines(request.items)
    now = _now()
    order = Order(
        id=str(uuid4()),
        customer=request.customer,
        address=request.address,
        items=lines,
        notes=request.notes or "",
        total=total,
        status=INITIAL_STATUS.value,
        created_at=now,
        updated_at=now,
    )
    try:
        row = repository.insert_order(order_to_row(order, idempotency_key))
    except ConflictError:
        # Deux requêtes concurrentes avec la même clé: la première a gagné
        if idempotency_key:
            existing = repository.find_by_idempotency_key(idempotency_key)
            if existing:
                return _replay(existing, request, idempotency_key)
        raise
    logger.info("orders.build created id=%s total=%.2f items=%s", order.id, total, len(lines))
    return order_from_row(row)

def create_order(request: OrderCreateRequest, idempotency_key: Optional[str] = None) -> Order:
    """Variante POST /api/orders: même builder, le total client n'est qu'indicatif."""
    order = build_order(request.to_checkout(), idempotency_key=idempotency_key)
    if request.total is not None and round2(request.total) != order.total:
        logger.warning(
            "orders.create client total ignored id=%s client=%.2f server=%.2f",
            order.id, request.total, order.total,
        )
    return order

def get_order(order_id: str) -> Order:
    row = repository.get_order(order_id)
    if not row:
        raise OrderNotFound(order_id)
    return order_from_row(row)

def list_orders(status: Optional[str] = None, limit: int = 100) -> List[Order]:
    status_value = parse_status(status).value if status else None
    return [order_from_row(r) for r in repository.list_orders(status=status_value, limit=limit)]

def mark_paid(order_id: str, payment_intent_id: str) -> Tuple[Order, bool]:
    """
    Transition automatique new/created -> paid, exactement une fois.
    Retourne (commande, appliquée). Une commande déjà 'paid' renvoie appliquée=False
    sans erreur; tout autre statut lève ConflictError.
    """
    row = repository.update_where_status(
        order_id,
        {"status": OrderStatus.PAID.value, "payment_intent_id": payment_intent_id, "updated_at": _now().isoformat()},
        _PAYABLE,
    )
    if row:
        logger.info("orders.mark_paid id=%s payment_intent_id=%s", order_id, payment_intent_id)
        return order_from_row(row), True

    current = get_order(order_id)
    if parse_status(current.status) is OrderStatus.PAID:
        if current.payment_intent_id and current.payment_intent_id != payment_intent_id:
            logger.warning(
                "orders.mark_paid already paid with another intent id=%s stored=%s received=%s",
                order_id, current.payment_intent_id, payment_intent_id,
            )
        else:
            logger.info("orders.mark_paid already paid id=%s", order_id)
        return current, False
    check_auto_transition(current.status, OrderStatus.PAID.value)
    # Statut payable relu mais CAS perdu: état changé entre les deux lectures
    raise ConflictError(f"Order {order_id} changed concurrently, retry")

def attach_payment_intent(order_id: str, payment_intent_id: str) -> Optional[Order]:
    """Mémorise l'intent Stripe tant que la commande est encore payable."""
    row = repository.update_where_status(
        order_id,
        {"payment_intent_id": payment_intent_id, "updated_at": _now().isoformat()},
        _PAYABLE,
    )
    if not row:
        logger.warning("orders.attach_payment_intent skipped id=%s (no longer payable)", order_id)
        return None
    return order_from_row(row)

def admin_set_status(order_id: str, status: str) -> Order:
    """Override manuel: tout statut de l'énumération, hors graphe automatique."""
    target = parse_status(status)
    current = get_order(order_id)
    if not is_nominal(parse_status(current.status), target):
        logger.warning("orders.admin_set_status override id=%s %s -> %s", order_id, current.status, target.value)
    row = repository.update_order(order_id, {"status": target.value, "updated_at": _now().isoformat()})
    if not row:
        raise OrderNotFound(order_id)
    return order_from_row(row)

def delete_order(order_id: str) -> None:
    """Seules les commandes 'cancelled' peuvent être supprimées."""
    current = get_order(order_id)
    if parse_status(current.status) is not OrderStatus.CANCELLED:
        raise ConflictError("Only cancelled orders can be deleted")
    if not repository.delete_order_if_status(order_id, OrderStatus.CANCELLED.value):
        raise ConflictError("Order status changed, not deleted")
    logger.info("orders.delete id=%s", order_id)
