"""
Métadonnées Stripe d'un PaymentIntent (orderId, customerName).
"""
from typing import Any, Dict, Optional

from vendgb.orders.models import Order

# module vendgb.payments.metadata
def build_intent_metadata(order: Order) -> Dict[str, str]:
    return {"orderId": order.id, "customerName": order.customer.name or ""}

def order_id_from_intent(intent: Dict[str, Any]) -> Optional[str]:
    """orderId attaché à l'intent lors de sa création (None si absent)."""
    meta = (intent or {}).get("metadata") or {}
    order_id = meta.get("orderId") or meta.get("order_id")
    return str(order_id) if order_id else None

def intent_from_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """Retourne event.data.object (le PaymentIntent) ou {}."""
    return ((event or {}).get("data") or {}).get("object") or {}
