"""Couche service des paiements.
Rôles:
- Payment Intent Broker: ouvrir un PaymentIntent Stripe pour le total canonique d'une commande.
- Confirmation directe: relire l'intent chez Stripe et passer la commande en 'paid' s'il a réussi.
- Webhook: appliquer la même transition sur payment_intent.succeeded.
La transition new -> paid est appliquée une seule fois (compare-and-swap dans orders.repository).
"""
from typing import Any, Dict, Optional
import logging

from vendgb import config
from vendgb.errors import ConflictError, OrderNotFound, PaymentDeclined, ValidationError
from vendgb.orders import service as orders_service
from vendgb.orders.status import OrderStatus, PAYABLE_STATUSES, parse_status
from vendgb.payments import metadata as payments_metadata
from vendgb.payments import stripe_client
from vendgb.utils.money import pence_to_price, price_to_pence

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"

# Messages distincts: chacun déclenche une action différente côté app
DECLINE_MESSAGES = {
    "requires_action": "Payment requires additional authentication",
    "requires_confirmation": "Payment requires additional authentication",
    "processing": "Payment is still processing",
}
DEFAULT_DECLINE_MESSAGE = "Payment failed"


def decline_message(status: Optional[str]) -> str:
    return DECLINE_MESSAGES.get(status or "", DEFAULT_DECLINE_MESSAGE)

def _intent_summary(intent: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": intent.get("id"),
        "status": intent.get("status"),
        "amount": intent.get("amount"),
        "currency": intent.get("currency"),
    }

def create_intent_for_order(
    order_id: str,
    amount: Optional[float] = None,
    currency: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Ouvre un PaymentIntent pour la commande.
    - Montant relu sur la commande (jamais celui du client), converti en pence.
    - 404 commande absente, 409 déjà payée, 400 commande non payable, 503 Stripe indisponible.
    Retour: {clientSecret, paymentIntentId, amount, currency}
    """
    stripe_client.require_stripe()
    order = orders_service.get_order(order_id)

    status = parse_status(order.status)
    if status is OrderStatus.PAID:
        raise ConflictError("Order already paid")
    if status not in PAYABLE_STATUSES:
        raise ValidationError(f"Order is {status.value} and cannot be paid")
    if currency and currency.strip().lower() != config.CURRENCY:
        raise ValidationError(f"Unsupported currency '{currency}'")

    amount_pence = price_to_pence(order.total)
    if amount_pence <= 0:
        raise ValidationError("Order total must be positive")
    if amount is not None and price_to_pence(amount) != amount_pence:
        logger.warning(
            "payments.create_intent client amount ignored order_id=%s client=%s server=%s",
            order.id, amount, pence_to_price(amount_pence),
        )

    stripe_key = f"pi-{order.id}-{amount_pence}"
    if idempotency_key:
        stripe_key = f"{stripe_key}-{idempotency_key}"

    intent = stripe_client.create_payment_intent(
        amount=amount_pence,
        currency=config.CURRENCY,
        metadata=payments_metadata.build_intent_metadata(order),
        idempotency_key=stripe_key,
    )
    orders_service.attach_payment_intent(order.id, intent.get("id"))
    logger.info("payments.create_intent order_id=%s intent_id=%s amount=%s", order.id, intent.get("id"), amount_pence)
    return {
        "clientSecret": intent.get("client_secret"),
        "paymentIntentId": intent.get("id"),
        "amount": intent.get("amount", amount_pence),
        "currency": intent.get("currency", config.CURRENCY),
    }

def _settle_intent(order, intent: Dict[str, Any], source: str):
    """
    Vérifie un intent Stripe contre la commande puis applique new -> paid.
    Partagé par la confirmation directe et le webhook:
    - orderId des métadonnées différent: ValidationError.
    - statut différent de 'succeeded': PaymentDeclined.
    - montant différent du total en pence: ValidationError.
    Retour: (commande, appliqué) tel que renvoyé par orders_service.mark_paid.
    """
    intent_id = intent.get("id")
    intent_order_id = payments_metadata.order_id_from_intent(intent)
    if intent_order_id != order.id:
        logger.warning(
            "payments.%s intent/order mismatch intent_id=%s order_id=%s intent_order_id=%s",
            source, intent_id, order.id, intent_order_id,
        )
        raise ValidationError("Payment intent does not belong to this order")

    status = intent.get("status")
    if status != SUCCEEDED:
        logger.info("payments.%s declined order_id=%s intent_id=%s status=%s", source, order.id, intent_id, status)
        raise PaymentDeclined(status or "unknown", decline_message(status), intent_id)

    expected = price_to_pence(order.total)
    amount = intent.get("amount")
    if amount is None or int(amount) != expected:
        logger.error(
            "payments.%s amount mismatch order_id=%s intent=%s expected=%s",
            source, order.id, amount, expected,
        )
        raise ValidationError("Payment amount does not match order total")

    return orders_service.mark_paid(order.id, intent_id)

def confirm_payment(payment_intent_id: str, order_id: str) -> Dict[str, Any]:
    """
    Confirmation directe (appelée par l'app après la feuille de paiement).
    - Intent non 'succeeded': PaymentDeclined, la commande n'est pas modifiée.
    - Intent d'une autre commande ou montant différent: ValidationError.
    - Deuxième appel sur une commande déjà payée: no-op (alreadyPaid=True).
    """
    order = orders_service.get_order(order_id)
    intent = stripe_client.retrieve_payment_intent(payment_intent_id)

    paid_order, applied = _settle_intent(order, intent, "confirm")
    return {
        "success": True,
        "alreadyPaid": not applied,
        "order": paid_order.to_api(),
        "paymentIntent": _intent_summary(intent),
    }

def handle_webhook_event(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Traite un événement Stripe déjà authentifié.
    - payment_intent.succeeded: mêmes vérifications que la confirmation directe,
      puis commande -> 'paid' (no-op si déjà payée).
    - payment_intent.payment_failed: journalisé, aucun changement d'état.
    - Autres types: ignorés.
    Renvoie toujours {"received": True} sauf erreur de stockage (5xx, Stripe relivrera).
    """
    event_type = (event or {}).get("type")
    intent = payments_metadata.intent_from_event(event)
    intent_id = intent.get("id")
    order_id = payments_metadata.order_id_from_intent(intent)

    if event_type == "payment_intent.succeeded":
        if not order_id:
            logger.warning("payments.webhook succeeded without orderId intent_id=%s", intent_id)
            return {"received": True}
        try:
            order = orders_service.get_order(order_id)
            _, applied = _settle_intent(order, intent, "webhook")
            logger.info("payments.webhook succeeded order_id=%s intent_id=%s applied=%s", order_id, intent_id, applied)
        except (OrderNotFound, ConflictError, ValidationError, PaymentDeclined) as e:
            # Rejouer l'événement ne changera rien: on accuse réception
            logger.warning("payments.webhook not applied order_id=%s intent_id=%s: %s", order_id, intent_id, e.detail)
    elif event_type == "payment_intent.payment_failed":
        error = intent.get("last_payment_error") or {}
        logger.warning(
            "payments.webhook payment_failed order_id=%s intent_id=%s reason=%s",
            order_id, intent_id, error.get("message") or error.get("code"),
        )
    else:
        logger.debug("payments.webhook ignored type=%s", event_type)
    return {"received": True}
