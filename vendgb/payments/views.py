import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from vendgb import config
from vendgb.payments import service as payments_service
from vendgb.payments import stripe_client
from vendgb.payments.models import ConfirmPaymentRequest, CreateIntentRequest
from vendgb.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payment", tags=["Payments API"])

# module vendgb.payments.views
@router.post("/create-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_intent(payload: CreateIntentRequest, idempotency_key: Optional[str] = Header(default=None)):
    """
    Crée un PaymentIntent pour une commande existante.
    - Entrée JSON: {"orderId": "...", "amount": 17.98, "currency": "gbp"} (amount indicatif)
    - Réponse: {clientSecret, paymentIntentId, amount (pence), currency}
    - Erreurs: 404 commande inconnue, 409 déjà payée, 503 Stripe non configuré
    """
    return payments_service.create_intent_for_order(
        payload.order_id,
        amount=payload.amount,
        currency=payload.currency,
        idempotency_key=idempotency_key,
    )

@router.post("/confirm")
def confirm_payment(payload: ConfirmPaymentRequest):
    """
    Alternative au webhook: vérifie l'intent chez Stripe puis passe la commande en 'paid'.
    - Réponse: {success: true, alreadyPaid, order, paymentIntent}
    - Paiement non abouti: 400 {success: false, status, detail}
    """
    return payments_service.confirm_payment(payload.payment_intent_id, payload.order_id)

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe (PaymentIntent).
    - Signature: vérifiée sur le body brut (stripe-signature) si STRIPE_WEBHOOK_SECRET est défini
    - Réponse: {"received": true}; 400 si signature/payload invalide
    """
    payload = await request.body()
    event = stripe_client.parse_event(payload, request.headers.get("stripe-signature"))
    return payments_service.handle_webhook_event(event)

@router.get("/config")
def payment_config():
    """Clé publique Stripe et devise pour initialiser la feuille de paiement de l'app."""
    return {
        "publishableKey": config.STRIPE_PUBLISHABLE_KEY,
        "currency": config.CURRENCY,
        "enabled": config.payments_configured(),
    }
