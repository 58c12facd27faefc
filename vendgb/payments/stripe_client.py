"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Les erreurs du SDK sont traduites en erreurs métier (vendgb.errors) ici et nulle part ailleurs.
"""
from typing import Any, Dict, Optional
import json
import logging

import stripe

from vendgb import config
from vendgb.errors import PaymentServiceUnavailable, SignatureVerificationError, ValidationError

logger = logging.getLogger(__name__)

# module vendgb.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY.
    - Sans clé: PaymentServiceUnavailable (503), aucun appel réseau tenté.
    """
    if not config.payments_configured():
        logger.error("Stripe non configuré (STRIPE_SECRET_KEY manquant)")
        raise PaymentServiceUnavailable()
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def _translate(exc: Exception, action: str) -> Exception:
    if isinstance(exc, stripe.InvalidRequestError):
        return ValidationError(getattr(exc, "user_message", None) or f"Invalid payment request ({action})")
    # Connexion, authentification, quota, erreurs API: service indisponible pour l'utilisateur
    return PaymentServiceUnavailable()

def create_payment_intent(
    *,
    amount: int,
    currency: str,
    metadata: Dict[str, str],
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Crée un PaymentIntent Stripe.
    - amount: montant en pence (unité mineure)
    - metadata: {"orderId": "...", "customerName": "..."} pour la traçabilité
    - idempotency_key: une requête rejouée renvoie le même intent
    Retour: dict simple (to_dict récursif) de l'intent (id, client_secret, amount, currency, status, metadata)
    """
    require_stripe()
    options: Dict[str, Any] = {}
    if idempotency_key:
        options["idempotency_key"] = idempotency_key
    try:
        intent = stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
            **options,
        )
    except stripe.StripeError as e:
        logger.exception("stripe_client.create_payment_intent failed order_id=%s", metadata.get("orderId"))
        raise _translate(e, "create") from e
    return intent.to_dict()

def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    """Lit l'état courant d'un PaymentIntent chez Stripe (source de vérité du paiement)."""
    require_stripe()
    try:
        intent = stripe.PaymentIntent.retrieve(payment_intent_id)
    except stripe.StripeError as e:
        logger.exception("stripe_client.retrieve_payment_intent failed id=%s", payment_intent_id)
        raise _translate(e, "retrieve") from e
    return intent.to_dict()

def parse_event(payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
    """
    Parse un événement webhook.
    - STRIPE_WEBHOOK_SECRET défini: signature vérifiée via Webhook.construct_event.
    - Sinon: JSON brut accepté (développement local).
    """
    secret = config.STRIPE_WEBHOOK_SECRET
    if secret:
        if not sig_header:
            raise SignatureVerificationError("Missing stripe-signature header")
        try:
            event = stripe.Webhook.construct_event(payload, sig_header, secret)
        except stripe.SignatureVerificationError as e:
            logger.warning("stripe_client.parse_event bad signature: %s", e)
            raise SignatureVerificationError() from e
        except ValueError as e:
            raise ValidationError("Invalid webhook payload") from e
        # Event Stripe -> dict simple: la couche service ne manipule jamais d'objets SDK
        return event.to_dict()
    try:
        event = json.loads(payload or b"{}")
    except ValueError as e:
        raise ValidationError("Invalid webhook payload") from e
    if not isinstance(event, dict):
        raise ValidationError("Invalid webhook payload")
    return event
