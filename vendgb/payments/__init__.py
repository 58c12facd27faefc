"""
Module 'payments' (feature-first): point d'entrée public.
Réunit client Stripe, métadonnées des intents et services (broker, confirmation, webhook).
"""

from .metadata import build_intent_metadata, order_id_from_intent, intent_from_event
from .stripe_client import require_stripe, create_payment_intent, retrieve_payment_intent, parse_event
from .service import create_intent_for_order, confirm_payment, handle_webhook_event

__all__ = [
    # metadata
    "build_intent_metadata",
    "order_id_from_intent",
    "intent_from_event",
    # stripe
    "require_stripe",
    "create_payment_intent",
    "retrieve_payment_intent",
    "parse_event",
    # services
    "create_intent_for_order",
    "confirm_payment",
    "handle_webhook_event",
]
