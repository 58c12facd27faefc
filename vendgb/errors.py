"""
Exceptions métier du pipeline commande/paiement.

Levées par les couches service/repository; traduites en réponses HTTP par
vendgb.app_setup.exceptions (un handler par famille).
"""
from typing import Optional


class VendError(Exception):
    """Base de toutes les erreurs métier. status_code = code HTTP par défaut."""
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class ValidationError(VendError):
    """Entrée invalide ou manquante (faute de l'appelant, pas de retry)."""
    status_code = 400


class NotFoundError(VendError):
    status_code = 404


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__("Order not found")
        self.order_id = order_id


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: str):
        super().__init__("Product not found")
        self.product_id = product_id


class ConflictError(VendError):
    """État courant incompatible avec l'opération (ex: commande déjà payée)."""
    status_code = 409


class PaymentServiceUnavailable(VendError):
    """Stripe non configuré ou injoignable."""
    status_code = 503

    def __init__(self, detail: str = "Payments are temporarily unavailable"):
        super().__init__(detail)


class PaymentDeclined(VendError):
    """Le fournisseur n'a pas validé le paiement pour cette tentative."""
    status_code = 400

    def __init__(self, status: str, detail: str, payment_intent_id: Optional[str] = None):
        super().__init__(detail)
        self.status = status
        self.payment_intent_id = payment_intent_id


class SignatureVerificationError(VendError):
    """Signature webhook invalide: toujours rejetée, jamais d'écriture."""
    status_code = 400

    def __init__(self, detail: str = "Invalid webhook signature"):
        super().__init__(detail)


class PersistenceError(VendError):
    """Échec d'E/S sur la base (propagé en 5xx)."""
    status_code = 500

    def __init__(self, detail: str = "Storage failure"):
        super().__init__(detail)
