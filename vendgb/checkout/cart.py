"""
Logique panier pure (pas de Stripe, pas de DB).

Le panier est un agrégat transitoire côté client: il accumule les produits
choisis et produit la liste `items` envoyée à POST /api/checkout.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from vendgb.catalogue.models import Product
from vendgb.utils.money import line_total, round2

# module vendgb.checkout.cart
@dataclass
class CartLine:
    product_id: str
    name: str
    unit_price: float
    quantity: int


class Cart:
    def __init__(self) -> None:
        self._lines: List[CartLine] = []

    @property
    def items(self) -> List[CartLine]:
        return list(self._lines)

    def _find(self, product_id: str) -> Optional[int]:
        for idx, line in enumerate(self._lines):
            if line.product_id == product_id:
                return idx
        return None

    def add(self, product: Product) -> CartLine:
        """
        Ajoute une unité du produit.
        - Déjà présent: quantity += 1, le prix capturé au premier ajout est conservé.
        - Sinon: nouvelle ligne à quantity 1 avec le prix courant (salePrice ?? price).
        """
        idx = self._find(product.id)
        if idx is not None:
            self._lines[idx].quantity += 1
            return self._lines[idx]
        line = CartLine(product_id=product.id, name=product.name, unit_price=product.unit_price, quantity=1)
        self._lines.append(line)
        return line

    def change_quantity(self, product_id: str, delta: int) -> int:
        """
        Modifie la quantité d'une ligne, bornée à 0 (0 retire la ligne).
        Retourne la nouvelle quantité (0 si la ligne est absente ou retirée).
        """
        idx = self._find(product_id)
        if idx is None:
            return 0
        new_qty = max(0, self._lines[idx].quantity + delta)
        if new_qty == 0:
            del self._lines[idx]
        else:
            self._lines[idx].quantity = new_qty
        return new_qty

    def total(self) -> float:
        # Recalculé à chaque lecture: reflète toujours le contenu courant
        return round2(sum((line_total(l.quantity, l.unit_price) for l in self._lines), Decimal("0")))

    def clear(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return sum(l.quantity for l in self._lines)

    def to_checkout_items(self) -> List[Dict[str, Any]]:
        """Payload `items` de POST /api/checkout: [{productId, qty}]."""
        return [{"productId": l.product_id, "qty": l.quantity} for l in self._lines]
