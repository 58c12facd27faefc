"""
Arithmétique monétaire: arrondi à 2 décimales et conversion en pence.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, str, Decimal]

_CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    # str() évite d'hériter des artefacts binaires des floats (8.99 -> 8.9900000001)
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round2(value: Number) -> float:
    """Arrondi commercial (demi vers le haut) à 2 décimales."""
    return float(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


def line_total(qty: int, unit_price: Number) -> Decimal:
    return to_decimal(unit_price) * qty


def price_to_pence(price: Number) -> int:
    """Montant en unité mineure (pence) attendu par Stripe: round(x * 100)."""
    return int((to_decimal(price) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pence_to_price(pence: int) -> float:
    return float(Decimal(int(pence)) / 100)
