"""Cas d'usage du catalogue.
- get / list_active: contrat lu par le pipeline de commande (lecture seule).
- create / update / delete: opérations admin, seules à modifier les produits.
Le stock n'est jamais décrémenté ici: il est purement informatif.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List
import logging

from vendgb.catalogue import repository
from vendgb.catalogue.models import Product, ProductIn, ProductUpdate
from vendgb.errors import ProductNotFound, ValidationError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def get(product_id: str) -> Product:
    row = repository.get_product(product_id)
    if not row:
        raise ProductNotFound(product_id)
    return Product.model_validate(row)

def list_active() -> List[Product]:
    return [Product.model_validate(r) for r in repository.list_active_products()]

def list_all() -> List[Product]:
    return [Product.model_validate(r) for r in repository.list_products()]

def resolve_many(ids: Iterable[str]) -> Dict[str, Product]:
    """Charge en une requête les produits référencés par un panier."""
    return {pid: Product.model_validate(row) for pid, row in repository.get_products_map(ids).items()}

def create(payload: ProductIn) -> Product:
    data = payload.model_dump()
    data["created_at"] = data["updated_at"] = _now()
    row = repository.create_product(data)
    logger.info("catalogue.create id=%s sku=%s", row.get("id"), payload.sku)
    return Product.model_validate(row)

def update(product_id: str, payload: ProductUpdate) -> Product:
    current = get(product_id)
    changes: Dict[str, Any] = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    # salePrice < price doit rester vrai après fusion
    price = changes.get("price", current.price)
    sale_price = changes["sale_price"] if "sale_price" in changes else current.sale_price
    if sale_price is not None and sale_price >= price:
        raise ValidationError("salePrice must be lower than price")

    changes["updated_at"] = _now()
    row = repository.update_product(product_id, changes)
    if not row:
        raise ProductNotFound(product_id)
    return Product.model_validate(row)

def delete(product_id: str) -> None:
    if not repository.delete_product(product_id):
        raise ProductNotFound(product_id)
    logger.info("catalogue.delete id=%s", product_id)
