# module vendgb.catalogue.models
"""Modèles pydantic du catalogue.
- Product: enregistrement complet (lignes 'products' en snake_case, API en camelCase).
- ProductIn / ProductUpdate: payloads admin (création / mise à jour partielle).
- to_public_product: projection exposée à l'app mobile (sans prix de revient, stock, taux TVA).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from vendgb.utils.money import round2


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(_CamelModel):
    id: str
    sku: str = ""
    name: str
    short_desc: str = ""
    full_desc: str = ""
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    price: float
    sale_price: Optional[float] = None
    tax_rate: float = 0
    cost_price: float = 0
    available: bool = True
    stock_qty: int = 0
    max_order_qty: int = 0
    prep_time_mins: int = 0
    image_url: str = ""
    images: List[str] = Field(default_factory=list)
    active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_defaults(cls, data: Any) -> Any:
        # Les colonnes nullable de Postgres arrivent en None
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if v is not None or k in ("sale_price", "salePrice")}
            if "id" in data:
                data["id"] = str(data["id"])
        return data

    @property
    def unit_price(self) -> float:
        """Prix appliqué au panier/commande: salePrice s'il est valide, sinon price."""
        if self.sale_price is not None and self.sale_price < self.price:
            return self.sale_price
        return self.price

    @property
    def orderable(self) -> bool:
        return self.active and self.available


class ProductIn(_CamelModel):
    sku: str = ""
    name: str = Field(min_length=1)
    short_desc: str = ""
    full_desc: str = ""
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    price: float = Field(ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    tax_rate: float = Field(default=0, ge=0)
    cost_price: float = Field(default=0, ge=0)
    available: bool = True
    stock_qty: int = 0
    max_order_qty: int = Field(default=0, ge=0)
    prep_time_mins: int = Field(default=0, ge=0)
    image_url: str = ""
    images: List[str] = Field(default_factory=list)
    active: bool = True
    sort_order: int = 0

    @model_validator(mode="after")
    def _sale_below_price(self) -> "ProductIn":
        if self.sale_price is not None and self.sale_price >= self.price:
            raise ValueError("salePrice must be lower than price")
        return self


class ProductUpdate(_CamelModel):
    """Mise à jour partielle: seuls les champs fournis sont écrits."""
    sku: Optional[str] = None
    name: Optional[str] = Field(default=None, min_length=1)
    short_desc: Optional[str] = None
    full_desc: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    price: Optional[float] = Field(default=None, ge=0)
    sale_price: Optional[float] = Field(default=None, ge=0)
    tax_rate: Optional[float] = Field(default=None, ge=0)
    cost_price: Optional[float] = Field(default=None, ge=0)
    available: Optional[bool] = None
    stock_qty: Optional[int] = None
    max_order_qty: Optional[int] = Field(default=None, ge=0)
    prep_time_mins: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    active: Optional[bool] = None
    sort_order: Optional[int] = None


def to_public_product(product: Product) -> Dict[str, Any]:
    """
    Projection publique d'un produit.
    - Masque costPrice, taxRate, stockQty, prepTimeMins, active, sku, dates.
    - Ajoute priceWithTax / salePriceWithTax (TVA incluse, arrondi 2 décimales).
    """
    rate = product.tax_rate or 0
    sale_with_tax = round2(product.sale_price * (1 + rate / 100)) if product.sale_price is not None else None
    return {
        "id": product.id,
        "name": product.name,
        "shortDesc": product.short_desc,
        "fullDesc": product.full_desc,
        "category": product.category,
        "tags": product.tags,
        "price": product.price,
        "salePrice": product.sale_price,
        "priceWithTax": round2(product.price * (1 + rate / 100)),
        "salePriceWithTax": sale_with_tax,
        "imageUrl": product.image_url,
        "images": product.images,
        "available": product.available,
        "maxOrderQty": product.max_order_qty,
        "sortOrder": product.sort_order,
    }
