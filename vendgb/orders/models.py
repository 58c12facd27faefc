# module vendgb.orders.models
"""Modèles pydantic des commandes.
- Requêtes: CheckoutRequest (app mobile), OrderCreateRequest (format plat), StatusUpdate (admin).
- Order: commande persistée, sérialisée en camelCase pour les clients.
- order_from_row / order_to_row: passage ligne 'orders' (snake_case) <-> Order.
Les règles métier (panier vide, qty < 1, produit inconnu) vivent dans orders.service.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Customer(_CamelModel):
    name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None


class Address(_CamelModel):
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    postcode: str = ""

    def one_line(self) -> str:
        return " ".join(p for p in (self.line1, self.line2 or "", self.city, self.postcode) if p).strip()


class CheckoutItem(_CamelModel):
    product_id: str = Field(min_length=1)
    qty: int = Field(validation_alias=AliasChoices("qty", "quantity"))
    # Champs client ignorés pour le prix (toujours re-résolu côté serveur)
    name: Optional[str] = None
    price: Optional[float] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class CheckoutRequest(_CamelModel):
    customer: Customer = Field(default_factory=Customer)
    address: Address = Field(default_factory=Address)
    items: List[CheckoutItem]
    notes: Optional[str] = None


class OrderCreateRequest(_CamelModel):
    """Format plat historique de POST /api/orders."""
    customer_name: str = Field(min_length=1)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    items: List[CheckoutItem]
    total: Optional[float] = None
    delivery_address: Union[Address, str, None] = None
    special_instructions: Optional[str] = None

    def to_checkout(self) -> CheckoutRequest:
        address = self.delivery_address
        if isinstance(address, str):
            address = Address(line1=address.strip())
        return CheckoutRequest(
            customer=Customer(name=self.customer_name, phone=self.customer_phone, email=self.customer_email),
            address=address or Address(),
            items=self.items,
            notes=self.special_instructions,
        )


class StatusUpdate(BaseModel):
    status: str


class OrderLine(_CamelModel):
    product_id: str
    name: str
    qty: int
    unit_price: float
    line_total: float


class Order(_CamelModel):
    id: str
    customer: Customer
    address: Address
    items: List[OrderLine]
    notes: str = ""
    total: float
    status: str
    payment_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def order_from_row(row: Dict[str, Any]) -> Order:
    address = row.get("delivery_address") or {}
    if isinstance(address, str):
        address = {"line1": address}
    return Order(
        id=str(row.get("id")),
        customer=Customer(
            name=row.get("customer_name") or "",
            phone=row.get("customer_phone"),
            email=row.get("customer_email"),
        ),
        address=Address.model_validate(address),
        items=[OrderLine.model_validate(i) for i in (row.get("items") or [])],
        notes=row.get("notes") or "",
        total=float(row.get("total") or 0),
        status=row.get("status") or "new",
        payment_intent_id=row.get("payment_intent_id"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def order_to_row(order: Order, idempotency_key: Optional[str] = None) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": order.id,
        "customer_name": order.customer.name,
        "customer_phone": order.customer.phone,
        "customer_email": order.customer.email,
        "delivery_address": order.address.model_dump(),
        "items": [i.model_dump() for i in order.items],
        "notes": order.notes,
        "total": order.total,
        "status": order.status,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }
    if idempotency_key:
        row["idempotency_key"] = idempotency_key
    return row
