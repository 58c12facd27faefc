from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateIntentRequest(_CamelModel):
    order_id: str = Field(min_length=1)
    # Indicatif: le montant facturé est toujours relu sur la commande
    amount: Optional[float] = None
    currency: Optional[str] = None


class ConfirmPaymentRequest(_CamelModel):
    payment_intent_id: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
