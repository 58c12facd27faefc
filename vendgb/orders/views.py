# module vendgb.orders.views

"""Endpoints de l'user story Commandes.
- /api/checkout: panier de l'app mobile -> commande 'new', renvoie {id} (rate-limité).
- /api/orders: variante au format plat, renvoie la commande complète.
- /api/admin/orders: consultation, override de statut et suppression (require_admin).
En-tête optionnel Idempotency-Key: une requête rejouée renvoie la commande déjà créée.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response
from fastapi.responses import JSONResponse

from vendgb.orders import service as orders_service
from vendgb.orders.models import CheckoutRequest, OrderCreateRequest, StatusUpdate
from vendgb.utils.rate_limit import optional_rate_limit
from vendgb.utils.security import require_admin

router = APIRouter(prefix="/api", tags=["Commandes API"])
admin_router = APIRouter(prefix="/api/admin/orders", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.post("/checkout", status_code=201, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def checkout(payload: CheckoutRequest, idempotency_key: Optional[str] = Header(default=None)):
    """Crée la commande et renvoie son identifiant; les prix sont re-résolus côté serveur."""
    order = orders_service.build_order(payload, idempotency_key=idempotency_key)
    return JSONResponse({"id": order.id}, status_code=201)


@router.post("/orders", status_code=201, dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_order(payload: OrderCreateRequest, idempotency_key: Optional[str] = Header(default=None)):
    order = orders_service.create_order(payload, idempotency_key=idempotency_key)
    return JSONResponse(order.to_api(), status_code=201)



@admin_router.get("")
def admin_list_orders(status: Optional[str] = None, limit: int = Query(default=100, ge=1, le=500)):
    return [o.to_api() for o in orders_service.list_orders(status=status, limit=limit)]


@admin_router.get("/{order_id}")
def admin_get_order(order_id: str):
    return orders_service.get_order(order_id).to_api()


@admin_router.put("/{order_id}/status")
def admin_update_status(order_id: str, payload: StatusUpdate):
    """Override manuel: tout statut valide est accepté (400 sinon, 404 si commande absente)."""
    return orders_service.admin_set_status(order_id, payload.status).to_api()


@admin_router.delete("/{order_id}", status_code=204)
def admin_delete_order(order_id: str):
    orders_service.delete_order(order_id)
    return Response(status_code=204)
