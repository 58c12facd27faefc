"""
Accès aux données des commandes (table 'orders', client service-role).

Les transitions concurrentes sont sérialisées par la base: chaque écriture
conditionnelle filtre sur le statut courant et le nombre de lignes renvoyées
indique si l'écriture a eu lieu.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

from postgrest.exceptions import APIError

import vendgb.infra.supabase_client as supabase_client
from vendgb.errors import ConflictError, PersistenceError

logger = logging.getLogger(__name__)

TABLE = "orders"
UNIQUE_VIOLATION = "23505"

# module vendgb.orders.repository
def _rows(res) -> List[dict]:
    data = getattr(res, "data", None)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []

def _first(res) -> Optional[dict]:
    rows = _rows(res)
    return rows[0] if rows else None

def _api_error_code(e: APIError) -> Optional[str]:
    code = getattr(e, "code", None)
    if not code and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return code

def insert_order(row: Dict[str, Any]) -> dict:
    """
    Insère une commande (une seule ligne: tout ou rien).
    - ConflictError si une contrainte UNIQUE est violée (idempotency_key rejouée).
    """
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(row).execute()
    except APIError as e:
        if _api_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("Duplicate order") from e
        logger.exception("orders.repository.insert_order failed id=%s", row.get("id"))
        raise PersistenceError("Unable to save order") from e
    except Exception as e:
        logger.exception("orders.repository.insert_order failed id=%s", row.get("id"))
        raise PersistenceError("Unable to save order") from e
    inserted = _first(res)
    if not inserted:
        raise PersistenceError("Order insert returned no row")
    return inserted

def get_order(order_id: str) -> Optional[dict]:
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", order_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception as e:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        raise PersistenceError("Unable to load order") from e

def find_by_idempotency_key(key: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("idempotency_key", key)
            .limit(1)
            .execute()
        )
        return _first(res)
    except Exception as e:
        logger.exception("orders.repository.find_by_idempotency_key failed key=%s", key)
        raise PersistenceError("Unable to load order") from e

def list_orders(status: Optional[str] = None, limit: int = 100) -> List[dict]:
    """Commandes les plus récentes d'abord (back-office)."""
    try:
        query = supabase_client.get_service_supabase().table(TABLE).select("*")
        if status:
            query = query.eq("status", status)
        res = query.order("created_at", desc=True).limit(limit).execute()
        return _rows(res)
    except Exception as e:
        logger.exception("orders.repository.list_orders failed status=%s", status)
        raise PersistenceError("Unable to load orders") from e

def update_where_status(
    order_id: str,
    data: Dict[str, Any],
    allowed_statuses: Iterable[str],
) -> Optional[dict]:
    """
    Compare-and-swap: UPDATE ... WHERE id = ? AND status IN (allowed_statuses).
    Retourne la ligne mise à jour, ou None si aucune ligne ne correspondait
    (commande absente ou déjà passée dans un autre état).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", order_id)
            .in_("status", list(allowed_statuses))
            .execute()
        )
        return _first(res)
    except APIError as e:
        if _api_error_code(e) == UNIQUE_VIOLATION:
            raise ConflictError("Payment intent already attached to another order") from e
        logger.exception("orders.repository.update_where_status failed id=%s data=%s", order_id, data)
        raise PersistenceError("Unable to update order") from e
    except Exception as e:
        logger.exception("orders.repository.update_where_status failed id=%s data=%s", order_id, data)
        raise PersistenceError("Unable to update order") from e

def update_order(order_id: str, data: Dict[str, Any]) -> Optional[dict]:
    """Écriture inconditionnelle (override admin). None si l'ID n'existe pas."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", order_id)
            .execute()
        )
        return _first(res)
    except Exception as e:
        logger.exception("orders.repository.update_order failed id=%s data=%s", order_id, data)
        raise PersistenceError("Unable to update order") from e

def delete_order_if_status(order_id: str, status: str) -> bool:
    """Supprime uniquement si le statut courant correspond (ex: 'cancelled')."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .delete()
            .eq("id", order_id)
            .eq("status", status)
            .execute()
        )
        return bool(_rows(res))
    except Exception as e:
        logger.exception("orders.repository.delete_order_if_status failed id=%s", order_id)
        raise PersistenceError("Unable to delete order") from e
