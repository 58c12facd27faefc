"""
Accès aux données du catalogue (table 'products').
Toute erreur Supabase est journalisée puis remontée en PersistenceError,
sauf un ID mal formé pour la colonne (22P02), traité comme un produit absent.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

from postgrest.exceptions import APIError

import vendgb.infra.supabase_client as supabase_client
from vendgb.errors import PersistenceError

logger = logging.getLogger(__name__)

TABLE = "products"
# IDs non convertibles vers le type de la colonne (base créée avec id uuid)
INVALID_TEXT_REPRESENTATION = "22P02"

# module vendgb.catalogue.repository
def _first(res) -> Optional[dict]:
    rows = getattr(res, "data", None) or []
    if isinstance(rows, list):
        return rows[0] if rows else None
    return rows if isinstance(rows, dict) else None

def _is_malformed_id(e: APIError) -> bool:
    code = getattr(e, "code", None)
    if not code and e.args and isinstance(e.args[0], dict):
        code = e.args[0].get("code")
    return code == INVALID_TEXT_REPRESENTATION

def list_active_products() -> List[dict]:
    """Produits actifs, triés par sort_order (vitrine publique)."""
    try:
        res = (
            supabase_client.get_supabase()
            .table(TABLE)
            .select("*")
            .eq("active", True)
            .order("sort_order")
            .execute()
        )
        return res.data or []
    except Exception as e:
        logger.exception("catalogue.repository.list_active_products failed")
        raise PersistenceError("Unable to load products") from e

def list_products() -> List[dict]:
    """Tous les produits (back-office), actifs ou non."""
    try:
        res = supabase_client.get_service_supabase().table(TABLE).select("*").order("sort_order").execute()
        return res.data or []
    except Exception as e:
        logger.exception("catalogue.repository.list_products failed")
        raise PersistenceError("Unable to load products") from e

def get_product(product_id: str) -> Optional[dict]:
    if not product_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        return _first(res)
    except APIError as e:
        if _is_malformed_id(e):
            return None
        logger.exception("catalogue.repository.get_product failed id=%s", product_id)
        raise PersistenceError("Unable to load product") from e
    except Exception as e:
        logger.exception("catalogue.repository.get_product failed id=%s", product_id)
        raise PersistenceError("Unable to load product") from e

def fetch_products_by_ids(ids: List[str]) -> List[dict]:
    if not ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .select("*")
            .in_("id", [str(i) for i in ids])
            .execute()
        )
        return res.data or []
    except APIError as e:
        if _is_malformed_id(e):
            logger.info("catalogue.repository.fetch_products_by_ids malformed ids=%s", ids)
            return []
        logger.exception("catalogue.repository.fetch_products_by_ids failed ids=%s", ids)
        raise PersistenceError("Unable to load products") from e
    except Exception as e:
        logger.exception("catalogue.repository.fetch_products_by_ids failed ids=%s", ids)
        raise PersistenceError("Unable to load products") from e

def get_products_map(ids: Iterable[str]) -> Dict[str, dict]:
    """Retourne {id: produit} pour une liste d'IDs (doublons ignorés)."""
    unique_ids = list(dict.fromkeys(str(i) for i in ids))
    return {str(p.get("id")): p for p in fetch_products_by_ids(unique_ids)}

def create_product(data: Dict[str, Any]) -> dict:
    try:
        res = supabase_client.get_service_supabase().table(TABLE).insert(data).execute()
    except Exception as e:
        logger.exception("catalogue.repository.create_product failed data=%s", data)
        raise PersistenceError("Unable to create product") from e
    row = _first(res)
    if not row:
        raise PersistenceError("Product insert returned no row")
    return row

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    """Retourne la ligne mise à jour, ou None si l'ID n'existe pas."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(TABLE)
            .update(data)
            .eq("id", product_id)
            .execute()
        )
        return _first(res)
    except APIError as e:
        if _is_malformed_id(e):
            return None
        logger.exception("catalogue.repository.update_product failed id=%s data=%s", product_id, data)
        raise PersistenceError("Unable to update product") from e
    except Exception as e:
        logger.exception("catalogue.repository.update_product failed id=%s data=%s", product_id, data)
        raise PersistenceError("Unable to update product") from e

def delete_product(product_id: str) -> bool:
    """True si une ligne a été supprimée."""
    try:
        res = supabase_client.get_service_supabase().table(TABLE).delete().eq("id", product_id).execute()
        return bool(getattr(res, "data", None))
    except APIError as e:
        if _is_malformed_id(e):
            return False
        logger.exception("catalogue.repository.delete_product failed id=%s", product_id)
        raise PersistenceError("Unable to delete product") from e
    except Exception as e:
        logger.exception("catalogue.repository.delete_product failed id=%s", product_id)
        raise PersistenceError("Unable to delete product") from e
