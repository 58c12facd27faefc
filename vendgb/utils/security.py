"""
Garde du back-office.
Le secret admin est transmis dans l'en-tête X-Admin-Secret (ou Authorization: Bearer)
et comparé au hash bcrypt ADMIN_SECRET_HASH. Aucun secret en clair côté serveur.
"""
from typing import Any, Dict, Optional
import logging

import bcrypt
from fastapi import HTTPException, Request

from vendgb import config

logger = logging.getLogger(__name__)

ADMIN_HEADER_NAME = "X-Admin-Secret"


def _secret_from_request(request: Request) -> Optional[str]:
    secret = request.headers.get(ADMIN_HEADER_NAME)
    if secret:
        return secret.strip()
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def hash_admin_secret(secret: str) -> str:
    """Hash bcrypt (salt auto) à placer dans ADMIN_SECRET_HASH."""
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_admin_secret(secret: str, secret_hash: str) -> bool:
    if not secret or not secret_hash:
        return False
    try:
        return bcrypt.checkpw(secret.encode("utf-8"), secret_hash.encode("utf-8"))
    except ValueError:
        # Hash mal formé dans l'environnement
        logger.error("ADMIN_SECRET_HASH invalide (format bcrypt attendu)")
        return False


def require_admin(request: Request) -> Dict[str, Any]:
    secret = _secret_from_request(request)
    if not secret:
        raise HTTPException(status_code=401, detail="Admin authentication required")
    if not check_admin_secret(secret, config.ADMIN_SECRET_HASH):
        raise HTTPException(status_code=403, detail="Forbidden")
    return {"role": "admin"}
