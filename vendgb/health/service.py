"""Sondes de santé: Supabase (DNS + lecture des tables) et configuration Stripe."""
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import urlparse
import socket
import time

from vendgb import config
from vendgb.infra.supabase_client import get_service_supabase

TABLES = ("products", "orders")

_STARTED_AT = time.monotonic()


def health_info() -> Dict[str, Any]:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    }

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info() -> Dict[str, Any]:
    parsed = urlparse(config.SUPABASE_URL) if config.SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "supabase_url": config.SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = get_service_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
    except Exception as e:
        info["error"] = str(e)
    return info

def health_stripe_info() -> Dict[str, Any]:
    """Pas d'appel réseau: indique seulement ce qui est configuré."""
    return {
        "configured": config.payments_configured(),
        "publishable_key": bool(config.STRIPE_PUBLISHABLE_KEY),
        "webhook_secret": bool(config.STRIPE_WEBHOOK_SECRET),
        "currency": config.CURRENCY,
    }
