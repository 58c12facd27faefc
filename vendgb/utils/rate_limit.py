from typing import Dict, Any
from urllib.parse import urlparse
from fastapi import Request, Response, HTTPException
import logging
import os
import time

from vendgb import config

logger = logging.getLogger(__name__)

"""
Limitation de débit des endpoints d'écriture publics (checkout, create-intent).
- Clé: IP du client + chemin (l'app mobile n'a pas de session).
- fastapi-limiter (Redis) si initialisé dans le lifespan.
- LOCAL_RATE_LIMIT_FALLBACK=1: compteur en mémoire dans app.state (dev, tests).
"""

def _client_key(request: Request) -> str:
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{request.url.path}"

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        # Fallback mémoire forcé en DEV
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = _client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            # Chaque hit est stocké par sa date d'expiration: clés expirées purgées à chaque appel
            for stale in [k for k, v in store.items() if not v or v[-1] <= now]:
                del store[stale]
            hits = [exp for exp in store.get(key, []) if exp > now]
            if len(hits) >= times:
                raise HTTPException(status_code=429, detail="Too Many Requests")
            hits.append(now + seconds)
            store[key] = hits
            request.app.state._rl_store = store
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return _client_key(req)
        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible: on laisse passer plutôt que de bloquer les commandes
            logger.warning("rate_limit skipped path=%s error=%s", request.url.path, e)
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    from fastapi_limiter import FastAPILimiter
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None
    if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }
    if backend == "redis" and config.RATE_LIMIT_REDIS_URL:
        p = urlparse(config.RATE_LIMIT_REDIS_URL)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
