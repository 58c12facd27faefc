from fastapi import Request, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from vendgb import config

"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS (app mobile, panneau admin) et TrustedHost.
- register_security_middleware: en-têtes de sécurité et CSP (compatible Swagger /docs).
Pas de cookies ni de CSRF: l'API est appelée par l'app mobile et l'admin (secret en en-tête).
"""
SWAGGER_CDNS = ["https://cdn.jsdelivr.net", "https://unpkg.com"]


def register_basic_middlewares(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials="*" not in config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.ALLOWED_HOSTS)

def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
        if request.url.scheme == "https":
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains")

        csp = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: https://fastapi.tiangolo.com; "
            f"style-src 'self' 'unsafe-inline' {' '.join(SWAGGER_CDNS)}; "
            f"script-src 'self' 'unsafe-inline' {' '.join(SWAGGER_CDNS)}; "
            "connect-src 'self'"
        )
        response.headers.setdefault("Content-Security-Policy", csp)
        return response
