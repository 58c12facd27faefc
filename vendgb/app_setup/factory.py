"""
Factory d'application utilisée par les entrypoints (vendgb.app, vendgb.asgi).
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares CORS/TrustedHost puis en-têtes de sécurité
      - gestionnaires d'exceptions métier
      - tous les routers (catalogue, commandes, paiements, admin, health)
    """
    app = FastAPI(title="Vend GB API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
