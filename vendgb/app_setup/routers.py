"""
Registre central des routers.
- API publique: catalogue, commandes (checkout), paiements
- Admin: produits, commandes
- Health
"""
from fastapi import FastAPI
from vendgb.catalogue import views as catalogue_views
from vendgb.orders import views as orders_views
from vendgb.payments import views as payments_views
from vendgb.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API publique (app mobile)
    app.include_router(catalogue_views.router)
    app.include_router(orders_views.router)
    app.include_router(payments_views.router)
    # Admin
    app.include_router(catalogue_views.admin_router)
    app.include_router(orders_views.admin_router)
    # Health & monitoring
    app.include_router(health_router)
