"""
Registre central des routers (API storefront, webhook, admin, health).
"""
from fastapi import FastAPI
from storefront.catalog import views as catalog_views
from storefront.payments import views as payments_views
from storefront.admin import views as admin_views
from storefront.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API storefront
    app.include_router(catalog_views.router)
    app.include_router(payments_views.router)
    # Admin
    app.include_router(admin_views.router)
    # Health & monitoring
    app.include_router(health_router)
