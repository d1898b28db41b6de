"""Endpoints admin (sans authentification, hors périmètre).
- POST /api/admin/seed: remplit le catalogue d'exemple s'il est vide.
- GET /api/admin/orders: commandes avec leurs lignes, plus récentes d'abord.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.admin import service as admin_service
from storefront.infra.supabase_client import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin API"])


@router.post("/seed")
def admin_seed(db: Client = Depends(get_db)):
    try:
        return {"message": admin_service.seed_catalog(db)}
    except Exception:
        logger.exception("Erreur admin_seed")
        return JSONResponse(status_code=500, content={"error": "Failed to seed products"})


@router.get("/orders")
def admin_orders(db: Client = Depends(get_db)):
    try:
        return {"orders": admin_service.get_admin_orders(db)}
    except Exception:
        logger.exception("Erreur admin_orders")
        return JSONResponse(status_code=500, content={"error": "Failed to list orders"})
