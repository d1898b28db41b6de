import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from supabase import Client

from storefront.catalog import repository as catalog_repo
from storefront.infra.supabase_client import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Catalog API"])

# module storefront.catalog.views
@router.get("/products")
def list_products(db: Client = Depends(get_db)):
    """Catalogue complet: {products: [...]} (prix en centimes)."""
    try:
        return {"products": catalog_repo.fetch_products(db)}
    except Exception:
        logger.exception("Erreur list_products")
        return JSONResponse(status_code=500, content={"error": "Failed to list products"})
