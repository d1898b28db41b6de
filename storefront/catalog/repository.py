"""
Accès au catalogue (table 'products').
Lecture seule du point de vue du checkout; l'insertion ne sert qu'au seed admin.
"""
from typing import Any, Dict, Iterable, List
import logging

from supabase import Client

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, description, image, price_cents"

# module storefront.catalog.repository
def fetch_products(client: Client) -> List[dict]:
    """Tous les produits, triés par id."""
    try:
        res = client.table("products").select(PRODUCT_COLUMNS).order("id").execute()
        return res.data or []
    except Exception:
        logger.exception("catalog.repository.fetch_products failed")
        raise

def fetch_products_by_ids(client: Client, ids: List[int]) -> List[dict]:
    """
    Récupère les produits par leurs IDs.
    - Retourne [] si ids vide (aucun appel réseau).
    """
    if not ids:
        return []
    try:
        res = client.table("products").select(PRODUCT_COLUMNS).in_("id", ids).execute()
        return res.data or []
    except Exception:
        logger.exception("catalog.repository.fetch_products_by_ids failed ids=%s", ids)
        raise

def get_products_map(client: Client, ids: Iterable[Any]) -> Dict[str, Dict[str, Any]]:
    """
    Retourne un instantané {str(id): produit} pour les IDs demandés.
    - Les IDs non numériques sont ignorés (ils ne peuvent correspondre à aucun produit).
    """
    numeric_ids: List[int] = []
    for raw in ids:
        try:
            pid = int(str(raw).strip())
        except (TypeError, ValueError):
            continue
        if pid not in numeric_ids:
            numeric_ids.append(pid)
    products = fetch_products_by_ids(client, numeric_ids)
    return {str(p.get("id")): p for p in products}

def count_products(client: Client) -> int:
    """Compte les produits (count='exact' si disponible, sinon len(data))."""
    try:
        res = client.table("products").select("id", count="exact").execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("catalog.repository.count_products failed")
        raise

def insert_products(client: Client, products: List[Dict[str, Any]]) -> List[dict]:
    try:
        res = client.table("products").insert(products).execute()
        return res.data or []
    except Exception:
        logger.exception("catalog.repository.insert_products failed count=%s", len(products))
        raise
