"""
Produits d'exemple pour une boutique vide.

Usage:
    python -m storefront.catalog.seed
"""
from typing import Any, Dict, List
import logging

from supabase import Client

from storefront.catalog import repository

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Blue Tee", "description": "Soft cotton tee in blue", "image": "/images/blue-tee.jpg", "price_cents": 1500},
    {"name": "Red Hoodie", "description": "Cozy hoodie in red", "image": "/images/red-hoodie.jpg", "price_cents": 4500},
    {"name": "Canvas Tote", "description": "Sturdy tote bag", "image": "/images/tote.jpg", "price_cents": 2500},
    {"name": "Cap", "description": "Adjustable cap", "image": "/images/cap.jpg", "price_cents": 1800},
]

def seed_if_empty(client: Client) -> bool:
    """Insère SAMPLE_PRODUCTS si le catalogue est vide. Retourne True si des produits ont été créés."""
    if repository.count_products(client) > 0:
        return False
    repository.insert_products(client, [dict(p) for p in SAMPLE_PRODUCTS])
    logger.info("catalog.seed inserted=%s", len(SAMPLE_PRODUCTS))
    return True

def main():
    from storefront.infra.supabase_client import get_service_supabase

    try:
        created = seed_if_empty(get_service_supabase())
        print("Seeded sample products." if created else "Products already exist.")
    except Exception as e:
        print(f"Erreur lors du seed Supabase: {e}")

if __name__ == "__main__":
    main()
