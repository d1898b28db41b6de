# module storefront.admin.service

from typing import List
import logging

from supabase import Client

from storefront import config
from storefront.catalog import seed
from storefront.orders import service as orders_service

logger = logging.getLogger(__name__)

SEEDED_MESSAGE = "Seeded sample products."
ALREADY_SEEDED_MESSAGE = "Products already exist."

def seed_catalog(client: Client) -> str:
    """Seed idempotent: ne touche pas un catalogue déjà rempli."""
    return SEEDED_MESSAGE if seed.seed_if_empty(client) else ALREADY_SEEDED_MESSAGE

def get_admin_orders(client: Client, limit: int | None = None) -> List[dict]:
    return orders_service.list_orders(client, limit=limit or config.ORDERS_LIST_LIMIT)
