"""Couche service des commandes: enregistrement d'une commande payée.
- Les prix unitaires sont relus dans le catalogue au moment de l'écriture (jamais depuis l'événement).
- Même politique que le calcul du panier: quantité bornée à [1, 50], produits inconnus ignorés.
- Pas d'idempotence: deux appels pour le même événement créent deux commandes.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging

from supabase import Client

from storefront.errors import PersistenceFailure
from storefront.orders import repository
from storefront.payments.pricing import load_catalog_snapshot, price_cart

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_PAID = "paid"

def build_order_items(items: Iterable[Dict[str, Any]], products_by_id: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Lignes order_items à partir du panier et d'un instantané catalogue."""
    priced = price_cart(items, products_by_id)
    return [
        {
            "product_id": line.product_id,
            "quantity": line.quantity,
            "unit_price_cents": line.unit_price_cents,
        }
        for line in priced.line_items
    ]

def record_order(
    client: Client,
    *,
    email: Optional[str],
    total_cents: int,
    items: List[Dict[str, Any]],
    status: str = STATUS_PAID,
) -> int:
    """Persiste une commande et ses lignes; lève PersistenceFailure si le stockage échoue."""
    try:
        products_by_id = load_catalog_snapshot(client, items)
        rows = build_order_items(items, products_by_id)
        if not rows:
            logger.warning("orders.service.record_order: aucune ligne résolue (cart=%s)", items)
        order_id = repository.insert_order_with_items(
            client,
            email=email,
            total_cents=total_cents,
            status=status,
            items=rows,
        )
    except Exception as e:
        logger.exception("orders.service.record_order failed email=%s total_cents=%s", email, total_cents)
        raise PersistenceFailure(f"order not recorded: {e}") from e
    logger.info("orders.service.record_order saved order_id=%s items=%s", order_id, len(rows))
    return order_id

def list_orders(client: Client, limit: int = 100) -> List[dict]:
    return repository.fetch_orders(client, limit=limit)
