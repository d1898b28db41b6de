"""
Accès aux tables 'orders' / 'order_items'.
L'écriture passe par la fonction Postgres record_paid_order (sql/schema.sql):
en-tête et lignes sont insérés dans une seule transaction, rien n'est visible en cas d'échec.
"""
from typing import Any, Dict, List, Optional
import logging

from supabase import Client

logger = logging.getLogger(__name__)

RECORD_ORDER_RPC = "record_paid_order"

# module storefront.orders.repository
def insert_order_with_items(
    client: Client,
    *,
    email: Optional[str],
    total_cents: int,
    status: str,
    items: List[Dict[str, Any]],
) -> int:
    """
    Insère une commande et ses lignes en un seul appel RPC (atomique).
    items: [{"product_id": int, "quantity": int, "unit_price_cents": int}, ...]
    Retour: id de la commande créée.
    """
    res = client.rpc(RECORD_ORDER_RPC, {
        "p_email": email,
        "p_total_cents": total_cents,
        "p_status": status,
        "p_items": items,
    }).execute()
    data = res.data
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get("id", data.get(RECORD_ORDER_RPC))
    if data is None:
        raise RuntimeError(f"{RECORD_ORDER_RPC} returned no order id")
    return int(data)

def fetch_orders(client: Client, limit: int = 100) -> List[dict]:
    """
    Commandes pour l'admin, plus récentes d'abord, avec leurs lignes (clé 'items').
    """
    try:
        res = (
            client
            .table("orders")
            .select("id, email, total_cents, status, created_at, order_items(id, order_id, product_id, quantity, unit_price_cents)")
            .order("created_at", desc=True)
            .order("id", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception:
        logger.exception("orders.repository.fetch_orders failed")
        raise
    orders = []
    for row in res.data or []:
        order = dict(row)
        order["items"] = order.pop("order_items", None) or []
        orders.append(order)
    return orders
