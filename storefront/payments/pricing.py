"""
Logique panier pure (pas de Stripe, pas de DB).
Recalcule les lignes et le total à partir du catalogue serveur; les prix envoyés par le client ne sont jamais lus.
"""
from typing import Any, Dict, Iterable, List, Optional
import math
import re

from pydantic import BaseModel
from supabase import Client

from storefront.catalog.repository import get_products_map

MIN_QTY = 1
MAX_QTY = 50

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class PricedLineItem(BaseModel):
    product_id: int
    name: str
    image: str = ""
    unit_price_cents: int
    quantity: int
    line_total_cents: int


class PricingResult(BaseModel):
    line_items: List[PricedLineItem] = []
    total_cents: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.line_items


# module storefront.payments.pricing
def clamp_quantity(raw: Any) -> int:
    """
    Ramène une quantité client dans [1, 50].
    - Absente, non numérique ou booléenne => 1.
    - "3" => 3, 2.7 => 2 (troncature), -4 => 1, 999 => 50.
    """
    qty: Optional[int] = None
    if isinstance(raw, bool):
        qty = None
    elif isinstance(raw, int):
        qty = raw
    elif isinstance(raw, float):
        qty = int(raw) if math.isfinite(raw) else None
    elif isinstance(raw, str):
        m = _LEADING_INT.match(raw)
        qty = int(m.group(1)) if m else None
    if qty is None:
        qty = MIN_QTY
    return max(MIN_QTY, min(MAX_QTY, qty))

def line_product_id(line: Any) -> Optional[str]:
    """Identifiant produit d'une ligne brut ({id} ou {product_id}), normalisé en str."""
    if not isinstance(line, dict):
        return None
    raw = line.get("id", line.get("product_id"))
    if raw is None or isinstance(raw, bool):
        return None
    value = str(raw).strip()
    return value or None

def line_quantity(line: Dict[str, Any]) -> int:
    return clamp_quantity(line.get("qty", line.get("quantity")))

def cart_product_ids(cart: Optional[Iterable[Any]]) -> List[str]:
    return [pid for pid in (line_product_id(line) for line in cart or []) if pid]

def price_cart(cart: Optional[Iterable[Any]], products_by_id: Dict[str, Dict[str, Any]]) -> PricingResult:
    """
    Calcule les lignes autoritaires d'un panier client.
    - products_by_id: instantané du catalogue {str(id): produit}.
    - Ignore silencieusement les lignes dont le produit est inconnu.
    - Une ligne par entrée du panier (pas d'agrégation), quantité bornée.
    """
    line_items: List[PricedLineItem] = []
    total_cents = 0
    for line in cart or []:
        pid = line_product_id(line)
        product = products_by_id.get(pid) if pid else None
        if not product:
            continue
        qty = line_quantity(line)
        unit = int(product.get("price_cents") or 0)
        line_total = unit * qty
        total_cents += line_total
        line_items.append(PricedLineItem(
            product_id=int(product["id"]),
            name=product.get("name") or "Article",
            image=product.get("image") or "",
            unit_price_cents=unit,
            quantity=qty,
            line_total_cents=line_total,
        ))
    return PricingResult(line_items=line_items, total_cents=total_cents)

def load_catalog_snapshot(client: Client, cart: Optional[Iterable[Any]]) -> Dict[str, Dict[str, Any]]:
    """Unique lecture du catalogue pour les produits référencés par le panier."""
    return get_products_map(client, cart_product_ids(cart))
