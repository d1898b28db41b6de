"""
Extraction typée des données de commande depuis un événement checkout.session.completed.
"""
from typing import Any, Dict, List, Optional, Union
import json
import re

from pydantic import BaseModel

from storefront.errors import MalformedEvent
from storefront.payments.webhook import StripeEvent

_INT = re.compile(r"^\s*[+-]?\d+\s*$")


class CheckoutCompleted(BaseModel):
    event_id: str = ""
    session_id: str = ""
    email: Optional[str] = None
    cart: List[Dict[str, Any]] = []
    total_cents: int


class IgnoredEvent(BaseModel):
    """Événement authentique mais sans effet sur les commandes (type non géré)."""

    event_id: str = ""
    event_type: str


# module storefront.payments.metadata
def extract_email(session: Dict[str, Any]) -> Optional[str]:
    """Email payeur: customer_details.email en priorité, puis customer_email."""
    details = session.get("customer_details")
    email = details.get("email") if isinstance(details, dict) else None
    email = email or session.get("customer_email")
    return email if isinstance(email, str) and email else None

def extract_cart(meta: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Panier sérialisé dans metadata.cart: JSON [{"id": ..., "qty": ...}].
    Les entrées qui ne sont pas des objets sont ignorées.
    """
    raw = meta.get("cart")
    if not isinstance(raw, str):
        raise MalformedEvent("metadata.cart missing")
    try:
        cart = json.loads(raw)
    except ValueError as e:
        raise MalformedEvent(f"metadata.cart is not JSON: {e}") from e
    if not isinstance(cart, list):
        raise MalformedEvent("metadata.cart is not a list")
    return [line for line in cart if isinstance(line, dict)]

def extract_total_cents(meta: Dict[str, Any]) -> int:
    raw = meta.get("total_cents")
    if isinstance(raw, int) and not isinstance(raw, bool):
        total = raw
    elif isinstance(raw, str) and _INT.match(raw):
        total = int(raw)
    else:
        raise MalformedEvent(f"metadata.total_cents is not an integer: {raw!r}")
    if total < 0:
        raise MalformedEvent(f"metadata.total_cents is negative: {total}")
    return total

def extract_checkout(event: StripeEvent) -> CheckoutCompleted:
    """
    Extrait (email, cart, total_cents) d'un événement checkout.session.completed.
    Lève MalformedEvent si les métadonnées sont absentes ou inexploitables.
    """
    session = event.data_object or {}
    meta = session.get("metadata")
    if not isinstance(meta, dict):
        raise MalformedEvent("session metadata missing")
    return CheckoutCompleted(
        event_id=event.id,
        session_id=str(session.get("id") or ""),
        email=extract_email(session),
        cart=extract_cart(meta),
        total_cents=extract_total_cents(meta),
    )

def classify_event(event: StripeEvent) -> Union[CheckoutCompleted, IgnoredEvent]:
    """
    checkout.session.completed => CheckoutCompleted (MalformedEvent si inexploitable),
    tout autre type => IgnoredEvent.
    """
    if not event.is_checkout_completed:
        return IgnoredEvent(event_id=event.id, event_type=event.type)
    return extract_checkout(event)
