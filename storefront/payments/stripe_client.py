"""
Adaptateur Stripe: centralise la configuration et les appels Checkout.
"""
from typing import Any, Dict, List, Optional
import json
import logging

import stripe

from storefront import config
from storefront.errors import EmptyCartError, UpstreamUnavailable, ValidationError
from storefront.payments.pricing import PricingResult, line_product_id, line_quantity

logger = logging.getLogger(__name__)

# Limite Stripe sur la taille d'une valeur de metadata
METADATA_VALUE_LIMIT = 500

# Client HTTP partagé, créé une seule fois (pool de connexions requests)
_http_client = None

# module storefront.payments.stripe_client
def require_stripe():
    """
    Configure le module stripe une seule fois puis le retourne.
    - api_key depuis STRIPE_SECRET_KEY (absente => les appels échouent côté SDK).
    - Client HTTP avec timeout borné, sans retry réseau automatique:
      un appel en échec remonte une seule fois, en UpstreamUnavailable.
    Appelé au démarrage (lifespan); les appels suivants réutilisent la configuration.
    """
    global _http_client
    if _http_client is None:
        if config.STRIPE_SECRET_KEY:
            stripe.api_key = config.STRIPE_SECRET_KEY
        stripe.max_network_retries = 0
        _http_client = stripe.RequestsClient(timeout=config.STRIPE_TIMEOUT_SECONDS)
        stripe.default_http_client = _http_client
    return stripe

def absolute_url(base_url: str, path: str) -> str:
    if not path or path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"

def to_line_items(priced: PricingResult, base_url: str = "") -> List[Dict[str, Any]]:
    """
    Construit les line_items Stripe à partir des lignes autoritaires.
    - unit_amount en centimes, devise unique CHECKOUT_CURRENCY.
    - Image produit rendue absolue par rapport à base_url.
    """
    line_items: List[Dict[str, Any]] = []
    for item in priced.line_items:
        product_data: Dict[str, Any] = {"name": item.name}
        image = absolute_url(base_url, item.image)
        if image:
            product_data["images"] = [image]
        line_items.append({
            "price_data": {
                "currency": config.CHECKOUT_CURRENCY,
                "product_data": product_data,
                "unit_amount": item.unit_price_cents,
            },
            "quantity": item.quantity,
        })
    return line_items

def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))

def make_metadata(cart: Optional[List[Any]], priced: PricingResult) -> Dict[str, str]:
    """
    Métadonnées de session: {cart: JSON du panier client d'origine, total_cents: "<int>"}.
    - L'événement de complétion se suffit à lui-même (aucune table 'pending' locale).
    - Si le panier brut dépasse la limite Stripe, on retombe sur la forme normalisée
      [{id, qty}]; au-delà, le panier est refusé.
    """
    cart_json = _compact(list(cart or []))
    if len(cart_json) > METADATA_VALUE_LIMIT:
        cart_json = _compact([
            {"id": line_product_id(line), "qty": line_quantity(line)}
            for line in cart or []
            if line_product_id(line)
        ])
    if len(cart_json) > METADATA_VALUE_LIMIT:
        raise ValidationError(f"cart metadata too large ({len(cart_json)} chars)", public_message="Cart is too large")
    return {"cart": cart_json, "total_cents": str(priced.total_cents)}

def create_session(
    priced: PricingResult,
    *,
    success_url: str,
    cancel_url: str,
    cart: Optional[List[Any]] = None,
    email: Optional[str] = None,
    base_url: str = "",
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout (mode payment).
    - EmptyCartError avant tout appel Stripe si aucune ligne valide.
    - UpstreamUnavailable si Stripe échoue ou dépasse le timeout.
    Retour: {"id": "cs_test_...", "url": "https://checkout.stripe.com/..."}
    """
    if priced.is_empty:
        raise EmptyCartError("no priced line items")
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": to_line_items(priced, base_url),
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": make_metadata(cart, priced),
    }
    if email:
        params["customer_email"] = email

    client = require_stripe()
    try:
        session = client.checkout.Session.create(**params)
    except Exception as e:
        logger.exception("payments.stripe_client.create_session failed total_cents=%s", priced.total_cents)
        raise UpstreamUnavailable(f"stripe session creation failed: {e}") from e

    session_id = session.get("id") if hasattr(session, "get") else getattr(session, "id", None)
    url = session.get("url") if hasattr(session, "get") else getattr(session, "url", None)
    if not session_id or not url:
        raise UpstreamUnavailable("stripe returned a session without id/url")
    return {"id": session_id, "url": url}
