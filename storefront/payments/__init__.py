"""
Module 'payments' (feature-first): point d'entrée public.
Réunit calcul du panier, client Stripe, vérification webhook et orchestration du checkout.
"""

from .pricing import PricedLineItem, PricingResult, clamp_quantity, price_cart, load_catalog_snapshot
from .stripe_client import require_stripe, create_session, to_line_items, make_metadata
from .webhook import StripeEvent, verify_event, verify_signature, parse_event
from .metadata import CheckoutCompleted, IgnoredEvent, classify_event, extract_checkout
from .service import FulfillmentOutcome, FulfillmentState, create_checkout, fulfill_event

__all__ = [
    # pricing
    "PricedLineItem",
    "PricingResult",
    "clamp_quantity",
    "price_cart",
    "load_catalog_snapshot",
    # stripe
    "require_stripe",
    "create_session",
    "to_line_items",
    "make_metadata",
    # webhook
    "StripeEvent",
    "verify_event",
    "verify_signature",
    "parse_event",
    "CheckoutCompleted",
    "IgnoredEvent",
    "classify_event",
    "extract_checkout",
    # services
    "FulfillmentOutcome",
    "FulfillmentState",
    "create_checkout",
    "fulfill_event",
]
