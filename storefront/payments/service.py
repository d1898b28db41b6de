"""
Cas d'usage 'payments': orchestre catalogue, calcul du panier, Stripe et enregistrement des commandes.

Cycle de vie d'un événement webhook (fulfill_event):
    received --verify--> verified | rejected
    verified --classify--> parsed | ignored
    parsed --record--> recorded | failed
"""
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

from pydantic import BaseModel
from supabase import Client

from storefront.errors import EventRejected, MalformedEvent, PersistenceFailure
from storefront.orders import service as orders_service
from storefront.payments import metadata as payments_metadata
from storefront.payments import pricing
from storefront.payments import stripe_client
from storefront.payments import webhook

logger = logging.getLogger(__name__)


class FulfillmentState(str, Enum):
    RECEIVED = "received"
    VERIFIED = "verified"
    PARSED = "parsed"
    RECORDED = "recorded"
    REJECTED = "rejected"
    IGNORED = "ignored"
    FAILED = "failed"


class FulfillmentOutcome(BaseModel):
    state: FulfillmentState
    event_id: str = ""
    event_type: str = ""
    order_id: Optional[int] = None
    error: Optional[str] = None
    # False uniquement pour un échec de persistance quand l'acquittement est désactivé
    acknowledge: bool = True


def create_checkout(
    client: Client,
    *,
    cart: Optional[List[Any]],
    email: Optional[str],
    success_url: str,
    cancel_url: str,
    base_url: str = "",
) -> Dict[str, Any]:
    """
    Prépare la session Stripe à partir d'un panier client.
    success_url et cancel_url doivent être fournis par l'appelant (vue).
    """
    products_by_id = pricing.load_catalog_snapshot(client, cart)
    priced = pricing.price_cart(cart, products_by_id)
    session = stripe_client.create_session(
        priced,
        success_url=success_url,
        cancel_url=cancel_url,
        cart=cart,
        email=email,
        base_url=base_url,
    )
    logger.info(
        "payments.checkout session=%s lines=%s total_cents=%s",
        session["id"], len(priced.line_items), priced.total_cents,
    )
    return session

def _open_store(db_provider: Callable[[], Client]) -> Client:
    try:
        return db_provider()
    except Exception as e:
        raise PersistenceFailure(f"store unavailable: {e}") from e

def fulfill_event(
    db_provider: Callable[[], Client],
    raw_body: bytes,
    signature_header: Optional[str],
    *,
    secret: Optional[str],
    ack_on_failure: bool = True,
    tolerance: int = 300,
) -> FulfillmentOutcome:
    """
    Traite un événement Stripe brut jusqu'à l'enregistrement de la commande.
    - db_provider n'est appelé qu'à l'étape d'enregistrement: un événement refusé
      ou ignoré ne touche jamais au stockage.
    - Signature/payload invalide => REJECTED (jamais retenté, aucune écriture).
    - Type non géré => IGNORED (acquitté pour éviter les relivraisons Stripe).
    - Métadonnées inexploitables => FAILED, toujours acquitté (une relivraison n'y changerait rien).
    - Échec de persistance (stockage injoignable compris) => FAILED, acquitté si ack_on_failure.
    """
    try:
        event = webhook.verify_event(raw_body, signature_header, secret, tolerance)
    except EventRejected as e:
        logger.warning("payments.webhook rejected: %s", e)
        return FulfillmentOutcome(state=FulfillmentState.REJECTED, error=e.public_message)

    try:
        classified = payments_metadata.classify_event(event)
    except MalformedEvent as e:
        logger.exception("payments.webhook malformed checkout.session.completed id=%s", event.id)
        return FulfillmentOutcome(
            state=FulfillmentState.FAILED, event_id=event.id, event_type=event.type, error=str(e),
        )

    if isinstance(classified, payments_metadata.IgnoredEvent):
        logger.info("payments.webhook ignored type=%s id=%s", classified.event_type, classified.event_id)
        return FulfillmentOutcome(
            state=FulfillmentState.IGNORED, event_id=classified.event_id, event_type=classified.event_type,
        )

    checkout = classified
    try:
        order_id = orders_service.record_order(
            _open_store(db_provider),
            email=checkout.email,
            total_cents=checkout.total_cents,
            items=checkout.cart,
        )
    except PersistenceFailure as e:
        logger.error(
            "payments.webhook order lost id=%s session=%s ack=%s: %s",
            event.id, checkout.session_id, ack_on_failure, e,
        )
        return FulfillmentOutcome(
            state=FulfillmentState.FAILED, event_id=event.id, event_type=event.type,
            error=str(e), acknowledge=ack_on_failure,
        )

    logger.info("payments.webhook order saved order_id=%s session=%s", order_id, checkout.session_id)
    return FulfillmentOutcome(
        state=FulfillmentState.RECORDED, event_id=event.id, event_type=event.type, order_id=order_id,
    )
