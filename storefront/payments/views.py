import logging
from typing import Any, Callable, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from supabase import Client

from storefront import config
from storefront.errors import CheckoutError
from storefront.infra.supabase_client import get_db, get_db_provider
from storefront.payments import service as payments_service
from storefront.payments.service import FulfillmentState
from storefront.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments API"])


class CheckoutRequest(BaseModel):
    # Lignes laissées non typées: le calcul du panier borne/ignore ce qui est invalide
    cart: Optional[List[Any]] = None
    email: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _blank_email_is_none(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        return v or None


# module storefront.payments.views
@router.post("/api/create-checkout-session", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_checkout_session(payload: CheckoutRequest, request: Request, db: Client = Depends(get_db)):
    """
    Crée une session Checkout Stripe pour le panier soumis.
    - Entrée JSON: { "cart": [ { "id": <product_id>, "qty": <int> }, ... ], "email": "..." }
    - Les prix sont recalculés côté serveur; les lignes inconnues sont ignorées.
    - Réponses: {id, url}; 400 {error} si panier vide; 500 {error} si Stripe indisponible.
    """
    base_url = str(request.base_url).rstrip("/")
    try:
        return payments_service.create_checkout(
            db,
            cart=payload.cart,
            email=payload.email,
            success_url=f"{base_url}{config.CHECKOUT_SUCCESS_PATH}",
            cancel_url=f"{base_url}{config.CHECKOUT_CANCEL_PATH}",
            base_url=base_url,
        )
    except CheckoutError:
        # Mappé par les gestionnaires d'exceptions (message générique)
        raise
    except Exception:
        logger.exception("Erreur create_checkout_session")
        return JSONResponse(status_code=500, content={"error": "Failed to create checkout session"})


@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request, db_provider: Callable[[], Client] = Depends(get_db_provider)):
    """
    Webhook Stripe: consomme checkout.session.completed pour créer la commande.
    - Lit le body brut (la signature porte sur les octets exacts) + en-tête Stripe-Signature.
    - Le stockage n'est ouvert qu'après vérification: un appel forgé reçoit 400, jamais 500.
    - 400 uniquement si signature/payload refusé; {"received": true} sinon
      (500 seulement si WEBHOOK_ACK_ON_FAILURE=false et que l'écriture a échoué).
    """
    raw_body = await request.body()
    signature = request.headers.get("stripe-signature")
    outcome = await run_in_threadpool(
        payments_service.fulfill_event,
        db_provider,
        raw_body,
        signature,
        secret=config.STRIPE_WEBHOOK_SECRET,
        ack_on_failure=config.WEBHOOK_ACK_ON_FAILURE,
        tolerance=config.STRIPE_WEBHOOK_TOLERANCE,
    )
    if outcome.state == FulfillmentState.REJECTED:
        return JSONResponse(status_code=400, content={"error": f"Webhook Error: {outcome.error}"})
    if not outcome.acknowledge:
        return JSONResponse(status_code=500, content={"error": "Failed to record order"})
    return {"received": True}
