"""
Taxonomie des erreurs du pipeline de checkout.

- ValidationError / EmptyCartError: panier vide ou non résolu (corrigeable par le client, 400)
- UpstreamUnavailable: appel Stripe en échec ou timeout (500 générique, pas de retry)
- EventRejected (InvalidSignature, UnreadablePayload): webhook refusé (400, jamais traité)
- MalformedEvent: métadonnées inexploitables dans un événement vérifié (loggé, acquitté)
- PersistenceFailure: échec d'écriture de la commande (loggé, acquitté selon la config)
"""


class CheckoutError(Exception):
    """Racine des erreurs métier; `public_message` est le seul texte renvoyé au client."""

    public_message = "Checkout failed"

    def __init__(self, message: str = "", *, public_message: str | None = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(CheckoutError):
    public_message = "Invalid cart"


class EmptyCartError(ValidationError):
    public_message = "Cart is empty"


class UpstreamUnavailable(CheckoutError):
    public_message = "Failed to create checkout session"


class EventRejected(CheckoutError):
    public_message = "Webhook rejected"


class InvalidSignature(EventRejected):
    public_message = "Webhook signature verification failed"


class UnreadablePayload(EventRejected):
    public_message = "Webhook payload is not a valid event"


class MalformedEvent(CheckoutError):
    public_message = "Malformed checkout event"


class PersistenceFailure(CheckoutError):
    public_message = "Failed to record order"
