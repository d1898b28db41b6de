"""
Gestionnaires d'exceptions métier.
- ValidationError -> 400 {"error": <message générique>}
- RequestValidationError (corps JSON mal formé ou mal typé) -> 400, même message
- UpstreamUnavailable -> 500 {"error": "Failed to create checkout session"}
Aucun détail interne n'est renvoyé au client; le détail reste dans les logs.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.errors import CheckoutError, UpstreamUnavailable, ValidationError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def on_request_validation_error(request: Request, exc: RequestValidationError):
        # Le détail pydantic reprend l'entrée du client: logs uniquement
        logger.info(
            "request validation error on %s: %s",
            request.url.path, [(err.get("type"), err.get("loc")) for err in exc.errors()],
        )
        return JSONResponse(status_code=400, content={"error": ValidationError.public_message})

    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        logger.info("validation error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": exc.public_message})

    @app.exception_handler(UpstreamUnavailable)
    async def on_upstream_unavailable(request: Request, exc: UpstreamUnavailable):
        return JSONResponse(status_code=500, content={"error": exc.public_message})

    @app.exception_handler(CheckoutError)
    async def on_checkout_error(request: Request, exc: CheckoutError):
        logger.error("unhandled checkout error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": exc.public_message})
