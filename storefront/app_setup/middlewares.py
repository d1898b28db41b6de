"""
Middlewares transverses de l'application.
- register_basic_middlewares: CORS restreint aux origines du client storefront.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import CLIENT_ORIGINS

def register_basic_middlewares(app: FastAPI) -> None:
    """
    CORSMiddleware: autorise uniquement CLIENT_ORIGINS (cookies autorisés, comme le client Vite en dev).
    Le webhook Stripe est un appel serveur-à-serveur, non concerné par CORS.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CLIENT_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
