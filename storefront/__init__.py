"""
Backend de la boutique: catalogue, checkout Stripe et enregistrement des commandes.
"""
