# storefront.config
from pathlib import Path
import logging
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Stripe, Supabase) et l'allow-list CORS
- Expose les bornes réseau (timeouts Stripe/Supabase) et le choix d'acquittement du webhook
"""

logger = logging.getLogger(__name__)

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_flag(name: str, default: bool) -> bool:
    raw = _clean_env(os.getenv(name) or "").lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")

def _env_int(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        logger.warning("config: %s invalide, valeur par défaut %s utilisée", name, default)
        return default

# Stripe: clé secrète (obligatoire pour de vrais paiements) et secret de signature webhook (optionnel)
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
STRIPE_WEBHOOK_TOLERANCE = _env_int("STRIPE_WEBHOOK_TOLERANCE", 300)
STRIPE_TIMEOUT_SECONDS = _env_int("STRIPE_TIMEOUT_SECONDS", 10)

if not STRIPE_SECRET_KEY:
    logger.warning("STRIPE_SECRET_KEY manquant: la création de sessions Checkout échouera")

# Checkout: devise unique et pages de retour (relatives à l'hôte de la requête)
CHECKOUT_CURRENCY = _clean_env(os.getenv("CHECKOUT_CURRENCY") or "usd").lower()
CHECKOUT_SUCCESS_PATH = os.getenv("CHECKOUT_SUCCESS_PATH", "/success")
CHECKOUT_CANCEL_PATH = os.getenv("CHECKOUT_CANCEL_PATH", "/cancel")

# Webhook: acquitter (200) même si l'enregistrement local échoue.
# true  => pas de tempête de relivraisons, mais la commande peut être perdue
# false => 500 sur échec de persistance, Stripe relivre l'événement
WEBHOOK_ACK_ON_FAILURE = _env_flag("WEBHOOK_ACK_ON_FAILURE", True)

# CORS: origines autorisées pour le client storefront
CLIENT_ORIGINS = [
    o.strip()
    for o in (os.getenv("CLIENT_ORIGINS") or os.getenv("CLIENT_ORIGIN") or "http://localhost:5173").split(",")
    if o.strip()
]

# Supabase: URL et clé service (le backend écrit les commandes, pas de RLS utilisateur)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")
SUPABASE_TIMEOUT_SECONDS = _env_int("SUPABASE_TIMEOUT_SECONDS", 10)

# Normalisations utiles
if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

ORDERS_LIST_LIMIT = _env_int("ORDERS_LIST_LIMIT", 100)

PORT = _env_int("PORT", 3000)
LOG_LEVEL = _clean_env(os.getenv("LOG_LEVEL") or "info").lower()
