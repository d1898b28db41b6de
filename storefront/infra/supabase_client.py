from typing import Callable, Optional
from supabase import create_client, Client, ClientOptions

from storefront import config

_service_supabase: Optional[Client] = None

def get_service_supabase() -> Client:
    """
    Client Supabase 'service-role' partagé (PostgREST, sans RLS).
    - Créé paresseusement au premier appel, puis réutilisé (pool HTTP interne).
    - Timeout PostgREST borné par SUPABASE_TIMEOUT_SECONDS.
    """
    global _service_supabase
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_KEY:
        raise RuntimeError("SUPABASE_URL/SUPABASE_SERVICE_KEY manquants pour get_service_supabase()")
    if _service_supabase is None:
        _service_supabase = create_client(
            config.SUPABASE_URL,
            config.SUPABASE_SERVICE_KEY,
            options=ClientOptions(postgrest_client_timeout=config.SUPABASE_TIMEOUT_SECONDS),
        )
    return _service_supabase

def get_db() -> Client:
    """
    Dépendance FastAPI: handle de stockage injecté dans chaque opération.
    Les tests la remplacent via app.dependency_overrides[get_db].
    """
    return get_service_supabase()

def get_db_provider() -> Callable[[], Client]:
    """
    Variante paresseuse de get_db: retourne la fabrique sans l'appeler.
    Utilisée par le webhook, qui n'ouvre le stockage qu'après vérification de la signature.
    """
    return get_service_supabase
