from supabase import create_client, Client

from postex_bridge.config import Settings, get_settings


def get_supabase(settings: Settings | None = None) -> Client:
    settings = settings or get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("Supabase credentials missing from .env (SUPABASE_URL / SUPABASE_KEY)")
    return create_client(settings.supabase_url, settings.supabase_key)
