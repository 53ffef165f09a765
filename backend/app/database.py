"""Document store and service wiring for the perkyjobs backend."""

from typing import Annotated

from fastapi import Depends

from perkyjobs.commerce.jobs.service import JobService
from perkyjobs.commerce.payments.settlement import SettlementService
from perkyjobs.commerce.payments.x402 import X402Client
from perkyjobs.commerce.profiles import ProfileService
from perkyjobs.commerce.store import DocumentStore, InMemoryDocumentStore
from perkyjobs.commerce.supabase_store import SupabaseDocumentStore
from supabase import Client, create_client

from .config import Settings, get_settings
from .logging_config import get_logger

logger = get_logger("api.database")

_supabase_client: Client | None = None
_local_store: InMemoryDocumentStore | None = None
_x402_client: X402Client | None = None


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Get cached Supabase client."""
    global _supabase_client
    if _supabase_client is None:
        if settings is None:
            settings = get_settings()
        # Prefer new secret key, fall back to legacy service_role_key
        api_key = settings.supabase_secret_key or settings.supabase_service_role_key
        if not api_key:
            raise ValueError("Either SUPABASE_SECRET_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")
        _supabase_client = create_client(settings.supabase_url, api_key)
    return _supabase_client


def get_store(settings: Annotated[Settings, Depends(get_settings)]) -> DocumentStore:
    """FastAPI dependency for the document store.

    Without SUPABASE_URL the service runs on a process-local in-memory store.
    """
    global _local_store
    if settings.supabase_url:
        return SupabaseDocumentStore(get_supabase_client(settings))
    if _local_store is None:
        logger.warning("SUPABASE_URL not set, using in-memory document store")
        _local_store = InMemoryDocumentStore()
    return _local_store


Store = Annotated[DocumentStore, Depends(get_store)]


def get_x402_client(settings: Annotated[Settings, Depends(get_settings)]) -> X402Client:
    """Shared x402 client; its HTTP connection pool lives for the process."""
    global _x402_client
    if _x402_client is None:
        _x402_client = X402Client(settings.commerce_config())
    return _x402_client


def close_x402_client() -> None:
    global _x402_client
    if _x402_client is not None:
        _x402_client.close()
        _x402_client = None


# =============================================================================
# Service Dependencies
# =============================================================================


def get_profile_service(store: Store) -> ProfileService:
    return ProfileService(store)


def get_job_service(store: Store) -> JobService:
    return JobService(store, profiles=ProfileService(store))


def get_settlement_service(
    store: Store,
    payments: Annotated[X402Client, Depends(get_x402_client)],
) -> SettlementService:
    return SettlementService(
        jobs=JobService(store),
        profiles=ProfileService(store),
        payments=payments,
    )


Profiles = Annotated[ProfileService, Depends(get_profile_service)]
Jobs = Annotated[JobService, Depends(get_job_service)]
Settlement = Annotated[SettlementService, Depends(get_settlement_service)]
