"""Storage backend factory: selects TinyDB or Supabase based on settings.

Usage in FastAPI routes::

    from creator_toolkit.platform.storage_factory import get_tool_context

    @router.get("/jobs")
    def list_jobs(ctx: ToolContext = Depends(get_tool_context)):
        return ctx.jobs.list_jobs(user_id)
"""

from typing import Iterator

import requests

from creator_toolkit.features.vendors.assemblyai import AssemblyAIClient
from creator_toolkit.features.vendors.replicate import ReplicateClient
from creator_toolkit.platform.config import Settings, get_settings
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)


def build_context(settings: Settings | None = None) -> ToolContext:
    """Wire adapters and vendor clients for the configured backend."""
    settings = settings or get_settings()
    session = requests.Session()
    vendors = {
        "replicate": ReplicateClient(
            settings.replicate_api_token, session=session, timeout=settings.http_timeout
        ),
        "assemblyai": AssemblyAIClient(
            settings.assemblyai_api_key, session=session, timeout=settings.http_timeout
        ),
    }

    resources = []
    if settings.storage_backend == "supabase":
        from creator_toolkit.platform.supabase_adapter import (
            SupabaseCreditsAdapter,
            SupabaseJobsAdapter,
            SupabaseObjectStorage,
            create_supabase_client,
        )

        client = create_supabase_client(
            settings.supabase_url, settings.supabase_service_role_key
        )
        jobs = SupabaseJobsAdapter(client)
        credits = SupabaseCreditsAdapter(client, monthly_credits=settings.monthly_credits)
        objects = SupabaseObjectStorage(client, settings.supabase_url)
    elif settings.storage_backend == "tinydb":
        from tinydb import TinyDB

        from creator_toolkit.platform.local_object_storage import LocalObjectStorage
        from creator_toolkit.platform.tinydb_credits_adapter import TinyDBCreditsAdapter
        from creator_toolkit.platform.tinydb_jobs_adapter import TinyDBJobsAdapter

        db = TinyDB(settings.tinydb_path)
        resources.append(db)
        jobs = TinyDBJobsAdapter(db)
        credits = TinyDBCreditsAdapter(db, monthly_credits=settings.monthly_credits)
        objects = LocalObjectStorage(settings.media_root, settings.public_media_url)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND '{settings.storage_backend}'")

    logger.info("tool_context_built", backend=settings.storage_backend)
    return ToolContext(
        jobs=jobs,
        credits=credits,
        objects=objects,
        vendors=vendors,
        session=session,
        settings=settings,
        resources=resources,
    )


def get_tool_context() -> Iterator[ToolContext]:
    """FastAPI dependency yielding a per-request ToolContext."""
    ctx = build_context()
    try:
        yield ctx
    finally:
        ctx.close()
