"""Environment-driven settings.

Values are read once per process from the environment (``.env`` is loaded
through python-dotenv). Tests build ``Settings`` directly instead of touching
the environment.
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    env: str = "production"

    # "tinydb" (local files) or "supabase"
    storage_backend: str = "tinydb"
    tinydb_path: str = "toolkit.db"
    media_root: str = "media"
    public_media_url: str = "http://localhost:8000/media"

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""

    replicate_api_token: str = ""
    assemblyai_api_key: str = ""
    image_model: str = "black-forest-labs/flux-kontext-pro"
    http_timeout: float = 60.0

    monthly_credits: int = 600

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            env=os.getenv("ENV", "production"),
            storage_backend=os.getenv("STORAGE_BACKEND", "tinydb"),
            tinydb_path=os.getenv("TINYDB_PATH", "toolkit.db"),
            media_root=os.getenv("MEDIA_ROOT", "media"),
            public_media_url=os.getenv(
                "PUBLIC_MEDIA_URL", "http://localhost:8000/media"
            ).rstrip("/"),
            supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
            supabase_service_role_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
            replicate_api_token=os.getenv("REPLICATE_API_TOKEN", ""),
            assemblyai_api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
            image_model=os.getenv("IMAGE_MODEL", "black-forest-labs/flux-kontext-pro"),
            http_timeout=float(os.getenv("HTTP_TIMEOUT", "60")),
            monthly_credits=int(os.getenv("MONTHLY_CREDITS", "600")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once and cache them for the process lifetime."""
    return Settings.from_env()
