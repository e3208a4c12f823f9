"""FastAPI application for the creator toolkit."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from creator_toolkit import __version__
from creator_toolkit.features.assets.routes import router as assets_router
from creator_toolkit.features.credits.routes import router as credits_router
from creator_toolkit.features.jobs.routes import router as jobs_router
from creator_toolkit.features.segment_images.routes import router as segment_images_router
from creator_toolkit.features.thumbnails.routes import router as thumbnails_router
from creator_toolkit.features.transcripts.routes import router as transcripts_router
from creator_toolkit.platform.config import get_settings
from creator_toolkit.platform.logging_config import configure_logging

configure_logging()

app = FastAPI(title="Creator Toolkit API", version=__version__)

# Allow CORS for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(jobs_router)
app.include_router(credits_router)
app.include_router(assets_router)
app.include_router(thumbnails_router)
app.include_router(segment_images_router)
app.include_router(transcripts_router)

# Relocated assets are served from disk when running on the local backend
_settings = get_settings()
if _settings.storage_backend == "tinydb":
    app.mount(
        "/media",
        StaticFiles(directory=_settings.media_root, check_dir=False),
        name="media",
    )


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}
