"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from studio.core.config import get_settings
from studio.core.errors import StartupError
from studio.core.logging import setup_logging

# Setup logging
logger = setup_logging("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the studio controller at startup.

    A missing Gemini credential is fatal: the app refuses to start.
    """
    settings = get_settings()
    if not settings.gemini_api_key:
        logger.error("GEMINI_API_KEY environment variable is not set")
        raise StartupError("GEMINI_API_KEY environment variable is not set")

    from studio.services.generation import GenerationClient
    from studio.services.studio import StudioController

    client = GenerationClient(api_key=settings.gemini_api_key, model=settings.image_model)
    app.state.studio = StudioController(
        client=client,
        download_dir=Path(settings.download_dir),
        download_stagger_seconds=settings.download_stagger_ms / 1000,
    )
    logger.info("Studio initialized with model %s", settings.image_model)

    yield
    # Session state is in-memory only; nothing to flush.
    app.state.studio = None


# Create FastAPI app
app = FastAPI(
    title="Monstah GenAI Studio",
    description="Story, item swap, face swap and background removal with Gemini image generation",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[f"http://localhost:{settings.frontend_port}"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
from studio.api.studio import router as studio_router  # noqa: E402

app.include_router(studio_router)


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Always returns HTTP 200; check `services.studio` for actual status.
    """
    studio = getattr(request.app.state, "studio", None)

    logger.info("Health check requested")
    return {
        "status": "ok",
        "version": app.version,
        "services": {
            "studio": "ok" if studio is not None else "unavailable",
        },
    }


def run() -> None:
    """Serve the app with uvicorn using the configured host/port."""
    import uvicorn

    cfg = get_settings()
    uvicorn.run("studio.main:app", host=cfg.backend_host, port=cfg.backend_port)
