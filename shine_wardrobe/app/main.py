"""
ShineWardrobe API v1.0.0
Weather-aware outfit recommendations from a scraped product catalog.

STATIC ASSET ROUTES:
--------------------
/static/*   - Frontend static files
/           - Frontend index.html

API ROUTES:
-----------
/api/auth/*, /api/users/*, /api/products/*, /api/weather/*,
/api/recommendations/*, /health, /metrics
"""
import logging
from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse

from shine_wardrobe.app.container import ServiceContainer, build_container
from shine_wardrobe.app.routes import router, VERSION
from shine_wardrobe.config import Settings, get_settings
from shine_wardrobe.config.llm_config import LLMProvider
from shine_wardrobe.llm import LLMClient
from shine_wardrobe.observability import is_logging_enabled

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

FRONTEND_DIR = Path(__file__).parent.parent / "frontend"


async def prepare_llm_backend(container: ServiceContainer) -> None:
    """Make sure a self-hosted backend is reachable and has its model."""
    client = container.recommender.llm_client
    if container.llm_config.provider != LLMProvider.OLLAMA or not isinstance(client, LLMClient):
        return

    if not await client.is_available():
        logger.warning("⚠ Ollama unavailable, recommendations will use the fallback")
        return

    if await client.ensure_model():
        logger.info(f"Ollama model ready: {container.llm_config.model}")
    else:
        logger.warning(f"⚠ Ollama model {container.llm_config.model} could not be installed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("=" * 50)
    logger.info(f"ShineWardrobe API v{VERSION} Starting...")
    logger.info("=" * 50)

    container: Optional[ServiceContainer] = getattr(app.state, "container", None)
    owns_database = container is None
    if container is None:
        container = build_container(app.state.settings)
        app.state.container = container

    if owns_database:
        mongo_connected = container.database.connect()
        logger.info(f"MongoDB: {'connected' if mongo_connected else 'disconnected'}")

    logger.info(f"Environment: {container.settings.environment}")
    logger.info(f"Active LLM: {container.llm_config.provider.value} ({container.llm_config.model})")
    await prepare_llm_backend(container)
    logger.info(f"Weather: {'live' if container.weather_service.is_configured() else 'mock'}")
    logger.info(f"Logging: {'enabled' if is_logging_enabled() else 'disabled'}")

    logger.info("✓ Service ready! http://localhost:8000")
    logger.info("✓ Metrics available at /metrics")
    logger.info("=" * 50)

    yield

    logger.info("Service shutting down...")
    if owns_database:
        container.database.close()


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (from env if None)
        container: Pre-built services; built at startup if None
    """
    settings = settings or (container.settings if container else get_settings())

    app = FastAPI(
        title="ShineWardrobe API",
        description="Weather-aware outfit recommendations",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    if container is not None:
        app.state.container = container

    # ============================================================================
    # MIDDLEWARE
    # ============================================================================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origin.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.mount("/static", StaticFiles(directory=str(FRONTEND_DIR)), name="static")
    app.include_router(router)

    @app.get("/")
    async def serve_frontend():
        """Serve the main frontend index.html."""
        return FileResponse(FRONTEND_DIR / "index.html")

    return app


app = create_app()
