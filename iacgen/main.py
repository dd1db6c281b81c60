import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from iacgen.core.config import load_settings
from iacgen.core.logging import configure_logging
from iacgen.core.state import AppState, build_state
from iacgen.api.routes import router as api_router

configure_logging()
log = logging.getLogger(__name__)


def create_app(state: AppState | None = None) -> FastAPI:
    """Build the API. A prepared ``state`` skips configuration and wiring (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        # Startup
        log.info("Starting API server...")
        owned = state is None
        try:
            app.state.services = state if state is not None else build_state(load_settings())
            log.info("API server startup complete")
        except Exception as e:
            log.error("API startup failed: %s", e, exc_info=True)
            raise
        yield
        # Shutdown
        log.info("Shutting down API server...")
        if owned:
            await app.state.services.aclose()

    app = FastAPI(
        title="oam-iac-generator",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    import uvicorn
    settings = load_settings()
    uvicorn.run("iacgen.main:app", host=settings.api_host, port=settings.api_port)
