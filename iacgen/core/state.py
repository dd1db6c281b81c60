from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from pathlib import Path
import httpx
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.engine import Engine
from iacgen.core.config import Settings
from iacgen.core.engine import Orchestrator
from iacgen.db.session import create_db_engine, create_session_factory
from iacgen.db.store import RequestStore
from iacgen.generation.client import GenerationClient
from iacgen.storage.base import StorageBackend
from iacgen.storage.factory import create_storage

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass
class AppState:
    """Process-wide services, built once at startup and shared by every request."""
    settings: Settings
    http: httpx.AsyncClient
    storage: StorageBackend
    store: RequestStore | None
    orchestrator: Orchestrator
    engine: Engine | None = None

    async def aclose(self) -> None:
        await self.http.aclose()
        if self.engine is not None:
            self.engine.dispose()


def wait_for_database(engine: Engine, max_retries: int = 30, retry_delay: float = 1.0) -> None:
    """Wait for the database to be available."""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("Database connection successful")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                log.warning("Database not ready, retrying in %s seconds (attempt %d/%d): %s",
                            retry_delay, attempt + 1, max_retries, e)
                time.sleep(retry_delay)
            else:
                log.error("Database connection failed after %d attempts", max_retries)
                raise


def run_migrations(database_url: str) -> None:
    """Run Alembic migrations to head."""
    log.info("Running database migrations...")
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, "head")
    log.info("Database migrations completed successfully")


def build_state(
    settings: Settings,
    storage: StorageBackend | None = None,
    http: httpx.AsyncClient | None = None,
) -> AppState:
    """Wire all services from settings. Raises ConfigError for bad storage configuration."""
    storage = storage or create_storage(settings)

    engine = create_db_engine(settings.database_url)
    wait_for_database(engine)
    if settings.run_migrations:
        run_migrations(settings.database_url)
    store = RequestStore(create_session_factory(engine))

    # no timeouts on outbound calls: a stalled service stalls only its own request
    http = http or httpx.AsyncClient(timeout=None, follow_redirects=True)
    generator = GenerationClient(http, settings.generation_service_url)
    orchestrator = Orchestrator(
        http=http,
        generator=generator,
        storage=storage,
        store=store,
        workspaces_dir=settings.workspaces_dir,
    )
    log.info("Storage provider: %s", storage.provider)
    return AppState(
        settings=settings,
        http=http,
        storage=storage,
        store=store,
        orchestrator=orchestrator,
        engine=engine,
    )
