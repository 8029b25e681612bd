"""
Bar inventory API server

Connects the shared database, then serves the routes in `routes.bar_api`.
If the database cannot be reached at startup the server does not come up.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from db.config import get_statement_timeout
from db.database import build_database
from db.driver import DatabaseDriver, StatementDriver
from routes.bar_api import router
from services.credential_verifier import CredentialVerifier
from services.query_executor import QueryExecutor

logger = logging.getLogger(__name__)


def create_app(driver: Optional[StatementDriver] = None, timeout: Optional[float] = None) -> FastAPI:
    """Build the app around `driver`; defaults to the environment-configured database."""
    if driver is None:
        driver = DatabaseDriver(build_database())
        timeout = get_statement_timeout() if timeout is None else timeout

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            await driver.start()
        except Exception:
            logger.exception("startup.database_unavailable")
            raise
        logger.info("Database connected...")
        try:
            yield
        finally:
            await driver.stop()

    app = FastAPI(title="Bar Inventory API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    executor = QueryExecutor(driver, timeout=timeout)
    app.state.driver = driver
    app.state.executor = executor
    app.state.verifier = CredentialVerifier(executor)
    app.include_router(router)
    return app


def run() -> None:
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8080"))
    logger.info("starting on port: %s", port)
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    run()
