"""FastAPI application exposing the add-key command."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .. import __version__
from ..client import VaultClient
from ..config import Settings
from ..keys.command import KeyVaultClient
from ..logging import get_logger
from .keys import router as keys_router

logger = get_logger("api")


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[KeyVaultClient] = None,
) -> FastAPI:
    """Create the API app. A supplied client is used as is and not closed."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if client is None:
            owned = VaultClient(settings)
            app.state.vault_client = owned
        else:
            app.state.vault_client = client
        logger.info(f"API ready (vault DNS suffix: {settings.dns_suffix})")
        try:
            yield
        finally:
            if owned is not None:
                await owned.close()

    app = FastAPI(title="vaultkeys", version=__version__, lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.include_router(keys_router)

    return app
