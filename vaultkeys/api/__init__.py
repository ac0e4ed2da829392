"""HTTP API for adding keys to a vault."""

from .keys import router as keys_router
from .server import create_app

__all__ = [
    'create_app',
    'keys_router',
]
