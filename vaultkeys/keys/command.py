"""The add-key command: build the request, send it, report the outcome."""

from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import error_details
from ..logging import get_logger
from ..models import (
    CreateKeyRequest,
    ImportKeyRequest,
    JsonWebKey,
    KeyAttributes,
    KeyBundle,
    KeyCreationRequest,
)
from .builder import AddKeyParameters, KeyCreationRequestBuilder

logger = get_logger("keys")


class KeyVaultClient(Protocol):
    """The two vault operations the command needs."""

    async def create_key(
        self, vault_name: str, key_name: str, attributes: KeyAttributes
    ) -> KeyBundle:
        ...

    async def import_key(
        self,
        vault_name: str,
        key_name: str,
        attributes: KeyAttributes,
        material: JsonWebKey,
        import_to_hsm: Optional[bool] = None,
    ) -> KeyBundle:
        ...


@dataclass
class CommandResult:
    """Outcome of one invocation: a bundle, or a structured error."""
    bundle: Optional[KeyBundle] = None
    error: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.ok:
            return {"success": True, "key": self.bundle.to_dict()}
        return {"success": False, "error": self.error}


def _context(request: KeyCreationRequest) -> dict:
    return {"vault_name": request.vault_name, "key_name": request.key_name}


class AddKeyCommand:
    """Creates a key in a vault or imports one from a local file."""

    def __init__(
        self,
        client: KeyVaultClient,
        builder: Optional[KeyCreationRequestBuilder] = None,
    ):
        self.client = client
        self.builder = builder or KeyCreationRequestBuilder()

    async def execute(self, params: AddKeyParameters) -> KeyBundle:
        """Run the command; any failure propagates to the caller."""
        request = self.builder.build(params)
        return await self.dispatch(request)

    async def dispatch(self, request: KeyCreationRequest) -> KeyBundle:
        if isinstance(request, CreateKeyRequest):
            logger.info(f"Creating key '{request.key_name}' in vault '{request.vault_name}'", extra=_context(request))
            return await self.client.create_key(
                request.vault_name,
                request.key_name,
                request.attributes,
            )
        if isinstance(request, ImportKeyRequest):
            logger.info(f"Importing key '{request.key_name}' into vault '{request.vault_name}'", extra=_context(request))
            return await self.client.import_key(
                request.vault_name,
                request.key_name,
                request.attributes,
                request.material,
                request.import_to_hsm,
            )
        raise TypeError(f"Unknown key request type: {type(request).__name__}")

    async def invoke(self, params: AddKeyParameters) -> CommandResult:
        """Run the command and turn any failure into a structured error."""
        try:
            bundle = await self.execute(params)
        except Exception as e:
            details = error_details(e)
            logger.error(f"add-key failed [{details['category']}]: {details['message']}")
            return CommandResult(error=details)

        logger.info(f"Key '{bundle.name}' version {bundle.version} is ready")
        return CommandResult(bundle=bundle)
