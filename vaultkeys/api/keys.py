"""API endpoint for creating or importing vault keys."""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, SecretStr

from ..errors import VaultKeysError
from ..keys import AddKeyCommand, AddKeyParameters
from ..keys.command import KeyVaultClient
from ..logging import get_logger

logger = get_logger("api.keys")

router = APIRouter(prefix="/api/keys", tags=["keys"])

# HTTP status per error category
STATUS_BY_CATEGORY = {
    "validation": 400,
    "file_not_found": 404,
    "unsupported_format": 422,
    "decryption": 422,
    "remote_service": 502,
}


# --- Request Models ---

class _KeyBodyBase(BaseModel):
    """Fields shared by both modes."""
    vault_name: str = Field(..., min_length=1, description="Vault name or full vault URL")
    key_name: str = Field(..., min_length=1, description="Key name")
    disabled: bool = Field(default=False, description="Create the key in disabled state")
    key_ops: Optional[list[str]] = Field(
        default=None,
        description="Allowed operations, e.g. encrypt, decrypt, sign, verify, wrapKey, unwrapKey. All when omitted.",
    )
    expires: Optional[datetime] = Field(default=None, description="Expiry time (UTC when no offset given)")
    not_before: Optional[datetime] = Field(default=None, description="Time before which the key can't be used")


class CreateKeyBody(_KeyBodyBase):
    """Request to generate a new key in the vault."""
    mode: Literal["create"]
    destination: Optional[str] = Field(default=None, description="HSM or Software (required when creating)")


class ImportKeyBody(_KeyBodyBase):
    """Request to import key material from a file on the server."""
    mode: Literal["import"]
    key_file_path: str = Field(..., min_length=1, description="Path to a .byok or .pfx file on the server")
    key_file_password: Optional[SecretStr] = Field(default=None, description="Password for PFX files")
    destination: Optional[str] = Field(default=None, description="HSM or Software; the vault decides when omitted")


AddKeyBody = Annotated[Union[CreateKeyBody, ImportKeyBody], Field(discriminator="mode")]


def get_vault_client(request: Request) -> KeyVaultClient:
    """The vault client stored on the app at startup."""
    return request.app.state.vault_client


def _to_parameters(body: Union[CreateKeyBody, ImportKeyBody]) -> AddKeyParameters:
    params = AddKeyParameters(
        vault_name=body.vault_name,
        key_name=body.key_name,
        destination=body.destination,
        disabled=body.disabled,
        key_ops=body.key_ops,
        expires=body.expires,
        not_before=body.not_before,
    )
    if isinstance(body, ImportKeyBody):
        params.key_file_path = body.key_file_path
        if body.key_file_password is not None:
            params.key_file_password = body.key_file_password.get_secret_value()
    return params


# --- Endpoints ---

@router.post("")
async def add_key(
    body: AddKeyBody,
    client: KeyVaultClient = Depends(get_vault_client),
):
    """
    Create a new key, or import one from a local BYOK/PFX file.

    `mode` selects the operation. `destination` is required for `create`
    and optional for `import`.
    """
    command = AddKeyCommand(client)
    try:
        bundle = await command.execute(_to_parameters(body))
    except VaultKeysError as e:
        status_code = STATUS_BY_CATEGORY.get(e.category, 500)
        logger.warning(f"add-key ({body.mode}) {body.vault_name}/{body.key_name} failed: {e.message}")
        raise HTTPException(status_code=status_code, detail=e.to_dict())

    logger.info(f"add-key ({body.mode}) {body.vault_name}/{body.key_name} -> version {bundle.version}")
    return bundle.to_dict()
