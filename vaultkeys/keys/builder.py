"""
Builds the request for adding a key to a vault.

Two modes share one parameter surface:
1. Create a new HSM or software key, optionally with given attributes
2. Import key material from a local BYOK or PFX file, optionally with
   given attributes and a storage destination

The mode is decided once, from whether a key file path was supplied.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from ..errors import KeyFileNotFoundError, ValidationError
from ..logging import get_logger
from ..models import (
    CreateKeyRequest,
    Destination,
    ImportKeyRequest,
    JsonWebKey,
    JsonWebKeyType,
    KeyAttributes,
    KeyCreationRequest,
    KeyOperationMode,
)
from ..webkey import ConverterChain, create_converter_chain

logger = get_logger("keys")


@dataclass
class AddKeyParameters:
    """Caller input for one add-key invocation."""
    vault_name: str
    key_name: str
    key_file_path: Optional[str] = None
    key_file_password: Optional[str] = None
    destination: Union[Destination, str, None] = None
    disabled: bool = False
    key_ops: Optional[Iterable[str]] = None
    expires: Optional[datetime] = None
    not_before: Optional[datetime] = None

    def __repr__(self) -> str:
        # Never echo the password
        password = "***" if self.key_file_password else None
        return (
            f"AddKeyParameters(vault_name={self.vault_name!r}, key_name={self.key_name!r}, "
            f"key_file_path={self.key_file_path!r}, key_file_password={password!r}, "
            f"destination={self.destination!r}, disabled={self.disabled!r})"
        )


def resolve_mode(params: AddKeyParameters) -> KeyOperationMode:
    """Import when a key file path is given, create otherwise."""
    if params.key_file_path and params.key_file_path.strip():
        return KeyOperationMode.IMPORT
    return KeyOperationMode.CREATE


def derive_key_type(destination: Optional[Destination]) -> Optional[JsonWebKeyType]:
    if destination is None:
        return None
    return JsonWebKeyType.RSA_HSM if destination is Destination.HSM else JsonWebKeyType.RSA


def derive_import_to_hsm(destination: Optional[Destination]) -> Optional[bool]:
    if destination is None:
        return None
    return destination is Destination.HSM


def build_attributes(
    params: AddKeyParameters,
    destination: Optional[Destination],
) -> KeyAttributes:
    key_ops = params.key_ops
    if isinstance(key_ops, str):
        key_ops = (key_ops,)
    elif key_ops is not None:
        key_ops = tuple(key_ops)
    return KeyAttributes(
        enabled=not params.disabled,
        expires=params.expires,
        not_before=params.not_before,
        key_type=derive_key_type(destination),
        key_ops=key_ops,
    )


def resolve_key_file(key_file_path: str) -> Path:
    """Absolute path of the key file; raises if nothing is there."""
    path = Path(key_file_path.strip()).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    if not path.is_file():
        raise KeyFileNotFoundError(key_file_path)
    return path


def _require(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} must not be empty")
    return value.strip()


class KeyCreationRequestBuilder:
    """Validates add-key parameters and produces a KeyCreationRequest."""

    def __init__(self, converter_chain: Optional[ConverterChain] = None):
        self.converter_chain = converter_chain or create_converter_chain()

    def build(self, params: AddKeyParameters) -> KeyCreationRequest:
        vault_name = _require(params.vault_name, "Vault name")
        key_name = _require(params.key_name, "Key name")

        mode = resolve_mode(params)
        destination = Destination.parse(params.destination)

        if mode is KeyOperationMode.CREATE and destination is None:
            raise ValidationError(
                "Destination is required when creating a key (HSM or Software)"
            )

        attributes = build_attributes(params, destination)

        if mode is KeyOperationMode.CREATE:
            logger.debug(f"Create request for {vault_name}/{key_name} ({destination.value})")
            return CreateKeyRequest(
                vault_name=vault_name,
                key_name=key_name,
                attributes=attributes,
            )

        material = self.load_key_material(params.key_file_path, params.key_file_password)
        logger.debug(
            f"Import request for {vault_name}/{key_name} "
            f"(destination: {destination.value if destination else 'vault default'})"
        )
        return ImportKeyRequest(
            vault_name=vault_name,
            key_name=key_name,
            attributes=attributes,
            material=material,
            import_to_hsm=derive_import_to_hsm(destination),
        )

    def load_key_material(self, key_file_path: str, password: Optional[str]) -> JsonWebKey:
        path = resolve_key_file(key_file_path)
        return self.converter_chain.convert(path, password or None)
