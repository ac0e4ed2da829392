"""Domain models for key creation and import."""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import ClassVar, Optional, Union
from urllib.parse import urlparse

from .errors import ValidationError


class KeyOperationMode(str, Enum):
    """Whether a key is generated inside the vault or uploaded to it."""
    CREATE = "create"
    IMPORT = "import"


class Destination(str, Enum):
    """Where the vault stores the key."""
    HSM = "HSM"
    SOFTWARE = "Software"

    @classmethod
    def parse(cls, value: Union["Destination", str, None]) -> Optional["Destination"]:
        """Case-insensitive lookup. Empty input means no destination."""
        if value is None or isinstance(value, Destination):
            return value
        text = value.strip()
        if not text:
            return None
        for member in cls:
            if member.value.lower() == text.lower():
                return member
        allowed = ", ".join(m.value for m in cls)
        raise ValidationError(f"Invalid destination '{value}'. Allowed values: {allowed}")


class JsonWebKeyType(str, Enum):
    """JSON web key types the vault accepts for RSA keys."""
    RSA = "RSA"
    RSA_HSM = "RSA-HSM"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(text: str) -> bytes:
    pad = "=" * ((4 - len(text) % 4) % 4)
    return base64.urlsafe_b64decode((text + pad).encode("ascii"))


def to_unix_time(value: Optional[datetime]) -> Optional[int]:
    """Seconds since the epoch. Naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def from_unix_time(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass(frozen=True)
class KeyAttributes:
    """Policy attached to a key."""
    enabled: bool = True
    expires: Optional[datetime] = None
    not_before: Optional[datetime] = None
    key_type: Optional[JsonWebKeyType] = None
    key_ops: Optional[tuple[str, ...]] = None

    def to_wire(self) -> dict:
        """The `attributes` object of a vault request."""
        attrs: dict = {"enabled": self.enabled}
        if self.expires is not None:
            attrs["exp"] = to_unix_time(self.expires)
        if self.not_before is not None:
            attrs["nbf"] = to_unix_time(self.not_before)
        return attrs

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "expires": self.expires.isoformat() if self.expires else None,
            "not_before": self.not_before.isoformat() if self.not_before else None,
            "key_type": self.key_type.value if self.key_type else None,
            "key_ops": list(self.key_ops) if self.key_ops is not None else None,
        }


# JWK members holding big-endian integers or opaque bytes
_RSA_PUBLIC_FIELDS = ("n", "e")
_RSA_PRIVATE_FIELDS = ("d", "dp", "dq", "qi", "p", "q")


@dataclass(frozen=True)
class JsonWebKey:
    """Key material in JSON web key form.

    RSA components are raw big-endian bytes. `t` is the opaque blob of a
    BYOK package and is sent to the vault as `key_hsm`.
    """
    kty: JsonWebKeyType
    kid: Optional[str] = None
    key_ops: Optional[tuple[str, ...]] = None
    n: Optional[bytes] = None
    e: Optional[bytes] = None
    d: Optional[bytes] = None
    dp: Optional[bytes] = None
    dq: Optional[bytes] = None
    qi: Optional[bytes] = None
    p: Optional[bytes] = None
    q: Optional[bytes] = None
    t: Optional[bytes] = field(default=None, repr=False)

    @property
    def has_private_key(self) -> bool:
        return self.d is not None or self.t is not None

    def _encode(self, names: tuple[str, ...]) -> dict:
        result: dict = {"kty": self.kty.value}
        if self.kid:
            result["kid"] = self.kid
        if self.key_ops is not None:
            result["key_ops"] = list(self.key_ops)
        for name in names:
            value = getattr(self, name)
            if value is not None:
                result[name] = _b64url(value)
        return result

    def to_dict(self) -> dict:
        """Full wire form, private components included."""
        result = self._encode(_RSA_PUBLIC_FIELDS + _RSA_PRIVATE_FIELDS)
        if self.t is not None:
            result["key_hsm"] = _b64url(self.t)
        return result

    def public_dict(self) -> dict:
        return self._encode(_RSA_PUBLIC_FIELDS)

    @classmethod
    def from_dict(cls, data: dict) -> "JsonWebKey":
        components = {
            name: _b64url_decode(data[name])
            for name in _RSA_PUBLIC_FIELDS + _RSA_PRIVATE_FIELDS
            if data.get(name)
        }
        if data.get("key_hsm"):
            components["t"] = _b64url_decode(data["key_hsm"])
        key_ops = data.get("key_ops")
        return cls(
            kty=JsonWebKeyType(data.get("kty", JsonWebKeyType.RSA.value)),
            kid=data.get("kid"),
            key_ops=tuple(key_ops) if key_ops is not None else None,
            **components,
        )


@dataclass(frozen=True)
class CreateKeyRequest:
    """Generate a new key inside the vault."""
    mode: ClassVar[KeyOperationMode] = KeyOperationMode.CREATE

    vault_name: str
    key_name: str
    attributes: KeyAttributes


@dataclass(frozen=True)
class ImportKeyRequest:
    """Upload externally generated key material."""
    mode: ClassVar[KeyOperationMode] = KeyOperationMode.IMPORT

    vault_name: str
    key_name: str
    attributes: KeyAttributes
    material: JsonWebKey = field(repr=False)
    # None lets the vault pick the storage
    import_to_hsm: Optional[bool] = None


KeyCreationRequest = Union[CreateKeyRequest, ImportKeyRequest]


@dataclass
class KeyBundle:
    """Key descriptor returned by the vault after a create or import."""
    vault_name: str
    name: str
    version: Optional[str]
    key: JsonWebKey
    attributes: KeyAttributes
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def key_id(self) -> Optional[str]:
        return self.key.kid

    @classmethod
    def from_response(cls, vault_name: str, payload: dict) -> "KeyBundle":
        """Build a bundle from the service's JSON response body."""
        key_data = payload.get("key") or {}
        key = JsonWebKey.from_dict(key_data)
        name, version = _split_key_id(key.kid)

        attrs = payload.get("attributes") or {}
        attributes = KeyAttributes(
            enabled=attrs.get("enabled", True),
            expires=from_unix_time(attrs.get("exp")),
            not_before=from_unix_time(attrs.get("nbf")),
            key_type=key.kty,
            key_ops=key.key_ops,
        )
        return cls(
            vault_name=vault_name,
            name=name,
            version=version,
            key=key,
            attributes=attributes,
            created=from_unix_time(attrs.get("created")),
            updated=from_unix_time(attrs.get("updated")),
            tags=payload.get("tags") or {},
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "vault_name": self.vault_name,
            "name": self.name,
            "version": self.version,
            "id": self.key_id,
            "key": self.key.public_dict(),
            "attributes": self.attributes.to_dict(),
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
            "tags": self.tags,
        }


def _split_key_id(kid: Optional[str]) -> tuple[str, Optional[str]]:
    """Name and version from `https://<vault>/keys/<name>/<version>`."""
    if not kid:
        return "", None
    parts = [p for p in urlparse(kid).path.split("/") if p]
    if len(parts) < 2 or parts[0] != "keys":
        return "", None
    version = parts[2] if len(parts) > 2 else None
    return parts[1], version
