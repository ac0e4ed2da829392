"""Shared fixtures: key files, a recording converter chain and a fake vault client."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from vaultkeys.models import JsonWebKey, JsonWebKeyType, KeyAttributes, KeyBundle

PFX_PASSWORD = "p@ss"


def _self_signed(private_key, common_name: str = "vaultkeys-test") -> x509.Certificate:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(private_key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def key_files(tmp_path_factory, rsa_key) -> dict[str, Path]:
    """PFX/BYOK files covering the converter cases."""
    base = tmp_path_factory.mktemp("keys")
    cert = _self_signed(rsa_key)

    files = {
        "pfx": base / "key.pfx",
        "pfx_open": base / "open.p12",
        "pfx_cert_only": base / "cert-only.pfx",
        "pfx_ec": base / "ec.pfx",
        "pfx_corrupt": base / "corrupt.pfx",
        "byok": base / "key.byok",
        "byok_empty": base / "empty.byok",
        "pem": base / "key.pem",
    }

    files["pfx"].write_bytes(pkcs12.serialize_key_and_certificates(
        b"vaultkeys", rsa_key, cert, None,
        serialization.BestAvailableEncryption(PFX_PASSWORD.encode("utf-8")),
    ))
    files["pfx_open"].write_bytes(pkcs12.serialize_key_and_certificates(
        b"vaultkeys", rsa_key, cert, None, serialization.NoEncryption(),
    ))
    files["pfx_cert_only"].write_bytes(pkcs12.serialize_key_and_certificates(
        b"vaultkeys", None, cert, None, serialization.NoEncryption(),
    ))

    ec_key = ec.generate_private_key(ec.SECP256R1())
    files["pfx_ec"].write_bytes(pkcs12.serialize_key_and_certificates(
        b"vaultkeys", ec_key, _self_signed(ec_key), None,
        serialization.BestAvailableEncryption(PFX_PASSWORD.encode("utf-8")),
    ))
    files["pfx_corrupt"].write_bytes(b"definitely not pkcs12")

    files["byok"].write_bytes(b"\x01\x02\x03BYOK-TRANSFER-BLOB")
    files["byok_empty"].write_bytes(b"")
    files["pem"].write_bytes(rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))
    return files


SAMPLE_MATERIAL = JsonWebKey(kty=JsonWebKeyType.RSA, n=b"\xc0\xff\xee", e=b"\x01\x00\x01", d=b"\x42")


class RecordingChain:
    """Converter chain stand-in that records its calls."""

    def __init__(self, material: JsonWebKey = SAMPLE_MATERIAL):
        self.material = material
        self.calls: list[tuple[Path, Optional[str]]] = []

    def convert(self, path, password=None) -> JsonWebKey:
        self.calls.append((Path(path), password))
        return self.material


class FakeVaultClient:
    """In-memory vault client recording what it was asked to do."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: list[tuple] = []
        self.closed = False

    def _bundle(self, vault_name: str, key_name: str, attributes: KeyAttributes, kty) -> KeyBundle:
        key = JsonWebKey(
            kty=kty,
            kid=f"https://{vault_name}.vault.azure.net/keys/{key_name}/0123abcd",
            key_ops=attributes.key_ops,
            n=b"\xc0\xff\xee",
            e=b"\x01\x00\x01",
        )
        return KeyBundle(
            vault_name=vault_name,
            name=key_name,
            version="0123abcd",
            key=key,
            attributes=attributes,
        )

    async def create_key(self, vault_name, key_name, attributes):
        self.calls.append(("create", vault_name, key_name, attributes))
        if self.error:
            raise self.error
        return self._bundle(vault_name, key_name, attributes, attributes.key_type or JsonWebKeyType.RSA)

    async def import_key(self, vault_name, key_name, attributes, material, import_to_hsm=None):
        self.calls.append(("import", vault_name, key_name, attributes, material, import_to_hsm))
        if self.error:
            raise self.error
        return self._bundle(vault_name, key_name, attributes, material.kty)

    async def close(self):
        self.closed = True


@pytest.fixture
def recording_chain() -> RecordingChain:
    return RecordingChain()


@pytest.fixture
def fake_client() -> FakeVaultClient:
    return FakeVaultClient()


@pytest.fixture
def pfx_path(tmp_path) -> Path:
    """A file that only needs to exist; the recording chain never parses it."""
    path = tmp_path / "key.pfx"
    path.write_bytes(b"pfx")
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "VAULTKEYS_DNS_SUFFIX",
        "VAULTKEYS_API_VERSION",
        "VAULTKEYS_ACCESS_TOKEN",
        "VAULTKEYS_TIMEOUT",
        "VAULTKEYS_LOG_DIR",
        "VAULTKEYS_HOST",
        "VAULTKEYS_PORT",
        "VAULTKEYS_KEY_FILE_PASSWORD",
    ):
        monkeypatch.delenv(name, raising=False)
