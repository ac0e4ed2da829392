"""
PKCS#12 (PFX) certificate bundles.

The private RSA key is exported into JSON web key components. The
certificates in the bundle are not uploaded.
"""

from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from ..errors import DecryptionError, UnsupportedFormatError
from ..logging import get_logger
from ..models import JsonWebKey, JsonWebKeyType

logger = get_logger("webkey")

PFX_EXTENSIONS = (".pfx", ".p12")


def _int_to_bytes(value: int) -> bytes:
    """Unsigned big-endian encoding with no leading zero bytes."""
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def rsa_private_key_to_jwk(private_key: rsa.RSAPrivateKey) -> JsonWebKey:
    """Export an RSA private key as a software (RSA) JSON web key."""
    numbers = private_key.private_numbers()
    public = numbers.public_numbers
    return JsonWebKey(
        kty=JsonWebKeyType.RSA,
        n=_int_to_bytes(public.n),
        e=_int_to_bytes(public.e),
        d=_int_to_bytes(numbers.d),
        dp=_int_to_bytes(numbers.dmp1),
        dq=_int_to_bytes(numbers.dmq1),
        qi=_int_to_bytes(numbers.iqmp),
        p=_int_to_bytes(numbers.p),
        q=_int_to_bytes(numbers.q),
    )


def _load_private_key(path: Path, data: bytes, secret: Optional[bytes]):
    try:
        private_key, _certificate, _additional = pkcs12.load_key_and_certificates(data, secret)
        return private_key
    except ValueError as e:
        # cryptography reports wrong passwords and corrupt bundles alike
        if secret is None:
            raise DecryptionError(
                f"PFX file '{path}' could not be opened without a password: {e}"
            ) from e
        error = e

    # Unprotected bundles ignore the password
    try:
        private_key, _certificate, _additional = pkcs12.load_key_and_certificates(data, None)
    except ValueError:
        raise DecryptionError(
            f"PFX file '{path}' could not be decrypted with the supplied password: {error}"
        ) from error
    logger.debug(f"{path.name} is not password protected; ignoring the supplied password")
    return private_key


class PfxConverter:
    """Loads the private key out of a password-protected PFX bundle."""

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in PFX_EXTENSIONS

    def try_convert(self, path: Path, password: Optional[str] = None) -> Optional[JsonWebKey]:
        if not self.can_process(path):
            return None

        data = path.read_bytes()
        if not data:
            raise UnsupportedFormatError(f"Invalid key blob in PFX file '{path}'")

        secret = password.encode("utf-8") if password else None
        private_key = _load_private_key(path, data, secret)

        if private_key is None:
            raise UnsupportedFormatError(f"PFX file '{path}' does not contain a private key")
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise UnsupportedFormatError(
                f"PFX file '{path}' contains a {type(private_key).__name__}; only RSA keys can be imported"
            )

        logger.debug(f"Loaded {private_key.key_size}-bit RSA key from {path.name}")
        return rsa_private_key_to_jwk(private_key)
