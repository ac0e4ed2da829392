"""Error taxonomy for key creation and import."""

from typing import Optional


class VaultKeysError(Exception):
    """Base class for every failure surfaced by an add-key invocation."""

    category = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"category": self.category, "message": self.message}


class ValidationError(VaultKeysError, ValueError):
    """Bad or missing caller parameters."""

    category = "validation"


class KeyFileNotFoundError(VaultKeysError, FileNotFoundError):
    """The key file path does not resolve to an existing file."""

    category = "file_not_found"

    def __init__(self, path: str):
        super().__init__(f"Key file '{path}' does not exist")
        self.path = path


class UnsupportedFormatError(VaultKeysError):
    """No converter in the chain can turn the file into key material."""

    category = "unsupported_format"


class DecryptionError(VaultKeysError):
    """The key file could not be decrypted with the supplied password."""

    category = "decryption"


class RemoteServiceError(VaultKeysError):
    """Failure reported by (or while reaching) the vault service."""

    category = "remote_service"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.code:
            result["code"] = self.code
        return result


def error_details(exc: BaseException) -> dict:
    """Structured failure (category + message) for any exception."""
    if isinstance(exc, VaultKeysError):
        return exc.to_dict()
    return {"category": "internal", "message": f"{type(exc).__name__}: {exc}"}
