"""BYOK ("bring your own key") packages produced by the vault vendor's HSM tools."""

from pathlib import Path
from typing import Optional

from ..errors import UnsupportedFormatError
from ..logging import get_logger
from ..models import JsonWebKey, JsonWebKeyType

logger = get_logger("webkey")

BYOK_EXTENSIONS = (".byok",)


class ByokConverter:
    """Wraps the raw BYOK blob; the vault HSM unpacks it on import."""

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in BYOK_EXTENSIONS

    def try_convert(self, path: Path, password: Optional[str] = None) -> Optional[JsonWebKey]:
        if not self.can_process(path):
            return None

        blob = path.read_bytes()
        if not blob:
            raise UnsupportedFormatError(f"Invalid key blob in BYOK file '{path}'")

        logger.debug(f"Read {len(blob)} byte BYOK blob from {path.name}")
        return JsonWebKey(kty=JsonWebKeyType.RSA_HSM, t=blob)
