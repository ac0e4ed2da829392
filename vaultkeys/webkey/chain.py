"""Fixed-priority chain of key file converters."""

from pathlib import Path
from typing import Iterable, Optional, Protocol

from ..errors import UnsupportedFormatError
from ..logging import get_logger
from ..models import JsonWebKey
from .byok import BYOK_EXTENSIONS, ByokConverter
from .pfx import PFX_EXTENSIONS, PfxConverter

logger = get_logger("webkey")


class WebKeyConverter(Protocol):
    """A single key file format.

    `try_convert` returns None when the file is not in this format and
    raises when it is but cannot be decoded.
    """

    def try_convert(self, path: Path, password: Optional[str] = None) -> Optional[JsonWebKey]:
        ...


class ConverterChain:
    """Tries each converter in order; the first one that accepts the file wins."""

    def __init__(self, converters: Iterable[WebKeyConverter]):
        self.converters = list(converters)

    def convert(self, path: Path, password: Optional[str] = None) -> JsonWebKey:
        path = Path(path)
        for converter in self.converters:
            key = converter.try_convert(path, password)
            if key is not None:
                logger.info(f"Converted {path.name} with {type(converter).__name__} ({key.kty.value})")
                return key

        supported = ", ".join(BYOK_EXTENSIONS + PFX_EXTENSIONS)
        raise UnsupportedFormatError(
            f"Unsupported key file format '{path.suffix or path.name}'. Supported: {supported}"
        )


def create_converter_chain() -> ConverterChain:
    """The default chain: BYOK packages first, then PFX bundles."""
    return ConverterChain([ByokConverter(), PfxConverter()])
