"""Key creation and import."""

from .builder import (
    AddKeyParameters,
    KeyCreationRequestBuilder,
    derive_import_to_hsm,
    derive_key_type,
    resolve_mode,
)
from .command import AddKeyCommand, CommandResult

__all__ = [
    'AddKeyCommand',
    'AddKeyParameters',
    'CommandResult',
    'KeyCreationRequestBuilder',
    'derive_import_to_hsm',
    'derive_key_type',
    'resolve_mode',
]
