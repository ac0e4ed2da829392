"""Command descriptions for end-to-end test runs."""

from .command_info import AddKeyCommandInfo, CommandInfo, CommandParam, to_option_name
from .extensions import SetVMAccessExtensionCommandInfo

__all__ = [
    'AddKeyCommandInfo',
    'CommandInfo',
    'CommandParam',
    'SetVMAccessExtensionCommandInfo',
    'to_option_name',
]
