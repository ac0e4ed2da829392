"""
Named parameter lists for invoking commands from tests.

A CommandInfo holds a command name and its parameters in the order they
were added. `to_argv()` turns them into command-line arguments:

- True becomes a bare switch; False and None are dropped
- lists and tuples become one option followed by every value
- datetimes are written in ISO 8601
- objects with a `name` attribute (a VM, for instance) are written by name
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

COMMAND_NAMES = {
    "add_key": "add-key",
    "set_vm_access_extension": "Set-AzureVMAccessExtension",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_option_name(name: str) -> str:
    """PascalCase parameter name to a --kebab-case option."""
    return "--" + _CAMEL_BOUNDARY.sub("-", name).lower()


def _render_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        # str enums
        return value.value
    name = getattr(value, "name", None)
    if isinstance(name, str):
        return name
    return str(value)


@dataclass
class CommandParam:
    """One named parameter."""
    name: str
    value: Any = True

    def to_argv(self) -> list[str]:
        if self.value is None or self.value is False:
            return []
        option = to_option_name(self.name)
        if self.value is True:
            return [option]
        if isinstance(self.value, (list, tuple)):
            return [option, *(_render_value(v) for v in self.value)]
        return [option, _render_value(self.value)]


@dataclass
class CommandInfo:
    """A command name plus its ordered parameters."""
    command_name: str = ""
    params: list[CommandParam] = field(default_factory=list)

    def add(self, name: str, value: Any = True) -> "CommandInfo":
        self.params.append(CommandParam(name, value))
        return self

    def add_if(self, name: str, value: Any) -> "CommandInfo":
        """Add the parameter only when the value is non-empty / true."""
        if value:
            self.add(name, value)
        return self

    def get(self, name: str) -> Optional[Any]:
        for param in self.params:
            if param.name == name:
                return param.value
        return None

    @property
    def param_names(self) -> list[str]:
        return [p.name for p in self.params]

    def to_argv(self) -> list[str]:
        argv = [self.command_name]
        for param in self.params:
            argv.extend(param.to_argv())
        return argv


class AddKeyCommandInfo(CommandInfo):
    """Parameters for an `add-key` invocation."""

    def __init__(
        self,
        vault_name: str,
        name: str,
        key_file_path: Optional[str] = None,
        key_file_password: Optional[str] = None,
        destination: Optional[str] = None,
        disable: bool = False,
        key_ops: Optional[Iterable[str]] = None,
        expires: Optional[datetime] = None,
        not_before: Optional[datetime] = None,
    ):
        super().__init__(COMMAND_NAMES["add_key"])
        self.add("VaultName", vault_name)
        self.add("Name", name)
        self.add_if("KeyFilePath", key_file_path)
        self.add_if("KeyFilePassword", key_file_password)
        self.add_if("Destination", destination)
        self.add_if("Disable", disable)
        if key_ops:
            self.add("KeyOps", list(key_ops))
        self.add_if("Expires", expires)
        self.add_if("NotBefore", not_before)
