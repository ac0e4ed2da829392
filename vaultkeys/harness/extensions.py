"""VM extension commands."""

from typing import Any, Optional

from .command_info import COMMAND_NAMES, CommandInfo


class SetVMAccessExtensionCommandInfo(CommandInfo):
    """Parameters for setting the VM access extension on a VM.

    Only VM is always passed; the rest are added when set.
    """

    def __init__(
        self,
        vm: Any,
        user_name: Optional[str] = None,
        password: Optional[str] = None,
        version: Optional[str] = None,
        reference_name: Optional[str] = None,
        disable: bool = False,
    ):
        super().__init__(COMMAND_NAMES["set_vm_access_extension"])
        self.add("VM", vm)
        self.add_if("UserName", user_name)
        self.add_if("Password", password)
        self.add_if("Version", version)
        self.add_if("ReferenceName", reference_name)
        self.add_if("Disable", disable)
