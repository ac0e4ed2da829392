"""Settings with explicit argument > env var > defaults precedence."""

import os
from dataclasses import dataclass


DEFAULT_DNS_SUFFIX = "vault.azure.net"
DEFAULT_API_VERSION = "2015-06-01"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PORT = 8200


@dataclass
class Settings:
    """Configuration for the vault client, the CLI and the API server."""
    dns_suffix: str = ""
    api_version: str = ""
    access_token: str = ""
    timeout: float = 0.0
    log_dir: str = ""
    host: str = ""
    port: int = 0

    def __post_init__(self):
        # Apply env var defaults for anything not passed explicitly
        if not self.dns_suffix:
            self.dns_suffix = os.getenv("VAULTKEYS_DNS_SUFFIX", DEFAULT_DNS_SUFFIX)
        if not self.api_version:
            self.api_version = os.getenv("VAULTKEYS_API_VERSION", DEFAULT_API_VERSION)
        if not self.access_token:
            self.access_token = os.getenv("VAULTKEYS_ACCESS_TOKEN", "")
        if not self.timeout:
            env_timeout = os.getenv("VAULTKEYS_TIMEOUT")
            self.timeout = float(env_timeout) if env_timeout else DEFAULT_TIMEOUT
        if not self.log_dir:
            self.log_dir = os.getenv("VAULTKEYS_LOG_DIR", "")
        if not self.host:
            self.host = os.getenv("VAULTKEYS_HOST", "127.0.0.1")
        if not self.port:
            env_port = os.getenv("VAULTKEYS_PORT")
            self.port = int(env_port) if env_port else DEFAULT_PORT

        self.dns_suffix = self.dns_suffix.strip(".")
