"""
Project Configuration: RPC endpoint, contract address, version
===============================================================

The verifier takes a Web3AuthConfig value at construction time.  Nothing
here is process-global state: two verifiers pointed at different
endpoints can run side by side.

Defaults match the reference deployment on the Oasis Sapphire testnet.
"""

import math
import os
import re
from dataclasses import dataclass
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path
from typing import Mapping, Optional

from web3_auth.exceptions import ConfigurationError

# Version: single source of truth is pyproject.toml
try:
    PROJECT_VERSION = version("web3-sip-auth")
except PackageNotFoundError:
    # Dev / CI: package not installed, read pyproject.toml directly
    _toml = Path(__file__).resolve().parent.parent / "pyproject.toml"
    _m = (
        re.search(r'version\s*=\s*"([^"]+)"', _toml.read_text())
        if _toml.exists()
        else None
    )
    PROJECT_VERSION = _m.group(1) if _m else "0.0.0-dev"
PROJECT_NAME = "Web3 SIP Auth"

DEFAULT_RPC_URL = "https://testnet.sapphire.oasis.dev"
DEFAULT_CONTRACT_ADDRESS = "0x1b55e67Ce5118559672Bf9EC0564AE3A46C41000"
DEFAULT_TIMEOUT_SECONDS = 10.0

# Longest accepted credential field, in UTF-8 bytes.  Longer fields are
# rejected with EncodingPreconditionError, never shortened.
DEFAULT_MAX_FIELD_BYTES = 255

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


@dataclass(frozen=True)
class Web3AuthConfig:
    """Where to send eth_call and how long to wait for it."""

    rpc_url: str = DEFAULT_RPC_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_field_bytes: int = DEFAULT_MAX_FIELD_BYTES

    def __post_init__(self) -> None:
        if not isinstance(self.rpc_url, str) or not self.rpc_url.strip():
            raise ConfigurationError("rpc_url must be a non-empty string.")
        if not isinstance(self.contract_address, str) or not ADDRESS_PATTERN.match(
            self.contract_address
        ):
            raise ConfigurationError(
                "contract_address must be 0x followed by 40 hex characters.",
                {"contract_address": self.contract_address},
            )
        if not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ConfigurationError(
                "timeout_seconds must be a positive finite number.",
                {"timeout_seconds": self.timeout_seconds},
            )
        if self.max_field_bytes <= 0:
            raise ConfigurationError(
                "max_field_bytes must be positive.",
                {"max_field_bytes": self.max_field_bytes},
            )


def load_config(environ: Optional[Mapping[str, str]] = None) -> Web3AuthConfig:
    """Load configuration from environment variables.

    WEB3_AUTH_RPC_URL, WEB3_AUTH_CONTRACT_ADDRESS, WEB3_AUTH_TIMEOUT and
    WEB3_AUTH_MAX_FIELD_BYTES override the reference-deployment defaults.
    """
    env = os.environ if environ is None else environ

    rpc_url = env.get("WEB3_AUTH_RPC_URL", DEFAULT_RPC_URL).strip()
    contract_address = env.get("WEB3_AUTH_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS).strip()
    try:
        timeout = float(env.get("WEB3_AUTH_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))
        max_field_bytes = int(env.get("WEB3_AUTH_MAX_FIELD_BYTES", str(DEFAULT_MAX_FIELD_BYTES)))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

    return Web3AuthConfig(
        rpc_url=rpc_url,
        contract_address=contract_address,
        timeout_seconds=timeout,
        max_field_bytes=max_field_bytes,
    )
