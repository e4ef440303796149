"""
Exception hierarchy for Web3 SIP Auth.

All package-specific exceptions inherit from Web3AuthError so hosts can
catch everything raised by the library in one place.  RpcVerifier.verify
never lets these escape: it turns them into AuthDecision values.
"""

from __future__ import annotations

from typing import Any


class Web3AuthError(Exception):
    """Base exception for all Web3 SIP Auth errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(Web3AuthError):
    """
    Configuration is missing or invalid.

    Raised when:
    - The RPC endpoint URL is empty
    - The contract address is not 0x + 40 hex characters
    - Timeout or field limits are not positive numbers
    """

    pass


class EncodingPreconditionError(Web3AuthError):
    """
    A credential field cannot be represented in the contract call.

    Raised instead of truncating: a shortened field would encode a
    different, valid-looking call and change what the contract hashes.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field


class TransportError(Web3AuthError):
    """
    The JSON-RPC round trip did not produce a usable response body.

    Raised by transports on DNS, connect and timeout failures.
    """

    pass


class ContractError(Web3AuthError):
    """
    The node answered with a JSON-RPC error object.

    ``unknown_user`` is set when the contract reverted with its
    "User not found" sentinel.
    """

    def __init__(
        self,
        message: str,
        unknown_user: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.unknown_user = unknown_user


class DigestHeaderError(Web3AuthError):
    """A SIP Authorization header is missing a required digest field."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
