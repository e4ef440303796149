"""
Blockchain Digest Verification
===============================

One verification attempt is a single synchronous chain:

    credentials → call data → eth_call → expected digest → compare

The contract computes the digest it expects for (username, realm,
method, uri, nonce); the client's ``response`` must match the first
32 hex characters of the returned bytes32.

Every exit path yields an AuthDecision.  Transport, contract, parse and
encoding failures are returned as values, never raised, and nothing is
retried or cached: nonces are per request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from web3_auth.abi import DIGEST_HASH_ARGUMENTS, build_digest_hash_call
from web3_auth.central_config import Web3AuthConfig
from web3_auth.exceptions import ContractError, EncodingPreconditionError, TransportError
from web3_auth.logging import get_logger
from web3_auth.rpc_helpers import (
    HttpJsonRpcTransport,
    build_eth_call_payload,
    expected_digest,
    extract_call_result,
    post_json_async,
    serialize_payload,
)

logger = get_logger("verifier")

RpcCaller = Callable[[str, str, float], str]
AsyncRpcCaller = Callable[[str, str, float], Awaitable[str]]


# ── Data Model ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DigestCredentials:
    """Digest fields of one SIP authentication attempt."""

    username: str
    realm: str
    method: str
    uri: str
    nonce: str
    response: str

    def call_arguments(self) -> Tuple[str, str, str, str, str]:
        """Contract arguments in declaration order."""
        return (self.username, self.realm, self.method, self.uri, self.nonce)


class AuthStatus(Enum):
    AUTHORIZED = "authorized"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


class FailureKind(Enum):
    CONTRACT_ERROR = "contract_error"
    UNKNOWN_USER = "unknown_user"
    MISMATCH = "mismatch"
    ENCODING_PRECONDITION = "encoding_precondition"
    TRANSPORT = "transport"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class AuthDecision:
    """Outcome of one attempt: Authorized, Rejected(reason) or TransportError(reason)."""

    status: AuthStatus
    reason: str = ""
    kind: Optional[FailureKind] = None

    @classmethod
    def authorized(cls) -> "AuthDecision":
        return cls(AuthStatus.AUTHORIZED)

    @classmethod
    def rejected(cls, reason: str, kind: FailureKind) -> "AuthDecision":
        return cls(AuthStatus.REJECTED, reason, kind)

    @classmethod
    def transport_error(
        cls, reason: str, kind: FailureKind = FailureKind.TRANSPORT
    ) -> "AuthDecision":
        return cls(AuthStatus.TRANSPORT_ERROR, reason, kind)

    @property
    def is_authorized(self) -> bool:
        return self.status is AuthStatus.AUTHORIZED

    def to_route_code(self) -> int:
        """SIP routing result: 1 on success, -1 on any failure.

        Which failure occurred is deliberately not visible at this boundary.
        """
        return 1 if self.is_authorized else -1

    def __str__(self) -> str:
        if self.reason:
            return f"{self.status.value}: {self.reason}"
        return self.status.value


# ── Verifier ────────────────────────────────────────────────────────────


def _check_field_lengths(credentials: DigestCredentials, limit: int) -> None:
    for name, value in zip(DIGEST_HASH_ARGUMENTS, credentials.call_arguments()):
        if not isinstance(value, str):
            raise EncodingPreconditionError(f"field {name} is not a string", field=name)
        size = len(value.encode("utf-8"))
        if size > limit:
            raise EncodingPreconditionError(
                f"field too long: {name}",
                field=name,
                details={"bytes": size, "limit": limit},
            )


def _transport_reason(exc: Exception) -> str:
    if isinstance(exc, TransportError):
        return exc.message
    if isinstance(exc, TimeoutError):
        return "RPC request timed out"
    return f"RPC request failed: {exc}"


class RpcVerifier:
    """Checks SIP digest credentials against getDigestHash on a contract.

    Args:
        config: Endpoint, contract address, timeout and field limit.
        rpc_caller: ``(url, body, timeout) -> str`` transport for verify().
            Defaults to an HttpJsonRpcTransport owned by this verifier.
        async_rpc_caller: Awaitable transport for verify_async().
            Defaults to post_json_async.
    """

    def __init__(
        self,
        config: Web3AuthConfig,
        rpc_caller: Optional[RpcCaller] = None,
        async_rpc_caller: Optional[AsyncRpcCaller] = None,
    ) -> None:
        self.config = config
        self._owns_transport = rpc_caller is None
        self._rpc_caller = rpc_caller if rpc_caller is not None else HttpJsonRpcTransport()
        self._async_rpc_caller = async_rpc_caller or post_json_async

    def close(self) -> None:
        """Release the default transport; injected callers are left alone."""
        if self._owns_transport:
            self._rpc_caller.close()

    def __enter__(self) -> "RpcVerifier":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def build_request_body(self, credentials: DigestCredentials) -> str:
        """Serialized eth_call body for ``credentials``.

        Raises EncodingPreconditionError for fields over the configured limit.
        """
        _check_field_lengths(credentials, self.config.max_field_bytes)
        call_data = build_digest_hash_call(*credentials.call_arguments())
        payload = build_eth_call_payload(self.config.contract_address, call_data.hex())
        return serialize_payload(payload)

    def verify(self, credentials: DigestCredentials) -> AuthDecision:
        """Run one blocking verification attempt."""
        logger.info(
            "Calling blockchain for user %s at %s", credentials.username, self.config.rpc_url
        )
        try:
            body = self.build_request_body(credentials)
        except EncodingPreconditionError as exc:
            return self._finish(credentials, self._encoding_failure(exc))

        try:
            raw = self._rpc_caller(self.config.rpc_url, body, self.config.timeout_seconds)
        except (TransportError, OSError) as exc:
            logger.error("RPC transport failure: %s", exc)
            return self._finish(credentials, AuthDecision.transport_error(_transport_reason(exc)))

        return self._finish(credentials, self.decide(credentials, raw))

    async def verify_async(self, credentials: DigestCredentials) -> AuthDecision:
        """verify() for hosts running an asyncio loop."""
        logger.info(
            "Calling blockchain for user %s at %s", credentials.username, self.config.rpc_url
        )
        try:
            body = self.build_request_body(credentials)
        except EncodingPreconditionError as exc:
            return self._finish(credentials, self._encoding_failure(exc))

        try:
            raw = await self._async_rpc_caller(
                self.config.rpc_url, body, self.config.timeout_seconds
            )
        except (TransportError, OSError) as exc:
            logger.error("RPC transport failure: %s", exc)
            return self._finish(credentials, AuthDecision.transport_error(_transport_reason(exc)))

        return self._finish(credentials, self.decide(credentials, raw))

    @staticmethod
    def decide(credentials: DigestCredentials, raw_body: str) -> AuthDecision:
        """Map a raw eth_call response body to a decision."""
        logger.debug("Blockchain response: %s", raw_body)
        try:
            result = extract_call_result(raw_body)
        except ContractError as exc:
            if exc.unknown_user:
                logger.info("User %s not found in blockchain contract", credentials.username)
                return AuthDecision.rejected("unknown user", FailureKind.UNKNOWN_USER)
            logger.error("Error from blockchain contract: %s", raw_body)
            return AuthDecision.rejected("contract error", FailureKind.CONTRACT_ERROR)
        except TransportError:
            logger.error("Could not extract result from blockchain response")
            return AuthDecision.transport_error(
                "malformed response", FailureKind.MALFORMED_RESPONSE
            )

        expected = expected_digest(result)
        logger.debug("Expected response: %s, actual response: %s", expected, credentials.response)
        if expected == credentials.response:
            return AuthDecision.authorized()
        return AuthDecision.rejected("response mismatch", FailureKind.MISMATCH)

    @staticmethod
    def _encoding_failure(exc: EncodingPreconditionError) -> AuthDecision:
        logger.error("Refusing to encode credentials: %s", exc)
        return AuthDecision.rejected(exc.message, FailureKind.ENCODING_PRECONDITION)

    @staticmethod
    def _finish(credentials: DigestCredentials, decision: AuthDecision) -> AuthDecision:
        logger.info(
            "Blockchain authentication %s for user %s",
            decision,
            credentials.username,
            extra={
                "auth_user": credentials.username,
                "auth_status": decision.status.value,
                "auth_kind": decision.kind.value if decision.kind else None,
            },
        )
        return decision
