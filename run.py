#!/usr/bin/env python3
"""
Web3 SIP Auth -- Blockchain-backed SIP Digest Verification
===========================================================

Asks a smart contract for the digest it expects and compares it with
the response a SIP client sent.

Usage:
  python run.py info                                        Endpoint, contract, selector
  python run.py selftest                                    Offline Keccak/ABI checks
  python run.py selector "getDigestHash(string,string,string,string,string)"
  python run.py encode --username alice --realm sip.example.com --uri sip:sip.example.com --nonce abc123
  python run.py verify --header 'Digest username="alice", …'
  python run.py verify --username alice --realm … --uri … --nonce … --response …

Configuration (environment, overridable per command):
  WEB3_AUTH_RPC_URL           JSON-RPC endpoint (default: Oasis Sapphire testnet)
  WEB3_AUTH_CONTRACT_ADDRESS  Contract exposing getDigestHash
  WEB3_AUTH_TIMEOUT           eth_call timeout in seconds (default: 10)
  WEB3_AUTH_MAX_FIELD_BYTES   Longest accepted credential field (default: 255)
"""

import sys
import argparse
import dataclasses
import logging
from pathlib import Path

# ── Imports ───────────────────────────────────────────────────────────────

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from web3_auth.central_config import PROJECT_VERSION, load_config  # noqa: E402
from web3_auth.commands import (  # noqa: E402
    cmd_encode,
    cmd_info,
    cmd_selector,
    cmd_selftest,
    cmd_verify,
)
from web3_auth.digest_header import DEFAULT_METHOD  # noqa: E402
from web3_auth.exceptions import Web3AuthError  # noqa: E402
from web3_auth.logging import configure_logging  # noqa: E402


# ── CLI Parser ────────────────────────────────────────────────────────────


def _add_endpoint_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--rpc-url", type=str, default=None, help="JSON-RPC endpoint URL")
    parser.add_argument(
        "--contract", type=str, default=None, help="Contract address (0x…) exposing getDigestHash"
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="eth_call timeout in seconds (default: 10)"
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="web3-auth",
        description=f"Web3 SIP Auth v{PROJECT_VERSION} — SIP digest verification via eth_call",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py selftest
  python run.py verify --header 'Digest username="alice", realm="sip.example.com", nonce="abc123", uri="sip:sip.example.com", response="…"'
  python run.py verify --username alice --realm sip.example.com --uri sip:sip.example.com \\
                       --nonce abc123 --response 6f1c… --method INVITE

Contract interface:
  getDigestHash(string username, string realm, string method,
                string uri, string nonce) view returns (bytes32)
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"Web3 SIP Auth v{PROJECT_VERSION}"
    )
    parser.add_argument(
        "--log-level", type=str, default="WARNING", help="DEBUG, INFO, WARNING, ERROR (default: WARNING)"
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit log lines as JSON")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    info_p = sub.add_parser("info", help="Show endpoint, contract and selector")
    _add_endpoint_args(info_p)

    sub.add_parser("selftest", help="Offline Keccak-256 and ABI checks")

    selector_p = sub.add_parser("selector", help="Function selector for a canonical signature")
    selector_p.add_argument("signature", help='e.g. "balanceOf(address)"')

    encode_p = sub.add_parser("encode", help="Print getDigestHash call data")
    encode_p.add_argument("--username", required=True)
    encode_p.add_argument("--realm", required=True)
    encode_p.add_argument("--method", default=DEFAULT_METHOD, help="SIP method (default: REGISTER)")
    encode_p.add_argument("--uri", required=True)
    encode_p.add_argument("--nonce", required=True)

    verify_p = sub.add_parser("verify", help="Verify digest credentials against the contract")
    verify_p.add_argument("--header", type=str, default=None, help="Raw Authorization header value")
    verify_p.add_argument(
        "--url-decoded", action="store_true", help="Header is URL-encoded (%%XX, '+')"
    )
    verify_p.add_argument("--method", default=DEFAULT_METHOD, help="SIP method (default: REGISTER)")
    verify_p.add_argument("--username", default=None)
    verify_p.add_argument("--realm", default=None)
    verify_p.add_argument("--uri", default=None)
    verify_p.add_argument("--nonce", default=None)
    verify_p.add_argument("--response", default=None, help="Client digest response (32 hex)")
    _add_endpoint_args(verify_p)

    return parser


def _resolve_config(args: argparse.Namespace):
    config = load_config()
    overrides = {}
    if getattr(args, "rpc_url", None):
        overrides["rpc_url"] = args.rpc_url
    if getattr(args, "contract", None):
        overrides["contract_address"] = args.contract
    if getattr(args, "timeout", None) is not None:
        overrides["timeout_seconds"] = args.timeout
    return dataclasses.replace(config, **overrides) if overrides else config


# ── Main ──────────────────────────────────────────────────────────────────


def main(argv=None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(getattr(logging, args.log_level.upper(), logging.WARNING), args.json_logs)

    try:
        if args.command == "selftest":
            return cmd_selftest()
        if args.command == "selector":
            return cmd_selector(args.signature)
        if args.command == "encode":
            return cmd_encode(args.username, args.realm, args.method, args.uri, args.nonce)

        config = _resolve_config(args)
        if args.command == "info":
            return cmd_info(config)
        if args.command == "verify":
            return cmd_verify(
                config,
                header=args.header,
                method=args.method,
                url_decoded=args.url_decoded,
                username=args.username,
                realm=args.realm,
                uri=args.uri,
                nonce=args.nonce,
                response=args.response,
            )
    except Web3AuthError as exc:
        print(f"❌ {exc}")
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n❌ Cancelled.")
        sys.exit(130)
