"""
SIP Authorization header parsing (RFC 3261 §22.4, RFC 2617 §3.2.2).

    Authorization: Digest username="alice", realm="sip.example.com",
        nonce="abc123", uri="sip:sip.example.com", response="…"

Only the fields the contract call needs are extracted.  The request
method is not part of the header; callers pass it in.
"""

import urllib.parse
import urllib.request

from web3_auth.exceptions import DigestHeaderError
from web3_auth.verifier import DigestCredentials

DEFAULT_METHOD = "REGISTER"
REQUIRED_FIELDS = ("username", "realm", "uri", "nonce", "response")


def parse_digest_params(header: str) -> dict:
    """Parse the key=value list of a Digest header into a dict.

    Keys are lower-cased; quoted values are unquoted.
    """
    value = header.strip()
    if value.lower().startswith("authorization:"):
        value = value.split(":", 1)[1].strip()
    scheme, _, params = value.partition(" ")
    if scheme.lower() != "digest":
        raise DigestHeaderError("Authorization header is not a Digest credential.")
    try:
        parsed = urllib.request.parse_keqv_list(urllib.request.parse_http_list(params))
    except (ValueError, IndexError) as exc:
        raise DigestHeaderError(f"Malformed Digest parameter list: {exc}") from exc
    return {key.strip().lower(): val for key, val in parsed.items()}


def parse_authorization_header(
    header: str, method: str = DEFAULT_METHOD, url_decoded: bool = False
) -> DigestCredentials:
    """Build DigestCredentials from a SIP Authorization header value.

    Args:
        header: Header value, with or without the ``Authorization:`` name.
        method: SIP request method; REGISTER when the caller has none.
        url_decoded: Decode %XX escapes and '+' first, for headers that
            arrive form-encoded (e.g. through an HTTP bridge).

    Raises:
        DigestHeaderError: Scheme is not Digest or a required field is missing.
    """
    if url_decoded:
        header = urllib.parse.unquote_plus(header)
    params = parse_digest_params(header)
    for field in REQUIRED_FIELDS:
        if not params.get(field):
            raise DigestHeaderError(f"Invalid or missing {field}", field=field)

    return DigestCredentials(
        username=params["username"],
        realm=params["realm"],
        method=method or DEFAULT_METHOD,
        uri=params["uri"],
        nonce=params["nonce"],
        response=params["response"],
    )
