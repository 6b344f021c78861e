"""
tokenbridge/signer.py
Short-lived OpenAPI access tokens.

HMAC-SHA256 over a canonical, sorted parameter string:

    accessKey=<id>&appCode=<app>&datasetCode=<ds>&timeStamp=<ms>

keyed with the secret key, digest encoded as standard base64 (padded).
A token is valid for TOKEN_VALIDITY_MS after the signed timestamp.
Must stay bit-exact with the data service's own verifier.

Pure functions: no I/O, no module state, safe to call from any thread.
Secret key never in logs, exceptions, or returned values.
"""

import base64
import hashlib
import hmac
import time
from typing import Dict, Mapping, Optional

from tokenbridge.errors import InvalidArgument
from tokenbridge.models.record import SignedToken, SigningRequest

TOKEN_VALIDITY_MS = 10 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def canonical_string(params: Mapping[str, str]) -> str:
    """
    Sort by field name (ordinal order, not locale collation), render name=value,
    join with '&'. Values are used verbatim: no URL encoding.
    """
    return "&".join(f"{name}={params[name]}" for name in sorted(params))


def signing_params(
    application_id: str,
    dataset_id:     str,
    access_key_id:  str,
    timestamp:      int,
) -> Dict[str, str]:
    return {
        "accessKey":   access_key_id,
        "appCode":     application_id,
        "datasetCode": dataset_id,
        "timeStamp":   str(int(timestamp)),
    }


def hmac_sha256_b64(message: str, key: str) -> str:
    digest = hmac.new(key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(request: SigningRequest) -> SignedToken:
    """
    Derive a token bound to (access key id, app, dataset, timestamp).
    Raises InvalidArgument for missing inputs: nothing is signed in that case.
    """
    if not request.application_id:
        raise InvalidArgument("applicationId is required")
    if not request.dataset_id:
        raise InvalidArgument("datasetId is required")
    if not request.access_key_id or not request.secret_key:
        raise InvalidArgument("accessKey/secretKey is required")

    timestamp = now_ms() if request.timestamp is None else int(request.timestamp)

    string_to_sign = canonical_string(signing_params(
        request.application_id,
        request.dataset_id,
        request.access_key_id,
        timestamp,
    ))
    token = hmac_sha256_b64(string_to_sign, request.secret_key)

    return SignedToken(
        token      = token,
        timestamp  = timestamp,
        expires_at = timestamp + TOKEN_VALIDITY_MS,
    )


def verify_token(
    token:          str,
    timestamp:      int,
    application_id: str,
    dataset_id:     str,
    access_key_id:  str,
    secret_key:     str,
    now:            Optional[int] = None,
) -> bool:
    """
    Recompute the expected token and compare in constant time.
    Fail closed: empty, malformed, mismatched or expired → False.
    """
    if not token or not isinstance(token, str):
        return False
    try:
        timestamp = int(timestamp)
        expected = sign(SigningRequest(
            application_id = application_id,
            dataset_id     = dataset_id,
            access_key_id  = access_key_id,
            secret_key     = secret_key,
            timestamp      = timestamp,
        ))
    except (InvalidArgument, TypeError, ValueError):
        return False

    current = now_ms() if now is None else now
    if current > expected.expires_at:
        return False
    return hmac.compare_digest(expected.token.encode("utf-8"), token.encode("utf-8"))
