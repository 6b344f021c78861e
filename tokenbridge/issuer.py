"""
tokenbridge/issuer.py
Token issuance for browser clients.

Resolves app code, access key id and signing secret from the injected
BridgeConfig, validates the requested dataset, and delegates to signer.sign().
Logs applicationId / datasetId / timestamp only: never key material.
"""

import logging
from typing import Callable

from tokenbridge.config import BridgeConfig, resolve_secret_key
from tokenbridge.errors import ConfigurationError, InvalidArgument
from tokenbridge.models.record import SignedToken, SigningRequest
from tokenbridge.signer import now_ms, sign

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to generate token"


class TokenIssuer:
    """
    Usage:
        issuer = TokenIssuer(load_config())
        token  = issuer.issue("ds-001")
        token.to_dict()  # {"token": ..., "timestamp": ..., "expiresAt": ...}
    """

    def __init__(self, config: BridgeConfig, clock: Callable[[], int] = now_ms):
        self.config = config
        self.clock  = clock

    def issue(self, dataset_code: str) -> SignedToken:
        if not dataset_code or not str(dataset_code).strip():
            raise InvalidArgument("datasetCode is required")
        dataset_code = str(dataset_code).strip()

        if not self.config.access_key:
            raise ConfigurationError(
                "ACCESS_KEY not configured",
                public_message="ACCESS_KEY not configured",
            )
        if not self.config.app_code:
            raise ConfigurationError(
                "LOVRABET_APP_CODE not configured",
                public_message=GENERIC_FAILURE,
            )
        secret_key = resolve_secret_key(self.config)
        if not secret_key:
            raise ConfigurationError(
                "SECRET_KEY not configured and demo mode is off",
                public_message=GENERIC_FAILURE,
            )

        timestamp = self.clock()
        result = sign(SigningRequest(
            application_id = self.config.app_code,
            dataset_id     = dataset_code,
            access_key_id  = self.config.access_key,
            secret_key     = secret_key,
            timestamp      = timestamp,
        ))
        logger.info(
            f"Token issued | applicationId={self.config.app_code} | "
            f"datasetId={dataset_code} | timestamp={result.timestamp} | "
            f"expiresAt={result.expires_at}"
        )
        return result
