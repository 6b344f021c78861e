"""
tokenbridge/client/factory.py
Client construction for the three integration patterns.

  create_server_client() : access-key mode (server direct call / backend proxy)
  create_browser_client(): token mode ({token, timestamp} from /api/token)
"""

from tokenbridge.client.openapi_client import AccessKeyAuth, OpenApiClient, TokenAuth
from tokenbridge.config import BridgeConfig
from tokenbridge.errors import ConfigurationError, InvalidArgument


def create_server_client(config: BridgeConfig) -> OpenApiClient:
    if not config.access_key:
        raise ConfigurationError(
            "ACCESS_KEY is required in environment variables",
            public_message="ACCESS_KEY not configured",
        )
    return OpenApiClient(
        base_url    = config.api_base_url,
        auth        = AccessKeyAuth(config.app_code, config.access_key),
        models      = config.models,
        timeout_sec = config.timeout_sec,
    )


def create_browser_client(
    config:       BridgeConfig,
    dataset_code: str,
    token:        str,
    timestamp:    int,
) -> OpenApiClient:
    if not token or timestamp is None:
        raise InvalidArgument("token and timestamp are required")
    return OpenApiClient(
        base_url    = config.api_base_url,
        auth        = TokenAuth(config.app_code, dataset_code, token, timestamp),
        models      = config.models,
        timeout_sec = config.timeout_sec,
    )
