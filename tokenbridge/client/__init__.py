"""
tokenbridge/client: data service clients (access-key and token modes).
"""

from tokenbridge.client.base import DataServiceClient, DatasetModel
from tokenbridge.client.factory import create_browser_client, create_server_client
from tokenbridge.client.openapi_client import AccessKeyAuth, OpenApiClient, TokenAuth

__all__ = [
    "AccessKeyAuth",
    "DataServiceClient",
    "DatasetModel",
    "OpenApiClient",
    "TokenAuth",
    "create_browser_client",
    "create_server_client",
]
