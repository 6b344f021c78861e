"""
tokenbridge/client/openapi_client.py
HTTP client for the remote OpenAPI data service.

Two credential modes:
  AccessKeyAuth: server side only. Presents the raw access key on every call.
  TokenAuth    : browser safe. Presents {token, timestamp} from signer.sign(),
                  bound to the one dataset the token was signed for.

Wire shape used by this client:
  POST {base_url}/openapi/{appCode}/{datasetCode}/{action}
  action ∈ getList / getOne / create / update / delete
  response envelope: {"success": bool, "data": ..., "errorMsg": str, "errorCode": int}
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, Mapping, Optional, Union

from tokenbridge.client.base import DataServiceClient, RecordId
from tokenbridge.config import MODEL_ALIASES
from tokenbridge.errors import InvalidArgument, UpstreamError
from tokenbridge.models.record import ListResponse

logger = logging.getLogger(__name__)


class AccessKeyAuth:
    """Long-lived access key. Never hand this object to anything client facing."""

    mode = "access_key"

    def __init__(self, app_code: str, access_key: str):
        self.app_code   = app_code
        self.access_key = access_key

    def __repr__(self) -> str:
        return f"AccessKeyAuth(app_code={self.app_code!r})"

    def headers(self, dataset_code: str) -> Dict[str, str]:
        return {
            "X-App-Code":     self.app_code,
            "X-Dataset-Code": dataset_code,
            "X-Access-Key":   self.access_key,
        }


class TokenAuth:
    """Signed token + its timestamp. Valid for one dataset only."""

    mode = "token"

    def __init__(self, app_code: str, dataset_code: str, token: str, timestamp: int):
        self.app_code     = app_code
        self.dataset_code = dataset_code
        self.token        = token
        self.timestamp    = int(timestamp)

    def __repr__(self) -> str:
        return f"TokenAuth(app_code={self.app_code!r}, dataset_code={self.dataset_code!r})"

    def headers(self, dataset_code: str) -> Dict[str, str]:
        if dataset_code != self.dataset_code:
            raise InvalidArgument(
                f"token was issued for dataset {self.dataset_code}, not {dataset_code}"
            )
        return {
            "X-App-Code":     self.app_code,
            "X-Dataset-Code": dataset_code,
            "X-Token":        self.token,
            "X-Time-Stamp":   str(self.timestamp),
        }


Auth = Union[AccessKeyAuth, TokenAuth]


class OpenApiClient(DataServiceClient):

    def __init__(
        self,
        base_url:    str,
        auth:        Auth,
        models:      Optional[Mapping[str, str]] = None,
        timeout_sec: int = 30,
    ):
        self.base_url    = base_url.rstrip('/')
        self.auth        = auth
        self.models      = dict(models or {})
        self.timeout_sec = timeout_sec

    # ── MODEL REGISTRY ───────────────────────────────────────
    def resolve_dataset(self, model: Union[str, int]) -> str:
        """
        Alias → dataset code; index → n-th registered model; else treat as a code.
        A known alias missing from the registry is a configuration error.
        """
        if isinstance(model, int):
            codes = list(self.models.values())
            if not 0 <= model < len(codes) or not codes[model]:
                raise KeyError(f"No dataset configured at model index {model}")
            return codes[model]
        if model in self.models:
            if not self.models[model]:
                raise KeyError(f"Model {model} has no dataset code configured")
            return self.models[model]
        if model in MODEL_ALIASES:
            raise KeyError(f"Model {model} is not in the model registry")
        return super().resolve_dataset(model)

    # ── CALLS ────────────────────────────────────────────────
    def get_list(self, dataset_code: str, params: Optional[Dict[str, Any]] = None) -> ListResponse:
        data = self._call(dataset_code, 'getList', dict(params or {}))
        try:
            return ListResponse.from_dict(data if isinstance(data, dict) else {})
        except (TypeError, ValueError, AttributeError) as e:
            raise UpstreamError(f"OpenAPI getList on {dataset_code} returned a malformed page: {e}") from e

    def get_one(self, dataset_code: str, record_id: RecordId) -> Dict[str, Any]:
        data = self._call(dataset_code, 'getOne', {'id': record_id})
        return data if isinstance(data, dict) else {'value': data}

    def create(self, dataset_code: str, data: Dict[str, Any]) -> Any:
        return self._call(dataset_code, 'create', dict(data))

    def update(self, dataset_code: str, record_id: RecordId, data: Dict[str, Any]) -> Any:
        return self._call(dataset_code, 'update', {**data, 'id': record_id})

    def delete(self, dataset_code: str, record_id: RecordId) -> Any:
        return self._call(dataset_code, 'delete', {'id': record_id})

    # ── TRANSPORT ────────────────────────────────────────────
    def _url(self, dataset_code: str, action: str) -> str:
        app  = urllib.parse.quote(self.auth.app_code, safe='')
        code = urllib.parse.quote(dataset_code, safe='')
        return f"{self.base_url}/openapi/{app}/{code}/{action}"

    def _call(self, dataset_code: str, action: str, payload: Dict[str, Any]) -> Any:
        headers = {
            'Content-Type': 'application/json',
            'Accept':       'application/json',
            **self.auth.headers(dataset_code),
        }
        body = json.dumps(payload, default=str).encode('utf-8')
        url  = self._url(dataset_code, action)

        logger.debug(f"OpenAPI {action} | dataset={dataset_code} | mode={self.auth.mode}")

        try:
            req = urllib.request.Request(url, data=body, headers=headers, method='POST')
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            raise UpstreamError(
                f"OpenAPI {action} on {dataset_code} returned HTTP {e.code}",
                status=e.code,
            ) from e
        except urllib.error.URLError as e:
            raise UpstreamError(f"OpenAPI {action} on {dataset_code} unreachable: {e.reason}") from e
        except (TimeoutError, OSError) as e:
            raise UpstreamError(f"OpenAPI {action} on {dataset_code} failed: {e}") from e
        except UnicodeDecodeError as e:
            raise UpstreamError(f"OpenAPI {action} on {dataset_code} returned a non UTF-8 body") from e

        try:
            envelope = json.loads(raw) if raw else {}
        except json.JSONDecodeError as e:
            raise UpstreamError(f"OpenAPI {action} on {dataset_code} returned invalid JSON: {e}") from e

        if not isinstance(envelope, dict):
            raise UpstreamError(f"OpenAPI {action} on {dataset_code} returned a non-object body")

        if not envelope.get('success', False):
            raise UpstreamError(
                f"OpenAPI {action} on {dataset_code} rejected: "
                f"{envelope.get('errorMsg') or envelope.get('msg') or 'unknown error'}",
                error_code=envelope.get('errorCode'),
            )
        return envelope.get('data')
