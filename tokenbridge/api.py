"""
tokenbridge/api.py
─────────────────────────────────────────────────────────────────────────────
tokenbridge: FastAPI HTTP layer

THREE INTEGRATION PATTERNS:
  1. Server direct call: the server holds ACCESS_KEY and calls the data
     service itself:
         POST /api/users
         POST /api/suppliers          PUT /api/suppliers/{id}

  2. Browser direct call: the server only issues a short-lived token:
         POST /api/token              {"datasetCode": "..."}
                                      → {"token", "timestamp", "expiresAt"}

  3. Backend proxy: the browser calls these, the server forwards with
     its access key:
         GET  /api/proxy/data
         GET  /api/proxy/plans        POST /api/proxy/plans
         GET|PUT|DELETE /api/proxy/plans/{id}
         GET  /api/proxy/orders       POST /api/proxy/orders
         GET|PUT|DELETE /api/proxy/orders/{id}

RUN:
    tokenbridge serve --port 3000
    uvicorn tokenbridge.api:app --port 3000

ERROR BODIES:
  /api/token, /api/users → {"error": "<stable message>"}
  everything else        → {"success": false, "error": "<stable message>"}
  Upstream and configuration detail is logged server-side only. Key
  values never appear in a response or a log line.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tokenbridge import __version__
from tokenbridge.client.base import DataServiceClient
from tokenbridge.client.factory import create_server_client
from tokenbridge.config import BridgeConfig, load_config, log_config_summary
from tokenbridge.errors import BridgeError, ConfigurationError, InvalidArgument
from tokenbridge.issuer import GENERIC_FAILURE, TokenIssuer
from tokenbridge.signer import now_ms

logger = logging.getLogger(__name__)

# Protected on the Suppliers dataset: the data service sets these itself.
SUPPLIER_SYSTEM_FIELDS = ("id", "created_at", "updated_at")

# Body validation failures → the route's stable {"error"} message, never the input.
VALIDATION_ERRORS = {
    "/api/token": "datasetCode is required",
    "/api/users": "Invalid users query",
}


# ── REQUEST MODELS ────────────────────────────────────────────────────────

class TokenRequest(BaseModel):
    datasetCode: Optional[str] = None


class UsersQuery(BaseModel):
    pageIndex:     Optional[int] = None
    pageSize:      Optional[int] = None
    queryField:    Optional[str] = None
    queryOperator: Optional[str] = None
    queryValue:    Optional[Any] = None


# ── HELPERS ───────────────────────────────────────────────────────────────

def _int_or(value: Optional[str], default: int) -> int:
    """Query-string number with fallback for missing, zero or non-numeric values."""
    try:
        n = int(value) if value is not None else 0
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _list_params(page: int, size: int, status: Optional[str] = None) -> Dict[str, Any]:
    params: Dict[str, Any] = {"currentPage": page, "pageSize": size}
    if status and status != "all":
        params["filters"] = {"status": status}
    return params


def _fail(public_message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        content     = {"success": False, "error": public_message},
        status_code = status_code,
    )


def _flag_number(value: Any) -> int:
    """Numeric form value as a number; checkbox words fall back to 0/1."""
    if isinstance(value, (bool, int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 1 if str(value).strip().lower() in ("true", "on", "yes") else 0


def _form_fields(data: Dict[str, Any], drop: tuple = ()) -> Dict[str, Any]:
    """
    Form submission → record payload. Empty values are dropped,
    is_deleted becomes a number, keys in drop are skipped.
    """
    fields: Dict[str, Any] = {}
    for key, value in (data or {}).items():
        if key in drop:
            continue
        if value is None or value == "":
            continue
        if key == "is_deleted":
            value = _flag_number(value)
        fields[key] = value
    return fields


# ═══════════════════════════════════════════════════════════════════════════
# APP BUILDER
# ═══════════════════════════════════════════════════════════════════════════

def build_app(
    config: Optional[BridgeConfig] = None,
    client: Optional[DataServiceClient] = None,
    issuer: Optional[TokenIssuer] = None,
    clock:  Callable[[], int] = now_ms,
) -> FastAPI:
    """
    Build the FastAPI application.
    client/issuer are injectable for tests; by default a server client is
    created per request so a missing ACCESS_KEY surfaces as a 500, not at boot.
    """
    config = config or load_config()
    issuer = issuer or TokenIssuer(config, clock=clock)
    log_config_summary(config)

    _app = FastAPI(
        title       = "tokenbridge",
        description = "OpenAPI token issuance, server-side calls and backend proxy",
        version     = __version__,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    @_app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected request body on {request.url.path}: {len(exc.errors())} error(s)")
        public_message = VALIDATION_ERRORS.get(request.url.path)
        if public_message is not None:
            return JSONResponse(content={"error": public_message}, status_code=400)
        return _fail("Invalid request", 400)

    def _client() -> DataServiceClient:
        return client if client is not None else create_server_client(config)

    # ── PATTERN 2: TOKEN ISSUANCE ───────────────────────────────────────

    @_app.post("/api/token", summary="Issue a short-lived token for the browser")
    def issue_token(req: Optional[TokenRequest] = None):
        """
        Returns {token, timestamp, expiresAt}. The browser must present
        token and timestamp together; the token expires after 10 minutes.
        """
        dataset_code = req.datasetCode if req is not None else None
        try:
            result = issuer.issue(dataset_code)
        except InvalidArgument as exc:
            return JSONResponse(content={"error": exc.public_message}, status_code=400)
        except ConfigurationError as exc:
            logger.error(f"Token generation error: {exc} | datasetId={dataset_code}")
            return JSONResponse(content={"error": exc.public_message}, status_code=500)
        except Exception as exc:
            logger.error(f"Token generation error: {exc} | datasetId={dataset_code}", exc_info=True)
            return JSONResponse(content={"error": GENERIC_FAILURE}, status_code=500)
        return result.to_dict()

    # ── PATTERN 1: SERVER DIRECT CALL ───────────────────────────────────

    @_app.post("/api/users", summary="Server-side list of UsersInfo")
    def list_users(req: Optional[UsersQuery] = None):
        """The browser never sees a credential: the server calls with ACCESS_KEY."""
        req = req or UsersQuery()
        params: Dict[str, Any] = {
            "currentPage": req.pageIndex or 1,
            "pageSize":    req.pageSize or 10,
        }
        for key in ("queryField", "queryOperator", "queryValue"):
            value = getattr(req, key)
            if value is not None:
                params[key] = value
        try:
            response = _client().model("UsersInfo").get_list(params)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Server-side API error: {exc}")
            return JSONResponse(content={"error": "Failed to fetch users data"}, status_code=500)
        return response.to_dict()

    @_app.post("/api/suppliers", summary="Create a supplier record")
    def create_supplier(payload: Dict[str, Any] = Body(default_factory=dict)):
        data = _form_fields(payload)
        logger.info(f"Creating supplier record | fields={sorted(data)}")
        try:
            result = _client().model("Suppliers").create(data)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Failed to create record: {exc}")
            return _fail("Failed to create record")
        return {"success": True, "data": result}

    @_app.put("/api/suppliers/{record_id}", summary="Update a supplier record")
    def update_supplier(record_id: str, payload: Dict[str, Any] = Body(default_factory=dict)):
        data = _form_fields(payload, drop=SUPPLIER_SYSTEM_FIELDS)
        logger.info(f"Updating supplier record {record_id} | fields={sorted(data)}")
        try:
            result = _client().model("Suppliers").update(record_id, data)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Failed to update record {record_id}: {exc}")
            return _fail("Failed to update record")
        return {"success": True, "data": result}

    # ── PATTERN 3: BACKEND PROXY ────────────────────────────────────────

    @_app.get("/api/proxy/data", summary="List the first configured dataset")
    def proxy_data(
        page: Optional[str] = Query(None),
        size: Optional[str] = Query(None),
    ):
        params = _list_params(_int_or(page, 1), _int_or(size, 10))
        try:
            response = _client().model(0).get_list(params)
        except (BridgeError, KeyError) as exc:
            logger.error(f"API proxy error: {exc}")
            return _fail("Failed to fetch data")
        return {"success": True, "data": response.to_dict()}

    def _proxy_list(model: str, label: str, page: Optional[str], size: Optional[str],
                    status: Optional[str]):
        page_n, size_n = _int_or(page, 1), _int_or(size, 10)
        try:
            response = _client().model(model).get_list(_list_params(page_n, size_n, status))
        except (BridgeError, KeyError) as exc:
            logger.error(f"{model} list error: {exc}")
            return _fail(f"Failed to fetch {label}")
        return {
            "success": True,
            "data":    response.table_data,
            "total":   response.paging.total_count,
            "page":    response.paging.current_page or page_n,
            "size":    response.paging.page_size or size_n,
        }

    def _proxy_get(model: str, label: str, record_id: str):
        if not record_id.strip():
            return _fail(f"{label.capitalize()} ID is required", 400)
        try:
            record = _client().model(model).get_one(record_id)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Get {label} {record_id} error: {exc}")
            return _fail(f"Failed to get {label}")
        return {"success": True, "data": record}

    def _proxy_update(model: str, label: str, record_id: str, payload: Dict[str, Any]):
        if not record_id.strip():
            return _fail(f"{label.capitalize()} ID is required", 400)
        try:
            updated = _client().model(model).update(record_id, payload)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Update {label} {record_id} error: {exc}")
            return _fail(f"Failed to update {label}")
        return {"success": True, "data": updated}

    def _proxy_delete(model: str, label: str, record_id: str):
        if not record_id.strip():
            return _fail(f"{label.capitalize()} ID is required", 400)
        try:
            _client().model(model).delete(record_id)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Delete {label} {record_id} error: {exc}")
            return _fail(f"Failed to delete {label}")
        return {"success": True, "message": f"{label.capitalize()} deleted successfully"}

    # plans

    @_app.get("/api/proxy/plans", summary="List study plans")
    def list_plans(
        page:   Optional[str] = Query(None),
        size:   Optional[str] = Query(None),
        status: Optional[str] = Query(None, description="Filter by status; 'all' disables"),
    ):
        return _proxy_list("UserPlan", "plans", page, size, status)

    @_app.post("/api/proxy/plans", summary="Create a study plan")
    def create_plan(payload: Dict[str, Any] = Body(default_factory=dict)):
        if not payload.get("user_id") or not payload.get("plan_name"):
            return _fail("user_id and plan_name are required", 400)
        now = _now_iso()
        plan = {
            "user_id":         payload["user_id"],
            "plan_name":       payload["plan_name"],
            "plan_type":       payload.get("plan_type") or "daily",
            "target_chars":    payload.get("target_chars") or 100,
            "completed_chars": 0,
            "daily_target":    payload.get("daily_target") or 10,
            "start_date":      now,
            "status":          payload.get("status") or "active",
            "created_at":      now,
        }
        try:
            result = _client().model("UserPlan").create(plan)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Create plan error: {exc}")
            return _fail("Failed to create plan")
        return {"success": True, "data": result}

    @_app.get("/api/proxy/plans/{record_id}", summary="Get one study plan")
    def get_plan(record_id: str):
        return _proxy_get("UserPlan", "plan", record_id)

    @_app.put("/api/proxy/plans/{record_id}", summary="Update a study plan")
    def update_plan(record_id: str, payload: Dict[str, Any] = Body(default_factory=dict)):
        return _proxy_update("UserPlan", "plan", record_id, payload)

    @_app.delete("/api/proxy/plans/{record_id}", summary="Delete a study plan")
    def delete_plan(record_id: str):
        return _proxy_delete("UserPlan", "plan", record_id)

    # orders

    @_app.get("/api/proxy/orders", summary="List orders")
    def list_orders(
        page:   Optional[str] = Query(None),
        size:   Optional[str] = Query(None),
        status: Optional[str] = Query(None, description="Filter by status; 'all' disables"),
    ):
        return _proxy_list("Orders", "orders", page, size, status)

    @_app.post("/api/proxy/orders", summary="Create an order")
    def create_order(payload: Dict[str, Any] = Body(default_factory=dict)):
        if not payload.get("userId") or not payload.get("amount"):
            return _fail("userId and amount are required", 400)
        order = {
            "orderNo":   f"ORD{clock()}",
            "userId":    payload["userId"],
            "amount":    payload["amount"],
            "status":    payload.get("status") or "pending",
            "createdAt": _now_iso(),
        }
        try:
            result = _client().model("Orders").create(order)
        except (BridgeError, KeyError) as exc:
            logger.error(f"Create order error: {exc}")
            return _fail("Failed to create order")
        return {"success": True, "data": result}

    @_app.get("/api/proxy/orders/{record_id}", summary="Get one order")
    def get_order(record_id: str):
        return _proxy_get("Orders", "order", record_id)

    @_app.put("/api/proxy/orders/{record_id}", summary="Update an order")
    def update_order(record_id: str, payload: Dict[str, Any] = Body(default_factory=dict)):
        return _proxy_update("Orders", "order", record_id, payload)

    @_app.delete("/api/proxy/orders/{record_id}", summary="Delete an order")
    def delete_order(record_id: str):
        return _proxy_delete("Orders", "order", record_id)

    # ── HEALTH ──────────────────────────────────────────────────────────

    @_app.get("/health", summary="Health check")
    def health():
        """Configuration presence as booleans only."""
        return {
            "status":         "ok",
            "version":        __version__,
            "env":            config.env,
            "app_code_set":   bool(config.app_code),
            "access_key_set": bool(config.access_key),
            "secret_key_set": bool(config.secret_key),
            "demo_mode":      config.demo_mode,
        }

    return _app


# Module-level app instance: used by uvicorn tokenbridge.api:app
app = build_app()
