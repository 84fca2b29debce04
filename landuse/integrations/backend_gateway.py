"""
CLU Backend Integration Gateway.

All outbound HTTP calls to the Change of Land Use REST backend go through
this class. Direct `requests` calls in services or blueprints are FORBIDDEN.

  - Bearer token taken from the caller's SessionContext, never cached here
  - Timeout: BACKEND_TIMEOUT for JSON calls, BACKEND_UPLOAD_TIMEOUT for uploads
  - Retry: reads only, max 2 extra attempts with backoff (0.5 s → 2 s).
    Writes append to the application's audit trail and are sent exactly once.
  - Every backend reply uses the envelope {success, message?, data?};
    the gateway unwraps it into a GatewayResult and never raises.

Testability: pass a mock `session` (and a no-op `sleep`) to BackendGateway()
in tests instead of letting it create a real requests.Session internally.
"""

from __future__ import annotations

import logging
import time
from typing import Any, BinaryIO, Callable

import requests

logger = logging.getLogger(__name__)

# ── Retry constants ────────────────────────────────────────────────────────
_RETRY_MAX = 2
_RETRY_BACKOFF_SECONDS = [0.5, 2]

# ── Defaults (overridden from app config by configure()) ───────────────────
_DEFAULT_BASE_URL = "https://conversionapi.globizsapp.com/api"
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_UPLOAD_TIMEOUT = 60.0

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."
MISSING_TOKEN_MESSAGE = "Authentication token not found."

# ── Failure categories ─────────────────────────────────────────────────────
FAILURE_AUTH = "auth"            # no token; request never sent
FAILURE_BACKEND = "backend"      # reply received: non-2xx, success=false, bad JSON
FAILURE_NETWORK = "network"      # connection-level failure
FAILURE_TIMEOUT = "timeout"      # no reply within the configured timeout


class GatewayResult:
    """Structured return value from BackendGateway calls.

    Attributes:
        ok:             True if HTTP 2xx and the envelope reported success.
        status_code:    HTTP status code (None if network-level failure).
        data:           The envelope's ``data`` member, else None.
        error:          User-facing error message or None.
        duration_ms:    Round-trip latency in milliseconds.
        failure:        One of the FAILURE_* categories, None on success.
        body:           Full parsed JSON body when there was one.
    """

    def __init__(
        self,
        ok: bool,
        status_code: int | None,
        data: Any,
        error: str | None,
        duration_ms: int,
        failure: str | None = None,
        body: dict | None = None,
    ) -> None:
        self.ok = ok
        self.status_code = status_code
        self.data = data
        self.error = error
        self.duration_ms = duration_ms
        self.failure = failure
        self.body = body

    @property
    def message(self) -> str | None:
        """Backend-supplied message (success or failure), if any."""
        if self.body and isinstance(self.body.get("message"), str):
            return self.body["message"]
        return self.error

    def to_log_dict(self) -> dict:
        return {
            "http_status_code": self.status_code,
            "error_message": self.error,
            "duration_ms": self.duration_ms,
            "failure": self.failure,
        }


def _message_from_body(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


class BackendGateway:
    """CLU backend REST API gateway.

    Instantiate once at module level (module-level singleton pattern) and
    call configure() from the app factory.

    Usage:
        from landuse.integrations import backend_gateway as gw_module
        result = gw_module.backend_gateway.fetch_application(token, 42)
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT,
        upload_timeout: float = _DEFAULT_UPLOAD_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        # Inject custom session for testing; create real one lazily otherwise.
        self._session: requests.Session | None = session
        self.base_url = base_url
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self._sleep = sleep

    def configure(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        upload_timeout: float | None = None,
    ) -> None:
        if base_url:
            self.base_url = base_url
        if timeout is not None:
            self.timeout = timeout
        if upload_timeout is not None:
            self.upload_timeout = upload_timeout

    # ── HTTP session ─────────────────────────────────────────────────────────

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    # ── Core request dispatcher ───────────────────────────────────────────────

    def _do_request(
        self,
        method: str,
        url: str,
        headers: dict,
        *,
        json_body: dict | list | None = None,
        params: dict | None = None,
        files: dict | None = None,
        timeout: float,
    ) -> requests.Response:
        """Execute a single HTTP request, no retry logic here."""
        kwargs: dict[str, Any] = {"headers": headers, "timeout": timeout}
        if json_body is not None:
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = params
        if files:
            kwargs["files"] = files
        return self.session.request(method, url, **kwargs)

    def _parse_response(self, resp: requests.Response, duration_ms: int) -> GatewayResult:
        """Unwrap the {success, message, data} envelope into a GatewayResult."""
        try:
            body = resp.json() if resp.content else None
        except ValueError:
            body = None
            if resp.ok:
                return GatewayResult(
                    ok=False,
                    status_code=resp.status_code,
                    data=None,
                    error=GENERIC_ERROR_MESSAGE,
                    duration_ms=duration_ms,
                    failure=FAILURE_BACKEND,
                )

        if not resp.ok:
            return GatewayResult(
                ok=False,
                status_code=resp.status_code,
                data=None,
                error=_message_from_body(body) or GENERIC_ERROR_MESSAGE,
                duration_ms=duration_ms,
                failure=FAILURE_BACKEND,
                body=body if isinstance(body, dict) else None,
            )

        if not isinstance(body, dict) or "success" not in body:
            return GatewayResult(
                ok=False,
                status_code=resp.status_code,
                data=body.get("data") if isinstance(body, dict) else None,
                error='API response is missing the "success" field.',
                duration_ms=duration_ms,
                failure=FAILURE_BACKEND,
                body=body if isinstance(body, dict) else None,
            )

        if not body.get("success"):
            return GatewayResult(
                ok=False,
                status_code=resp.status_code,
                data=body.get("data"),
                error=_message_from_body(body) or GENERIC_ERROR_MESSAGE,
                duration_ms=duration_ms,
                failure=FAILURE_BACKEND,
                body=body,
            )

        return GatewayResult(
            ok=True,
            status_code=resp.status_code,
            data=body.get("data"),
            error=None,
            duration_ms=duration_ms,
            body=body,
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        json_body: dict | list | None = None,
        params: dict | None = None,
        files: dict | None = None,
        timeout: float | None = None,
    ) -> GatewayResult:
        """Execute an authenticated request to the CLU backend.

        Implements:
          1. Token check — no token means no request (FAILURE_AUTH).
          2. Execute request; envelope success → ok result.
          3. On failure of a GET: retry up to _RETRY_MAX times with backoff.
             Any other verb is attempted exactly once.
          4. requests.Timeout → FAILURE_TIMEOUT, other transport errors →
             FAILURE_NETWORK.

        Returns:
            GatewayResult — always returns (never raises). Callers check .ok.
        """
        if not token:
            logger.warning("Backend %s %s refused: no access token", method, path)
            return GatewayResult(
                ok=False,
                status_code=None,
                data=None,
                error=MISSING_TOKEN_MESSAGE,
                duration_ms=0,
                failure=FAILURE_AUTH,
            )

        url = self.url_for(path)
        timeout = timeout if timeout is not None else self.timeout
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        attempts = _RETRY_MAX + 1 if method.upper() == "GET" else 1
        result: GatewayResult | None = None

        for attempt in range(attempts):
            t0 = time.perf_counter()
            try:
                resp = self._do_request(
                    method, url, headers,
                    json_body=json_body, params=params, files=files, timeout=timeout,
                )
                duration_ms = int((time.perf_counter() - t0) * 1000)
                result = self._parse_response(resp, duration_ms)
                if result.ok:
                    logger.info(
                        "Backend %s %s → %d (%dms)",
                        method, path, resp.status_code, duration_ms,
                        extra={"backend_path": path, "duration_ms": duration_ms},
                    )
                    return result
                logger.warning(
                    "Backend request failed attempt=%d/%d %s %s status=%s error=%s",
                    attempt + 1, attempts, method, path, resp.status_code, result.error,
                    extra={"backend_path": path},
                )
                # A well-formed refusal (4xx / success=false) will not change on retry
                if resp.status_code is not None and resp.status_code < 500:
                    return result

            except requests.Timeout:
                result = GatewayResult(
                    ok=False,
                    status_code=None,
                    data=None,
                    error=f"The server did not respond within {timeout:g}s.",
                    duration_ms=int(timeout * 1000),
                    failure=FAILURE_TIMEOUT,
                )
                logger.warning(
                    "Backend request timed out attempt=%d/%d %s %s",
                    attempt + 1, attempts, method, path,
                    extra={"backend_path": path},
                )

            except requests.RequestException as exc:
                result = GatewayResult(
                    ok=False,
                    status_code=None,
                    data=None,
                    error=GENERIC_ERROR_MESSAGE,
                    duration_ms=int((time.perf_counter() - t0) * 1000),
                    failure=FAILURE_NETWORK,
                )
                logger.warning(
                    "Backend network error attempt=%d/%d %s %s error=%s",
                    attempt + 1, attempts, method, path, str(exc)[:500],
                    extra={"backend_path": path},
                )

            if attempt < attempts - 1:
                sleep_s = _RETRY_BACKOFF_SECONDS[min(attempt, len(_RETRY_BACKOFF_SECONDS) - 1)]
                logger.info("Retrying backend %s %s in %ss (attempt %d)",
                            method, path, sleep_s, attempt + 2)
                self._sleep(sleep_s)

        return result

    # ── CLU backend operations ───────────────────────────────────────────────

    def fetch_application(
        self,
        token: str | None,
        application_id: int | str,
        workflow_sequence_id: int | None = None,
    ) -> GatewayResult:
        """GET /applications/{id}, optionally scoped to a workflow step."""
        params = {}
        if workflow_sequence_id:
            params["workflow_sequence_id"] = workflow_sequence_id
        return self.request("GET", f"/applications/{application_id}", token=token, params=params)

    def fetch_workflow_history(self, token: str | None, application_id: int | str) -> GatewayResult:
        """GET /applications/{id}/workflow — ordered list of history entries."""
        return self.request("GET", f"/applications/{application_id}/workflow", token=token)

    def list_applications(
        self,
        token: str | None,
        *,
        page: int = 1,
        limit: int = 10,
        workflow_sequence_id: int | None = None,
    ) -> GatewayResult:
        """GET /applications/lists; no workflow id means the unfiltered queue."""
        params: dict = {"page": page, "limit": limit}
        if workflow_sequence_id:
            params["workflow_sequence_id"] = workflow_sequence_id
        return self.request("GET", "/applications/lists", token=token, params=params)

    def fetch_application_statuses(self, token: str | None) -> GatewayResult:
        return self.request("GET", "/application-status", token=token)

    def fetch_pending_with_me(self, token: str | None) -> GatewayResult:
        return self.request("GET", "/workflow/pending-with-me", token=token)

    def upload_file(
        self,
        token: str | None,
        *,
        field_name: str,
        filename: str,
        stream: BinaryIO,
        content_type: str | None = None,
    ) -> GatewayResult:
        """POST multipart /upload-file under `field_name`.

        Returns:
            GatewayResult.data = {"filename": str} on success.
        """
        file_tuple: tuple = (filename, stream, content_type) if content_type else (filename, stream)
        return self.request(
            "POST", "/upload-file",
            token=token,
            files={field_name: file_tuple},
            timeout=self.upload_timeout,
        )

    def submit_transition(self, token: str | None, payload: dict) -> GatewayResult:
        """POST /workflow — single id or array in application_details_id."""
        return self.request("POST", "/workflow", token=token, json_body=payload)

    def request_reverification(self, token: str | None, payload: dict) -> GatewayResult:
        """POST /workflow/reverification — route back to the current sender."""
        return self.request("POST", "/workflow/reverification", token=token, json_body=payload)


# Module-level singleton: import this module in services and read the
# attribute at call time. In tests, override via:
#   from landuse.integrations import backend_gateway as gw_module
#   gw_module.backend_gateway = BackendGateway(session=mock_session)
backend_gateway = BackendGateway()
