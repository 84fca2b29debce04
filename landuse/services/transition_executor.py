"""
Transition Executor — the two-phase upload-then-submit protocol.

Every state change of an application goes through here:

  1. Attachment phase (only when a file is supplied): multipart upload to
     /upload-file under the transition's field name. No usable filename in
     the reply aborts the transition; nothing is submitted.
  2. Submission phase: POST the normalised TransitionRequest to /workflow
     with the uploaded filename in ``attachment``.

Expected failures come back as a TransitionResult carrying an ErrorKind,
never as exceptions. Only programmer errors (empty id list) raise.

Writes are sent exactly once: a failed submission is reported, not
retried, because every accepted POST appends an audit entry. When the
upload succeeded but the submission failed the result keeps the uploaded
filename so the caller can retry the submission without re-uploading.

Usage:
    from landuse.services.transition_executor import submit_transition
    result = submit_transition(42, request, g.session_ctx, attachment=att,
                               field_name="forward_attachment")
    if not result.ok:
        ...  # result.error_kind, result.message, result.uploaded_filename
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, BinaryIO

from landuse.integrations import backend_gateway as gw_module
from landuse.integrations.backend_gateway import (
    FAILURE_AUTH,
    FAILURE_NETWORK,
    FAILURE_TIMEOUT,
    GENERIC_ERROR_MESSAGE,
    BackendGateway,
    GatewayResult,
)
from landuse.models.session import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_FIELD_NAME = "forward_attachment"
DEFAULT_MAX_WORKERS = 8

STATUS_FORWARD = 1
STATUS_REJECT = 0


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    UPLOAD_FAILURE = "UPLOAD_FAILURE"
    SUBMISSION_FAILURE = "SUBMISSION_FAILURE"
    MISSING_ORIGINATOR = "MISSING_ORIGINATOR"
    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"


# ═════════════════════════════════════════════════════════════════════════════
# Value objects
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Attachment:
    """A file waiting to be uploaded."""
    filename: str
    stream: BinaryIO
    content_type: str | None = None

    @classmethod
    def from_file_storage(cls, storage) -> "Attachment | None":
        """Wrap a werkzeug FileStorage; an empty file input yields None."""
        if storage is None or not storage.filename:
            return None
        return cls(
            filename=storage.filename,
            stream=storage.stream,
            content_type=storage.mimetype or None,
        )


@dataclass(frozen=True)
class TransitionRequest:
    """Normalised body of POST /workflow, minus the application id.

    ``status`` is 1 for every forward-like transition (reports included)
    and 0 only for rejection. ``date`` is an ISO ``yyyy-mm-dd`` string.
    """
    verification_status_id: int
    remark: str = ""
    status: int = STATUS_FORWARD
    attachment: str = ""
    date: str | None = None

    def __post_init__(self):
        if self.status not in (STATUS_FORWARD, STATUS_REJECT):
            raise ValueError(f"status must be 0 or 1, got {self.status!r}")

    def to_payload(self, application_details_id: int | list[int]) -> dict:
        payload: dict[str, Any] = {
            "application_details_id": application_details_id,
            "verification_status_id": self.verification_status_id,
            "remark": self.remark,
            "attachment": self.attachment or "",
            "status": self.status,
        }
        if self.date:
            payload["date"] = self.date
        return payload


@dataclass(frozen=True)
class TransitionResult:
    ok: bool
    message: str | None = None
    error_kind: ErrorKind | None = None
    uploaded_filename: str | None = None
    data: Any = None

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"ok": self.ok, "message": self.message}
        if self.error_kind:
            result["error_kind"] = self.error_kind.value
        if self.uploaded_filename:
            result["uploaded_filename"] = self.uploaded_filename
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class BatchOutcome:
    """Per-application results of a legacy batch. No rollback of successes."""
    results: list[tuple[int, TransitionResult]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for _, r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for _, r in self.results if not r.ok)

    @property
    def failed_ids(self) -> list[int]:
        return [app_id for app_id, r in self.results if not r.ok]

    def to_dict(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [
                {"application_id": app_id, **r.to_dict()} for app_id, r in self.results
            ],
        }


# ═════════════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════════════

def _gateway(gateway: BackendGateway | None) -> BackendGateway:
    return gateway or gw_module.backend_gateway


def error_kind_for(result: GatewayResult, phase_kind: ErrorKind) -> ErrorKind:
    """Map a gateway failure onto the engine's taxonomy.

    Transport problems keep their own kind; a reply the backend refused
    becomes the phase's kind (upload or submission).
    """
    if result.failure == FAILURE_TIMEOUT:
        return ErrorKind.TIMEOUT
    if result.failure == FAILURE_NETWORK:
        return ErrorKind.NETWORK
    if result.failure == FAILURE_AUTH:
        return ErrorKind.VALIDATION
    return phase_kind


def upload_attachment(
    attachment: Attachment,
    field_name: str,
    ctx: SessionContext,
    *,
    gateway: BackendGateway | None = None,
) -> tuple[str | None, TransitionResult | None]:
    """Upload one file. Returns (filename, None) or (None, failure result)."""
    result = _gateway(gateway).upload_file(
        ctx.access_token,
        field_name=field_name,
        filename=attachment.filename,
        stream=attachment.stream,
        content_type=attachment.content_type,
    )
    filename = result.data.get("filename") if result.ok and isinstance(result.data, dict) else None
    if filename:
        return str(filename), None

    message = result.error if not result.ok else "Upload response did not include a filename."
    logger.warning(
        "Attachment upload failed field=%s file=%s error=%s",
        field_name, attachment.filename, message,
    )
    return None, TransitionResult(
        ok=False,
        message=message or "Could not upload the attachment.",
        error_kind=error_kind_for(result, ErrorKind.UPLOAD_FAILURE),
    )


def _submit(
    application_details_id: int | list[int],
    request: TransitionRequest,
    ctx: SessionContext,
    gateway: BackendGateway,
    uploaded_filename: str | None,
) -> TransitionResult:
    payload = request.to_payload(application_details_id)
    result = gateway.submit_transition(ctx.access_token, payload)
    if result.ok:
        logger.info(
            "Transition submitted application=%s status=%d verification_status_id=%d",
            application_details_id, request.status, request.verification_status_id,
        )
        return TransitionResult(
            ok=True,
            message=result.message,
            uploaded_filename=uploaded_filename,
            data=result.data,
        )

    logger.warning(
        "Transition submission failed application=%s error=%s",
        application_details_id, result.error,
    )
    return TransitionResult(
        ok=False,
        message=result.error or GENERIC_ERROR_MESSAGE,
        error_kind=error_kind_for(result, ErrorKind.SUBMISSION_FAILURE),
        uploaded_filename=uploaded_filename,
    )


# ═════════════════════════════════════════════════════════════════════════════
# Public operations
# ═════════════════════════════════════════════════════════════════════════════

def submit_transition(
    application_id: int,
    request: TransitionRequest,
    ctx: SessionContext,
    attachment: Attachment | None = None,
    field_name: str = DEFAULT_FIELD_NAME,
    *,
    gateway: BackendGateway | None = None,
) -> TransitionResult:
    """Run the full upload-then-submit protocol for one application."""
    gw = _gateway(gateway)
    uploaded_filename = None

    if attachment is not None:
        uploaded_filename, failure = upload_attachment(attachment, field_name, ctx, gateway=gw)
        if failure is not None:
            return failure
        request = replace(request, attachment=uploaded_filename)

    return _submit(int(application_id), request, ctx, gw, uploaded_filename)


def submit_multi_transition(
    application_ids: list[int],
    request: TransitionRequest,
    ctx: SessionContext,
    attachment: Attachment | None = None,
    field_name: str = DEFAULT_FIELD_NAME,
    *,
    gateway: BackendGateway | None = None,
) -> TransitionResult:
    """One POST carrying an array of application ids.

    The backend applies it as a unit from the caller's point of view: one
    result for the whole list.
    """
    if not application_ids:
        raise ValueError("submit_multi_transition needs at least one application id")

    gw = _gateway(gateway)
    uploaded_filename = None
    if attachment is not None:
        uploaded_filename, failure = upload_attachment(attachment, field_name, ctx, gateway=gw)
        if failure is not None:
            return failure
        request = replace(request, attachment=uploaded_filename)

    return _submit([int(i) for i in application_ids], request, ctx, gw, uploaded_filename)


def batch_forward(
    application_ids: list[int],
    request: TransitionRequest,
    ctx: SessionContext,
    attachment: Attachment | None = None,
    field_name: str = DEFAULT_FIELD_NAME,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    gateway: BackendGateway | None = None,
) -> BatchOutcome:
    """Legacy batch: one independent transition per id, sent concurrently.

    The attachment (if any) is uploaded once and its filename reused for
    every submission. Successes are kept when others fail; the outcome
    lists results in the order the ids were given.
    """
    if not application_ids:
        raise ValueError("batch_forward needs at least one application id")

    gw = _gateway(gateway)
    ids = [int(i) for i in application_ids]

    uploaded_filename = None
    if attachment is not None:
        uploaded_filename, failure = upload_attachment(attachment, field_name, ctx, gateway=gw)
        if failure is not None:
            return BatchOutcome(results=[(app_id, failure) for app_id in ids])
        request = replace(request, attachment=uploaded_filename)

    slots: list[TransitionResult | None] = [None] * len(ids)
    workers = max(1, min(max_workers, len(ids)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_submit, app_id, request, ctx, gw, uploaded_filename): index
            for index, app_id in enumerate(ids)
        }
        for future in as_completed(futures):
            slots[futures[future]] = future.result()

    outcome = BatchOutcome(results=list(zip(ids, slots)))
    logger.info(
        "Batch forward finished: %d succeeded, %d failed (failed ids=%s)",
        outcome.succeeded, outcome.failed, outcome.failed_ids,
    )
    return outcome
