"""
Report builders — turn reviewer input into a normalised TransitionRequest.

Each builder validates its input before anything touches the network and
raises ``ValidationError`` (with a per-field ``details`` dict) when a
required value is missing or malformed. Report data that the backend's
single remark column has to carry is written with ``encode_block``.

Usage:
    from landuse.services.report_transitions import fee_request
    req = fee_request(status_id="9", date="2024-05-01", amount="1500", remark="paid")
    # req.remark == "Fee Report: Payable amount Rs. 1500. paid"
"""

from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from landuse.core.exceptions import ValidationError
from landuse.services.action_context import ActionKind, ActionType
from landuse.services.remark_blocks import BlockKind, encode_block
from landuse.services.transition_executor import (
    STATUS_FORWARD,
    STATUS_REJECT,
    TransitionRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_FORWARD_STATUS_ID = 6


# ── Parsing helpers ─────────────────────────────────────────────────────────

def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_int(value: Any, name: str, errors: dict) -> int | None:
    if _blank(value):
        errors[name] = "required"
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors[name] = "must be an integer"
        return None


def _parse_date(value: Any, name: str, errors: dict) -> str | None:
    if _blank(value):
        errors[name] = "required"
        return None
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    try:
        return dt.date.fromisoformat(str(value).strip()[:10]).isoformat()
    except ValueError:
        errors[name] = "must be a date (yyyy-mm-dd)"
        return None


def _parse_decimal(value: Any, name: str, errors: dict, *, required: bool = True) -> Decimal | None:
    if _blank(value):
        if required:
            errors[name] = "required"
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        errors[name] = "must be a number"
        return None
    if not number.is_finite() or number < 0:
        errors[name] = "must be a non-negative number"
        return None
    return number


def _fixed_point(number: Decimal) -> str:
    """Plain digits as the user wrote them (".5" -> "0.5", "1e3" -> "1000", "1500." -> "1500")."""
    text = format(number, "f")
    return text[:-1] if text.endswith(".") else text


def _parse_coordinate(value: Any, name: str, limit: int, errors: dict) -> float | None:
    if _blank(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors[name] = "must be a number"
        return None
    if not -limit <= number <= limit:
        errors[name] = f"must be between -{limit} and {limit}"
        return None
    return number


def _raise_if(errors: dict, message: str) -> None:
    if errors:
        raise ValidationError(message, details=errors)


def _clean(remark: str | None) -> str:
    return (remark or "").strip()


# ── Builders ────────────────────────────────────────────────────────────────

def forward_request(
    remark: str | None = "",
    verification_status_id: Any = DEFAULT_FORWARD_STATUS_ID,
    date: Any = None,
) -> TransitionRequest:
    """Plain forward to the next stage (single, array or legacy batch)."""
    errors: dict = {}
    status_id = _parse_int(verification_status_id, "verification_status_id", errors)
    iso_date = _parse_date(date, "date", errors) if not _blank(date) else None
    _raise_if(errors, "Invalid forward request.")
    return TransitionRequest(
        verification_status_id=status_id,
        remark=_clean(remark),
        status=STATUS_FORWARD,
        date=iso_date,
    )


def reject_request(
    remark: str | None = "",
    verification_status_id: Any = DEFAULT_FORWARD_STATUS_ID,
) -> TransitionRequest:
    """Outright rejection: the only transition sent with status 0. A remark is required."""
    errors: dict = {}
    status_id = _parse_int(verification_status_id, "verification_status_id", errors)
    reason = _clean(remark)
    if not reason:
        errors["remark"] = "required"
    _raise_if(errors, "Please give a reason for the rejection." if "remark" in errors else "Invalid reject request.")
    return TransitionRequest(
        verification_status_id=status_id,
        remark=reason,
        status=STATUS_REJECT,
    )


def update_status_request(status_id: Any, date: Any, remark: str | None = "") -> TransitionRequest:
    """Status report with a chosen status and date (DC office, final orders)."""
    errors: dict = {}
    parsed_status = _parse_int(status_id, "status", errors)
    iso_date = _parse_date(date, "date", errors)
    _raise_if(errors, "Please select a status and a date.")
    return TransitionRequest(
        verification_status_id=parsed_status,
        remark=_clean(remark),
        status=STATUS_FORWARD,
        date=iso_date,
    )


def fee_request(status_id: Any, date: Any, amount: Any, remark: str | None = "") -> TransitionRequest:
    """Fee assessment; the payable amount is written into the remark."""
    errors: dict = {}
    parsed_status = _parse_int(status_id, "status", errors)
    iso_date = _parse_date(date, "date", errors)
    payable = _parse_decimal(amount, "amount", errors)
    _raise_if(errors, "Please fill out all required fields: Status, Date, and Payable Amount.")
    return TransitionRequest(
        verification_status_id=parsed_status,
        remark=encode_block(BlockKind.FEE, {"amount": _fixed_point(payable)}, _clean(remark)),
        status=STATUS_FORWARD,
        date=iso_date,
    )


def marsac_request(
    previously_occupied_area: Any,
    previously_occupied_area_unit_id: Any,
    exactly_occupied_area: Any,
    exactly_occupied_area_unit_id: Any,
    remark: str | None = "",
    *,
    verification_status_id: Any = DEFAULT_FORWARD_STATUS_ID,
    marsac_file_name: str | None = None,
) -> TransitionRequest:
    """MARSAC area measurement report. All four area fields are required."""
    errors: dict = {}
    prev_area = _parse_decimal(previously_occupied_area, "previously_occupied_area", errors)
    prev_unit = _parse_int(previously_occupied_area_unit_id, "previously_occupied_area_unit_id", errors)
    exact_area = _parse_decimal(exactly_occupied_area, "exactly_occupied_area", errors)
    exact_unit = _parse_int(exactly_occupied_area_unit_id, "exactly_occupied_area_unit_id", errors)
    status_id = _parse_int(verification_status_id, "verification_status_id", errors)
    _raise_if(errors, "Please fill out all area fields.")

    fields = {
        "previously_occupied_area": str(prev_area),
        "previously_occupied_area_unit_id": prev_unit,
        "exactly_occupied_area": str(exact_area),
        "exactly_occupied_area_unit_id": exact_unit,
    }
    if marsac_file_name:
        fields["marsac_file_name"] = marsac_file_name
    return TransitionRequest(
        verification_status_id=status_id,
        remark=encode_block(BlockKind.MARSAC, fields, _clean(remark)),
        status=STATUS_FORWARD,
    )


def survey_request(
    kind: ActionKind,
    answers: dict | None,
    status_id: Any,
    remark: str | None = "",
    *,
    land_schedule: str | None = None,
    latitude: Any = None,
    longitude: Any = None,
    kml_filename: str | None = None,
) -> TransitionRequest:
    """Survey report for variant 1..4.

    ``answers`` maps checklist keys to booleans; keys the variant's
    checklist does not contain are rejected, unanswered items count as
    unchecked. Coordinates and the KML filename apply to KML surveys.
    """
    if kind.type != ActionType.SURVEY:
        raise ValueError(f"survey_request needs a survey action, got {kind.type.value}")

    errors: dict = {}
    parsed_status = _parse_int(status_id, "status", errors)

    answers = answers or {}
    known = {item.key for item in kind.checklist}
    unknown = sorted(set(answers) - known)
    if unknown:
        errors["answers"] = f"unknown checklist items: {', '.join(unknown)}"

    lat = _parse_coordinate(latitude, "latitude", 90, errors)
    lng = _parse_coordinate(longitude, "longitude", 180, errors)
    _raise_if(errors, "Please select a status." if "status" in errors else "Invalid survey report.")

    fields: dict = {"variant": kind.survey_variant}
    for item in kind.checklist:
        fields[item.key] = bool(answers.get(item.key, False))
    if land_schedule and land_schedule.strip():
        fields["land_schedule"] = land_schedule.strip()
    if kind.kml:
        if lat is not None:
            fields["latitude"] = lat
        if lng is not None:
            fields["longitude"] = lng
        if kml_filename:
            fields["kml_file"] = kml_filename

    return TransitionRequest(
        verification_status_id=parsed_status,
        remark=encode_block(BlockKind.SURVEY, fields, _clean(remark)),
        status=STATUS_FORWARD,
    )
