"""
Platform-wide exception hierarchy.

Expected workflow failures (upload failed, backend said no, timeout) are
never raised: the engine returns them as ``TransitionResult`` values with an
``ErrorKind``. The exceptions below cover the remaining two cases:

  - input that fails a business rule before any network call is attempted
    (raised by the report builders, caught by blueprints)
  - lookups the BFF itself performs that come back empty

Usage:
    from landuse.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Application", resource_id=42)
    raise ValidationError("Remark is required", details={"remark": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist on the backend.

    Args:
        resource: Human-readable entity name (e.g. "Application", "Stage").
        resource_id: The identifier that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when transition input fails validation before any network call.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
                 Keys are field names; values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)
