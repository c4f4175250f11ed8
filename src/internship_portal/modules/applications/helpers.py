"""
Internship Applications Shared Helpers

Small pure functions shared by the router, service and exception handlers.
"""

import math
from collections.abc import Iterable
from typing import Any

from internship_portal.modules.applications.schemas import FieldError

# Location prefixes FastAPI adds to request validation errors
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}

_VALUE_ERROR_PREFIX = "Value error, "


def collect_field_errors(errors: Iterable[dict[str, Any]]) -> list[FieldError]:
    """
    Convert pydantic error dicts into (field, message) pairs.

    Every violation is kept, so the client sees all invalid fields at once.

    Args:
        errors: Output of ValidationError.errors() / RequestValidationError.errors()

    Returns:
        One FieldError per violation, in the order pydantic reported them
    """
    field_errors = []
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in _REQUEST_LOCATIONS]
        # Malformed JSON is located by character offset only
        if all(isinstance(part, int) for part in loc):
            loc = []
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX) :]
        field = ".".join(str(part) for part in loc) or "body"
        field_errors.append(FieldError(field=field, message=message))
    return field_errors


def calculate_total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show `total` items, `limit` per page."""
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def page_to_offset(page: int, limit: int) -> int:
    """Convert a 1-based page number into a row offset."""
    return (max(page, 1) - 1) * limit
