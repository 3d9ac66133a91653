"""
Project-wide DRF exception handler.

Every API error is rendered as::

    {"success": false, "code": "<stable code>", "detail": "<message>", ...}

Typed errors from ``core.exceptions`` may contribute extra fields
(``reason``, ``status``, ``capability``) through ``extra_fields()``.
"""
import logging

from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_code(codes):
    if isinstance(codes, str):
        return codes
    if isinstance(codes, (list, tuple)) and codes:
        return _first_code(codes[0])
    if isinstance(codes, dict) and codes:
        return _first_code(next(iter(codes.values())))
    return "error"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = getattr(exc, "detail", None)
    codes = exc.get_codes() if hasattr(exc, "get_codes") else None
    payload = {"success": False, "code": _first_code(codes)}
    if isinstance(detail, (list, dict)):
        payload["errors"] = response.data
        payload["detail"] = "Invalid request."
    else:
        payload["detail"] = response.data.get("detail", str(detail))

    extra = getattr(exc, "extra_fields", None)
    if callable(extra):
        payload.update(extra())

    if response.status_code >= 500:
        view = context.get("view")
        logger.error("API error in %s: %s", type(view).__name__, payload["detail"])
    response.data = payload
    return response
