# clinic/api/exceptions.py
import logging

from rest_framework import exceptions
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

INVALID_DATA_MESSAGE = "The given data was invalid."


def _first_message(detail):
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    if isinstance(detail, dict):
        return _first_message(next(iter(detail.values()))) if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """
    DRF's default handler, reshaped into the API envelope:
    {"success": false, "message": "...", "errors": {...}}.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    view = context.get("view")
    logger.info(
        "API %s rejected with %s: %s",
        type(view).__name__ if view else "view",
        response.status_code,
        _first_message(response.data),
    )

    if isinstance(exc, exceptions.ValidationError):
        errors = response.data if isinstance(response.data, dict) else {"non_field_errors": response.data}
        response.data = {"success": False, "message": INVALID_DATA_MESSAGE, "errors": errors}
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else response.data
    response.data = {"success": False, "message": _first_message(detail)}
    return response
