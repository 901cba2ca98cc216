"""
Uniform error bodies for errors raised by the framework itself.

Ledger errors are translated in the views; this handler covers what DRF
raises before a view runs (authentication, throttling, parsing, 404s).
"""
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.views import exception_handler


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        return None

    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        if isinstance(exc, NotAuthenticated):
            response.data = {"message": "Unauthenticated."}
        else:
            response.data = {"message": str(response.data.get("detail", "Unauthenticated."))}
        return response

    if isinstance(exc, ValidationError):
        response.data = {"message": "The given data was invalid.", "errors": response.data}
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    if detail is not None:
        response.data = {"success": False, "message": str(detail)}

    return response
