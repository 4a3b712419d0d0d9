from __future__ import annotations

from typing import Dict

_STATUS_TO_CODE: Dict[int, str] = {
    400: "INVALID_REQUEST",
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "UPSTREAM_ERROR",
    504: "GATEWAY_TIMEOUT",
}


def error_code_for_status(status_code: int) -> str:
    return _STATUS_TO_CODE.get(status_code, "UNKNOWN_ERROR")


class IntegrationError(RuntimeError):
    """A call to an external service failed."""

    service: str = "external"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class KontentDeliveryError(IntegrationError):
    service = "kontent"


class AlgoliaApiError(IntegrationError):
    service = "algolia"
