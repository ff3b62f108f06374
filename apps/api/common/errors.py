"""
Shared API error handlers for PrivacyOperationError contract and deterministic 422 payloads.

Docs:
  - docs/architecture/shadowflow/privacy-donations-v1.md
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from shadowflow.platform.errors import PrivacyOperationError


def register_api_error_handlers(*, app: FastAPI) -> None:
    """
    Register global API handlers for operation errors and FastAPI validation errors.

    Args:
        app: FastAPI application instance.
    Returns:
        None.
    Assumptions:
        Handlers are installed once during application startup.
    Raises:
        ValueError: If `app` dependency is missing.
    Side Effects:
        Mutates FastAPI exception-handler registry.
    """
    if app is None:  # type: ignore[truthy-bool]
        raise ValueError("register_api_error_handlers requires app")

    app.add_exception_handler(PrivacyOperationError, privacy_operation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


def privacy_operation_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert PrivacyOperationError into deterministic JSON response payload.

    Args:
        _request: Starlette request object (unused).
        error: Raised PrivacyOperationError instance.
    Returns:
        JSONResponse: Response with contract payload `{"error": ...}`.
    Assumptions:
        HTTP status is carried by the error class itself.
    Raises:
        None.
    Side Effects:
        None.
    """
    operation_error = cast(PrivacyOperationError, error)
    return _error_response(
        status_code=operation_error.status_code,
        code=operation_error.code,
        message=operation_error.message,
        details={"retryable": operation_error.retryable},
    )


def request_validation_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert FastAPI RequestValidationError to canonical `validation_error` payload.

    Args:
        _request: Starlette request object (unused).
        error: Raised validation exception from FastAPI/Pydantic.
    Returns:
        JSONResponse: HTTP 422 payload with deterministically sorted `details.errors` list.
    Assumptions:
        Validation errors include `loc`, `type`, and `msg` attributes.
    Raises:
        None.
    Side Effects:
        None.
    """
    validation_error = cast(RequestValidationError, error)
    return _error_response(
        status_code=422,
        code="validation_error",
        message="Validation failed",
        details={"errors": _sorted_validation_errors(raw_errors=validation_error.errors())},
    )


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: Mapping[str, Any],
) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": {key: details[key] for key in sorted(details)},
        }
    }
    return JSONResponse(status_code=status_code, content=payload)


def _sorted_validation_errors(*, raw_errors: Any) -> list[dict[str, str]]:
    """
    Convert raw validation errors into deterministic list sorted by path, code, and message.

    Args:
        raw_errors: Raw iterable from FastAPI validation subsystem.
    Returns:
        list[dict[str, str]]: Sorted normalized validation items.
    Assumptions:
        Unknown raw shapes are stringified for deterministic payload stability.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not isinstance(raw_errors, Sequence) or isinstance(raw_errors, (str, bytes, bytearray)):
        return []

    normalized_items: list[dict[str, str]] = []
    for raw_error in raw_errors:
        if not isinstance(raw_error, Mapping):
            normalized_items.append(
                {
                    "path": "unknown",
                    "code": "validation_error",
                    "message": str(raw_error),
                }
            )
            continue

        normalized_items.append(
            {
                "path": _normalize_error_path(loc=raw_error.get("loc")),
                "code": _normalize_error_code(raw_type=raw_error.get("type")),
                "message": str(raw_error.get("msg", "Validation error")),
            }
        )

    return sorted(
        normalized_items,
        key=lambda item: (item["path"], item["code"], item["message"]),
    )


def _normalize_error_path(*, loc: Any) -> str:
    if isinstance(loc, Sequence) and not isinstance(loc, (str, bytes, bytearray)):
        path_parts = [str(part) for part in loc]
        if path_parts:
            return ".".join(path_parts)
    if loc is None:
        return "unknown"
    return str(loc)


def _normalize_error_code(*, raw_type: Any) -> str:
    """
    Normalize raw validation error type into stable machine-readable code.

    Args:
        raw_type: Raw `type` value from validation error mapping.
    Returns:
        str: Stable error code.
    Assumptions:
        Missing required fields are represented with Pydantic `missing` type.
    Raises:
        None.
    Side Effects:
        None.
    """
    if raw_type is None:
        return "validation_error"

    normalized = str(raw_type).strip().lower()
    if not normalized:
        return "validation_error"

    if normalized == "missing" or normalized.endswith(".missing"):
        return "required"

    return normalized
