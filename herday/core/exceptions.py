import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger("herday.core.exceptions")


def _error_payload(message: Any, *, request_id: str | None = None) -> dict[str, Any]:
  """Build the `{error}` body every non-2xx response uses."""
  payload: dict[str, Any] = {"error": message}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _format_location(loc: tuple[Any, ...] | list[Any]) -> str:
  parts = [str(part) for part in loc if part != "body"]
  return ".".join(parts) or "body"


def describe_validation_error(errors: list[dict[str, Any]]) -> str:
  """Reduce pydantic errors to one client-facing sentence without echoing input."""
  if not errors:
    return "Invalid request"

  error = errors[0]
  location = _format_location(error.get("loc", ()))
  error_type = error.get("type", "")

  if error_type == "missing":
    return f"{location} is required"

  if error_type == "json_invalid":
    return "Request body must be valid JSON"

  # Custom validators raise ValueError; its message is already client-safe.
  ctx_error = (error.get("ctx") or {}).get("error")
  if error_type == "value_error" and ctx_error is not None:
    return str(ctx_error)

  return f"{location}: {error.get('msg', 'invalid value')}"


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Catch unhandled errors and hide internals from the client."""
  request_id = getattr(request.state, "request_id", None)
  logger.error("Unhandled exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  # Rendered outside the request middleware, so the id header is set here.
  headers = {"x-request-id": request_id} if request_id else None
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id), headers=headers)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Client input errors are reported as 400 with a single message."""
  request_id = getattr(request.state, "request_id", None)
  message = describe_validation_error(list(exc.errors()))
  logger.info("Request validation failed request_id=%s path=%s method=%s error=%s", request_id, request.url.path, request.method, message)
  return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_payload(message))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Handle HTTPExceptions while avoiding leaking internal diagnostics."""
  request_id = getattr(request.state, "request_id", None)
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail), headers=getattr(exc, "headers", None))
