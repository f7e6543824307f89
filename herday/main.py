from __future__ import annotations

import time

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from herday.api.routes import schedule
from herday.config import get_settings
from herday.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from herday.core.lifespan import lifespan
from herday.core.middleware import RequestLoggingMiddleware
from herday.utils.timestamps import to_iso8601

settings = get_settings()

app = FastAPI(title="HerDay Push", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

# No configured origins means any origin may call the API (the client holds no credentials).
if settings.allowed_origins:
  app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_methods=["GET", "POST", "DELETE", "OPTIONS"], allow_headers=["Content-Type"])
else:
  app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET", "POST", "DELETE", "OPTIONS"], allow_headers=["Content-Type"])

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, object]:
  """Return a simple health status."""
  return {"ok": True, "time": to_iso8601(time.time())}


app.include_router(schedule.router, prefix="/api", tags=["schedule"])
