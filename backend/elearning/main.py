import uuid
import time
import json
import logging
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from elearning.core.config import settings
from elearning.core.errors import DomainError
from elearning.routers import attempts, auth, certificates, courses, health, lessons, questions, quizzes, user_courses


def _request_id(request: Request) -> str | None:
    rid = getattr(getattr(request, "state", None), "request_id", None)
    rid = str(rid or "").strip()
    return rid or None


def _error_response(request: Request, *, status_code: int, error_code: str, error_message: str, extra=None, headers=None):
    payload = {
        "ok": False,
        "error_code": error_code,
        "error_message": error_message,
        "request_id": _request_id(request),
    }
    for key, value in (extra or {}).items():
        payload.setdefault(key, value)
    return JSONResponse(status_code=int(status_code), content=jsonable_encoder(payload), headers=headers)


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = FastAPI(title="APPCC E-Learning API", version="1.0.0")

    logger = logging.getLogger("elearning")

    allow_origins = [o.strip() for o in str(settings.cors_allow_origins or "").split(",") if o.strip()]
    if "*" in allow_origins:
        raise RuntimeError("CORS_ALLOW_ORIGINS must not include '*' when allow_credentials=true")

    is_prod = (settings.app_env or "").strip().lower() in {"prod", "production"}

    def _parse_csv(value: str) -> list[str]:
        return [x.strip() for x in str(value or "").split(",") if x.strip()]

    allow_methods_raw = str(settings.cors_allow_methods or "*").strip()
    allow_headers_raw = str(settings.cors_allow_headers or "*").strip()
    if is_prod:
        if allow_methods_raw == "*":
            allow_methods = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
        else:
            allow_methods = _parse_csv(allow_methods_raw)

        if allow_headers_raw == "*":
            allow_headers = ["authorization", "content-type", "x-request-id"]
        else:
            allow_headers = _parse_csv(allow_headers_raw)
    else:
        allow_methods = ["*"] if allow_methods_raw == "*" else _parse_csv(allow_methods_raw)
        allow_headers = ["*"] if allow_headers_raw == "*" else _parse_csv(allow_headers_raw)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        status_code: int | None = None
        try:
            origin = (request.headers.get("origin") or "").strip()
            if request.method in {"POST", "PUT", "PATCH", "DELETE"} and origin and origin not in allow_origins:
                response = _error_response(request, status_code=403, error_code="forbidden", error_message="invalid origin")
            else:
                response = await call_next(request)
            status_code = int(getattr(response, "status_code", 0) or 0)
        except Exception:
            status_code = 500
            raise
        finally:
            dur_ms = int((time.perf_counter() - t0) * 1000)
            path = request.url.path
            if not path.startswith("/health"):
                logger.info(
                    json.dumps(
                        {
                            "ts": datetime.utcnow().isoformat(),
                            "rid": rid,
                            "user_id": getattr(request.state, "user_id", None),
                            "method": request.method,
                            "path": path,
                            "status": status_code,
                            "duration_ms": dur_ms,
                        },
                        ensure_ascii=False,
                    )
                )
        response.headers["X-Request-ID"] = rid

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if is_prod:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("domain error rid=%s code=%s message=%s", _request_id(request), exc.error_code, exc.message)
        return _error_response(
            request,
            status_code=exc.status_code,
            error_code=exc.error_code,
            error_message=exc.message,
            extra=exc.extra,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        if isinstance(detail, dict):
            error_code = str(detail.get("error_code") or "http_error")
            error_message = str(detail.get("error_message") or detail.get("detail") or "request failed")
        else:
            error_code = {
                401: "unauthorized",
                403: "forbidden",
                404: "not_found",
                429: "rate_limited",
            }.get(int(exc.status_code), "http_error")
            error_message = str(detail or "request failed")

        return _error_response(
            request,
            status_code=exc.status_code,
            error_code=error_code,
            error_message=error_message,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(p) for p in (e.get("loc") or ()) if p not in {"body", "query", "path"}),
                "message": str(e.get("msg") or "invalid value"),
            }
            for e in exc.errors()
        ]
        return _error_response(
            request,
            status_code=400,
            error_code="validation_error",
            error_message="invalid request",
            extra={"errors": errors},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("storage error", extra={"rid": _request_id(request)})
        return _error_response(request, status_code=500, error_code="internal_error", error_message="internal server error")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled exception", extra={"rid": _request_id(request)})
        return _error_response(request, status_code=500, error_code="internal_error", error_message="internal server error")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=allow_methods,
        allow_headers=allow_headers,
    )

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(courses.router)
    app.include_router(lessons.router)
    app.include_router(quizzes.router)
    app.include_router(questions.router)
    app.include_router(attempts.router)
    app.include_router(user_courses.router)
    app.include_router(certificates.router)

    return app

app = create_app()
