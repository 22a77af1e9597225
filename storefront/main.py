from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.routes.auth_routes import router as auth_router
from storefront.api.routes.cart_routes import router as cart_router
from storefront.api.routes.order_routes import router as order_router
from storefront.api.routes.product_routes import router as product_router
from storefront.container import Container

logger = logging.getLogger(__name__)


def _error_code(status_code: int) -> str:
    codes = {
        400: "VALIDATION_ERROR",
        401: "AUTH_REQUIRED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
        500: "INTERNAL_ERROR",
    }
    return codes.get(status_code, "INTERNAL_ERROR")


def _error_body(status_code: int, message: str, details: list[dict[str, str]] | None = None) -> dict:
    return {
        "success": False,
        "error": {
            "code": _error_code(status_code),
            "message": message,
            "details": details or [],
        },
    }


async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.status_code, message))


async def handle_validation_exception(_: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for issue in exc.errors():
        loc = issue.get("loc", ())
        field_parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(loc[0])] if loc else ["body"]
        details.append(
            {
                "field": ".".join(field_parts),
                "message": str(issue.get("msg", "Invalid value")),
            }
        )
    return JSONResponse(status_code=400, content=_error_body(400, "Invalid request data", details))


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body(500, "Internal server error"))


def create_app(container: Container | None = None) -> FastAPI:
    container = container or Container.build()
    settings = container.settings
    logging.getLogger("storefront").setLevel(settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0")
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix=settings.api_prefix)
    app.include_router(product_router, prefix=settings.api_prefix)
    app.include_router(cart_router, prefix=settings.api_prefix)
    app.include_router(order_router, prefix=settings.api_prefix)

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    @app.get("/health")
    def health() -> dict[str, object]:
        with container.store.lock:
            active_carts = sum(1 for lines in container.store.carts_by_user.values() if lines)
        return {"status": "ok", "products": len(container.store.products_by_id), "activeCarts": active_carts}

    return app


app = create_app()
