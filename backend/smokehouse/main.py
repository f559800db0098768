from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from smokehouse.api.v1 import api_router
from smokehouse.core.config import settings
from smokehouse.core.logging_config import configure_logging
from smokehouse.middleware import RequestLoggingMiddleware
from smokehouse.schemas.error import ErrorResponse
from smokehouse.services.cart import CartRegistry
from smokehouse.services.notifications import OrderNotifier
from smokehouse.services.orders import OrderStore


def get_application() -> FastAPI:
    configure_logging(settings.log_json)
    tags_metadata = [
        {"name": "catalog", "description": "Menu products and categories"},
        {"name": "cart", "description": "Session cart priced by weight"},
        {"name": "orders", "description": "Checkout and order history"},
        {"name": "tips", "description": "Reheating instructions"},
    ]
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_tags=tags_metadata,
    )
    app.state.cart_registry = CartRegistry(idle_ttl_seconds=settings.cart_idle_ttl_seconds)
    app.state.order_store = OrderStore(settings.orders_cache_path)
    app.state.notifier = OrderNotifier()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=["X-Session-Id", "X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix="/api/v1")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        payload = ErrorResponse(detail=exc.detail, code=None)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(payload.model_dump()))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        payload = ErrorResponse(detail=errors, code="validation_error")
        return JSONResponse(status_code=422, content=payload.model_dump())

    return app


app = get_application()
