import logging
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pricing_portal.core.cache import QueryCache
from pricing_portal.core.config import settings
from pricing_portal.core.errors import ValidationError
from pricing_portal.core.logging_config import configure_logging
from pricing_portal.database.connection import Base, engine
from pricing_portal.middleware.metrics import MetricsMiddleware, empty_metrics
from pricing_portal.routes import system
from pricing_portal.routes.categories import router as category_router
from pricing_portal.routes.client_prices import router as client_price_router
from pricing_portal.routes.price_history import router as price_history_router
from pricing_portal.routes.products import router as product_router
from pricing_portal.routes.registrations import router as registration_router
from pricing_portal.routes.users import admin_router as user_admin_router
from pricing_portal.routes.users import auth_router as account_router

configure_logging()
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="B2B Optical Pricing Portal")

app.add_middleware(MetricsMiddleware)


app.include_router(product_router)
app.include_router(category_router)
app.include_router(client_price_router)
app.include_router(price_history_router)
app.include_router(registration_router)
app.include_router(user_admin_router)
app.include_router(account_router)
app.include_router(system.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    body = {"detail": exc.detail}
    if exc.errors:
        body["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=body)


# malformed bodies are plain validation failures here, not 422s
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # raw inputs may hold NaN or Infinity, which JSONResponse refuses to render
    errors = [
        {key: value for key, value in error.items() if key not in ("input", "ctx")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request data", "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": f"Internal server error: {exc}"},
    )


@app.on_event("startup")
async def startup_event():
    app.state.start_time = datetime.utcnow()
    app.state.metrics = empty_metrics()
    app.state.cache = QueryCache(settings.CACHE_STALE_SECONDS)
