import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import create_db_and_tables
from app.exceptions import OrderServiceError
from app.middleware.request_logging import RequestLoggingMiddleware
from app.routes import health, orders
from app.services.email_service import BrevoNotificationSender

VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()

    # one notifier for the whole process, injected per request
    app.state.notifier = BrevoNotificationSender.from_settings()
    logger.info(f"Planti Backend started ({settings.ENV}), API at {settings.API_PREFIX}/orders")
    yield


app = FastAPI(title="Planti Orders API", version=VERSION, lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------
# ERROR HANDLERS
# -------------------------

@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(include_detail=not settings.is_production),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        ".".join(str(part) for part in error["loc"] if part != "body") + f": {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"message": "Internal server error"}
    if not settings.is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


app.include_router(orders.router, prefix=f"{settings.API_PREFIX}/orders", tags=["Orders"])
app.include_router(health.router, tags=["Health"])


@app.get("/")
def root():
    return {
        "message": "Planti Backend API",
        "version": VERSION,
        "endpoints": {
            "orders": f"{settings.API_PREFIX}/orders",
            "dashboard": f"{settings.API_PREFIX}/orders/stats/dashboard",
            "health": "/health",
        },
    }


def run():
    import uvicorn

    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
