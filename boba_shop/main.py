import logging
from contextlib import asynccontextmanager

from aiokafka import AIOKafkaProducer
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import make_asgi_app

import boba_shop.models  # noqa: F401  registers tables on Base.metadata
from boba_shop.config import settings
from boba_shop.database import Base, engine
from boba_shop.middleware.metrics import MetricsMiddleware
from boba_shop.middleware.request_id import RequestIDMiddleware
from boba_shop.routers import admin_orders, menu, orders
from boba_shop.services.catalog import seed_menu
from boba_shop.utils.logging import setup_logging
from shared.tracing import setup_tracing

SERVICE_VERSION = "1.0.0"

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

if settings.tracing_enabled:
    setup_tracing("boba-shop", settings.otlp_endpoint, SERVICE_VERSION)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up, creating database tables")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.tracing_enabled:
        SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)

    if settings.seed_demo_menu:
        await seed_menu()

    producer = None
    if settings.kafka_enabled:
        producer = AIOKafkaProducer(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            enable_idempotence=True,
        )
        await producer.start()
    app.state.kafka_producer = producer
    logger.info("Startup complete", extra={"kafka_enabled": settings.kafka_enabled})

    yield

    if producer is not None:
        await producer.stop()
    await engine.dispose()
    logger.info("Shutting down")


app = FastAPI(
    title="Boba Shop Ordering",
    description="Menu, checkout pricing and order workflow for a bubble-tea shop",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "error": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "details": [
                    {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
                    for err in exc.errors()
                ],
            }
        },
    )


if settings.tracing_enabled:
    FastAPIInstrumentor.instrument_app(app)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.include_router(menu.router, prefix="/menu", tags=["menu"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["admin"])

# Expose Prometheus metrics at /metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
