from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

import healthfin.models  # noqa: F401
from healthfin.api.routes import router as api_router
from healthfin.core.config import get_settings
from healthfin.logging import configure_logging
from healthfin.middleware.correlation_id import CorrelationIdMiddleware
from healthfin.middleware.request_logging import RequestLoggingMiddleware
from healthfin.otel import get_fastapi_server_request_hook, setup_otel


configure_logging()
logger = logging.getLogger("healthfin.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("system.started")
    yield
    logger.info("system.stopped")


settings = get_settings()

app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)

setup_otel(settings)

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=get_fastapi_server_request_hook())
