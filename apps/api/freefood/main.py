import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator

from freefood.api.errors import install_exception_handlers
from freefood.api.router import router as api_router
from freefood.core.config import settings
from freefood.core.logging import configure_logging
from freefood.middleware.body_limit import BodySizeLimitMiddleware
from freefood.middleware.rate_limit import RateLimitMiddleware
from freefood.middleware.request_id import RequestIdMiddleware
from freefood.middleware.security_headers import SecurityHeadersMiddleware

configure_logging(settings.log_level, json=settings.log_json)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.event_store_backend == "sql" and settings.auto_create_tables:
        from freefood.db import engine
        from freefood.models import Base

        Base.metadata.create_all(engine)
        logger.info("event_table_ready", backend="sql")
    yield


app = FastAPI(title="Free Food Finder API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost).
# RequestId + SecurityHeaders wrap everything, CORS answers preflight,
# the body limit rejects oversized uploads before rate limiting counts them.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials="*" not in settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

install_exception_handlers(app)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

app.include_router(api_router, prefix="/api")

# Mounted last so /api and /metrics win over static paths
if os.path.isdir(settings.static_dir):
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
else:

    @app.get("/", include_in_schema=False)
    def root():
        return {"name": "Free Food Finder API", "status": "ok"}


def run() -> None:
    import uvicorn

    uvicorn.run(
        "freefood.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.env == "local",
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
