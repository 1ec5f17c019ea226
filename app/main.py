import asyncio
import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api import admin, shortener
from app.api.errors import global_exception_handler, shortener_exception_handler
from app.core.config import settings
from app.core.errors import ShortenerError
from app.core.logging_config import configure_logging
from app.db.Connection import database
from app.db.Models import models
from app.RateLimitHelper import build_limiter, get_client_ip, is_rate_limited_path
from app.routers import health
from app.services.cleanup import run_periodic_cleanup

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Application '{settings.PROJECT_NAME}' starting up.")
    models.Base.metadata.create_all(bind=database.engine)
    logger.info("Database models initialized/checked.")
    database.verify_database_connection()
    database.verify_redis_connection()

    stop_event = asyncio.Event()
    cleanup_task = None
    if settings.CLEANUP_INTERVAL_SECONDS > 0:
        cleanup_task = asyncio.create_task(
            run_periodic_cleanup(database.SessionLocal, settings.CLEANUP_INTERVAL_SECONDS, stop_event)
        )

    yield

    logger.info("Shutting down gracefully...")
    stop_event.set()
    if cleanup_task is not None:
        await cleanup_task
    database.engine.dispose()
    if database.redis_client is not None:
        database.redis_client.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="URL shortener with custom aliases, expiring links and hit counts",
    lifespan=lifespan,
)
app.state.rate_limiter = build_limiter(settings.RATE_LIMIT_RPS, settings.RATE_LIMIT_BURST)
app.state.trusted_proxies = settings.TRUSTED_PROXY_SET

app.add_exception_handler(ShortenerError, shortener_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health.router)
app.include_router(admin.router)
# shortener last: its /{code} route would shadow anything registered after it
app.include_router(shortener.router)


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None or not is_rate_limited_path(request.method, request.url.path):
        return await call_next(request)

    if not limiter.allow(get_client_ip(request, request.app.state.trusted_proxies)):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(limiter.retry_after)},
            content={"detail": "rate limited"},
        )
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    client_ip = get_client_ip(request, request.app.state.trusted_proxies)
    logger.info(
        f"{request.method} {request.url.path} from {client_ip} "
        f"-> {response.status_code} in {duration_ms:.2f}ms"
    )
    return response


def run():
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
