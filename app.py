import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

import config
from db import create_db_and_tables
from exceptions.base import StorefrontException
from exceptions.cart import EmptyCartException, InvalidCartQuantityException
from exceptions.order import OrderCreationException, OrderNotFoundException, OrderUpdateException
from exceptions.payment import PaymentException, PaymentNotCompletedException
from exceptions.session import MissingSessionException, NotSignedInException
from services.cart_session import CartSessionRegistry
from services.checkout import CheckoutService
from services.local_cart_store import LocalCartStore, RedisDeviceStorage
from services.order import OrderService
from services.remote_cart_store import RemoteCartStore
from web.api_router import api_router, SESSION_HEADER
from web.checkout_router import checkout_router
from web.order_router import order_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    redis = Redis.from_url(config.REDIS_URL)
    storage = RedisDeviceStorage(redis, ttl_seconds=config.GUEST_CART_TTL_DAYS * 24 * 60 * 60)
    app.state.cart_sessions = CartSessionRegistry(
        LocalCartStore(storage),
        RemoteCartStore(),
        idle_ttl_seconds=config.CART_SESSION_IDLE_TTL_MINUTES * 60
    )
    app.state.order_service = OrderService()
    app.state.checkout_service = CheckoutService(order_service=app.state.order_service)
    logger.info(f"[Startup] Cart sessions ready (login merge policy: {config.CART_LOGIN_MERGE_POLICY.value})")

    yield

    # Shutdown
    logger.warning('Shutting down..')
    await app.state.cart_sessions.close()
    await redis.aclose()
    logger.warning('Bye!')


_STATUS_BY_EXCEPTION: list[tuple[type[StorefrontException], int]] = [
    (MissingSessionException, status.HTTP_400_BAD_REQUEST),
    (NotSignedInException, status.HTTP_401_UNAUTHORIZED),
    (InvalidCartQuantityException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (EmptyCartException, status.HTTP_409_CONFLICT),
    (OrderNotFoundException, status.HTTP_404_NOT_FOUND),
    (OrderCreationException, status.HTTP_502_BAD_GATEWAY),
    (OrderUpdateException, status.HTTP_502_BAD_GATEWAY),
    (PaymentNotCompletedException, status.HTTP_409_CONFLICT),
    (PaymentException, status.HTTP_502_BAD_GATEWAY),
]


def status_for(exc: StorefrontException) -> int:
    for exception_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exception_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(lifespan_handler=lifespan) -> FastAPI:
    app = FastAPI(title="Storefront", lifespan=lifespan_handler)

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["Content-Type", SESSION_HEADER],
        )
        logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
    else:
        logger.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

    app.include_router(api_router)
    app.include_router(checkout_router)
    app.include_router(order_router)

    # Health check endpoint (for Docker container monitoring)
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.exception_handler(StorefrontException)
    async def storefront_exception_handler(request: Request, exc: StorefrontException):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error in {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "An internal error occurred"},
        )

    return app


app = create_app()


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
