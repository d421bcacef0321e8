"""FastAPI application for the Coin Whisperer dashboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coinwhisperer import __version__
from coinwhisperer.api import routes, websocket
from coinwhisperer.config.settings import Settings, get_settings
from coinwhisperer.core.errors import (
    CoinWhispererError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from coinwhisperer.events import Broadcaster
from coinwhisperer.ingestion import AnalysisService, MockPostFeed, PostFeed
from coinwhisperer.market import CoinService, PriceFeed
from coinwhisperer.storage import Store, create_store
from coinwhisperer.trading import TradeService

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[CoinWhispererError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message}
    )


async def _domain_error_handler(request: Request, exc: CoinWhispererError) -> JSONResponse:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return _error(status_code, str(exc))
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    return _error(status.HTTP_400_BAD_REQUEST, problems)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(
    settings: Settings | None = None,
    store: Store | None = None,
    feed: PostFeed | None = None,
    prices: PriceFeed | None = None,
) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        settings: Settings (defaults to the process-wide instance)
        store: Store to serve (defaults to the configured backend)
        feed: Post feed for /api/analyze (defaults to the demo feed)
        prices: Optional price feed refreshed before each analysis

    Returns:
        FastAPI app; the store is connected and closed by its lifespan
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        state = app.state
        state.settings = settings
        state.store = store or create_store(settings)
        await state.store.connect()

        ingestion = settings.ingestion
        state.broadcaster = Broadcaster(settings.events.subscriber_queue_size)
        state.coins = CoinService(state.store)
        state.trades = TradeService(
            state.store, state.broadcaster, settings.trading.base_amount
        )
        state.analysis = AnalysisService(
            state.store,
            feed
            or MockPostFeed(
                min_batch=ingestion.min_batch,
                max_batch=ingestion.max_batch,
                latency_seconds=ingestion.latency_seconds,
            ),
            trades=state.trades,
            broadcaster=state.broadcaster,
            prices=prices,
            sentiment_window=settings.trading.sentiment_window,
        )
        logger.info(f"Coin Whisperer API started with '{state.store.name}' store")

        yield

        await state.store.close()

    app = FastAPI(
        title="Coin Whisperer API",
        description="Crypto social sentiment dashboard with simulated trading",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CoinWhispererError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(routes.router)
    app.include_router(websocket.router)

    @app.get("/health")
    async def health(request: Request) -> dict:
        return {"status": "ok", "store": request.app.state.store.name}

    return app
