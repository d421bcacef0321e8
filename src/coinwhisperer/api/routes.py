"""Dashboard REST routes."""

import logging
from typing import Any

from fastapi import APIRouter, Query, Request, status

from coinwhisperer.api.schemas import (
    CoinCreateRequest,
    CoinUpdateRequest,
    ConfigUpdateRequest,
    StatsUpdateRequest,
    TradeCreateRequest,
)
from coinwhisperer.storage.base import DEFAULT_LIST_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


# =============================================================================
# Coins
# =============================================================================


@router.get("/coins")
async def list_coins(request: Request, tracked: bool = False) -> list[dict]:
    """List coins, or only tracked ones with ``?tracked=true``."""
    coins = await request.app.state.coins.list_coins(tracked_only=tracked)
    return [c.to_dict() for c in coins]


@router.post("/coins", status_code=status.HTTP_201_CREATED)
async def add_coin(request: Request, body: CoinCreateRequest) -> dict:
    coin = await request.app.state.coins.add_coin(body.symbol)
    return _ok(coin.to_dict())


@router.patch("/coins/{key}")
async def update_coin(request: Request, key: str, body: CoinUpdateRequest) -> dict:
    """Update a coin addressed by symbol or numeric id."""
    coin = await request.app.state.coins.update_coin(key, body.changes())
    return _ok(coin.to_dict())


# =============================================================================
# Posts
# =============================================================================


@router.get("/tweets")
async def list_tweets(
    request: Request,
    coin_tag: str | None = Query(default=None, alias="coinTag"),
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=500),
) -> list[dict]:
    """Newest posts first, optionally filtered by coin symbol."""
    posts = await request.app.state.store.list_posts(limit=limit, coin_symbol=coin_tag)
    return [p.to_dict() for p in posts]


@router.post("/analyze")
async def analyze(request: Request) -> dict:
    """Run the analysis step once."""
    state = request.app.state
    report = await state.analysis.run_once(
        timeout=state.settings.ingestion.timeout_seconds
    )
    return {
        "success": True,
        "message": f"Analyzed {report.fetched} tweets",
        "data": report.to_dict(),
    }


# =============================================================================
# Trades
# =============================================================================


@router.get("/trades")
async def list_trades(
    request: Request,
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=500),
) -> list[dict]:
    trades = await request.app.state.store.list_trades(limit=limit)
    return [t.to_dict() for t in trades]


@router.post("/trades", status_code=status.HTTP_201_CREATED)
async def place_trade(request: Request, body: TradeCreateRequest) -> dict:
    trade = await request.app.state.trades.place_manual_trade(
        body.coin_symbol, body.type, body.amount
    )
    return _ok(trade.to_dict())


# =============================================================================
# Config and stats
# =============================================================================


@router.get("/config")
async def get_config(request: Request) -> dict:
    config = await request.app.state.store.get_config()
    return config.to_dict()


@router.patch("/config")
async def update_config(request: Request, body: ConfigUpdateRequest) -> dict:
    config = await request.app.state.store.update_config(body.changes())
    logger.info(f"Trading config updated: {body.changes()}")
    return _ok(config.to_dict())


@router.get("/stats")
async def get_stats(request: Request) -> dict:
    stats = await request.app.state.store.get_stats()
    return stats.to_dict()


@router.patch("/stats")
async def update_stats(request: Request, body: StatsUpdateRequest) -> dict:
    stats = await request.app.state.store.update_stats(body.changes())
    return _ok(stats.to_dict())
