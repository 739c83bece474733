"""MCP server setup and quotation tool registration."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from mcp.server.fastmcp import FastMCP

from kisquote.config import build_account, build_auth, load_config
from kisquote.params import VolumeRankParameter
from kisquote.quote import Quote
from kisquote.types import MarketCode, PeriodCode, ShareClass, VolumeRankSort

mcp = FastMCP("kisquote")


def _make_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


@asynccontextmanager
async def _open_quote() -> AsyncIterator[Quote]:
    """Build a Quote from the current config, with a client scoped to one tool call."""
    config = load_config()
    async with _make_client(config.timeout_seconds) as client:
        yield Quote(client, config.environment, build_auth(config), build_account(config))


@mcp.tool()
async def daily_price(
    shortcode: str,
    period: str = "D",
    market: str = "J",
    adjust_price: bool = True,
) -> dict:
    """Get the last 30 daily, weekly or monthly prices for a stock.

    Args:
        shortcode: 6-digit KRX code (e.g. 005930)
        period: "D" day, "W" week or "M" month
        market: "J" stock/ETF/ETN or "W" ELW
        adjust_price: Use split-adjusted prices
    """
    async with _open_quote() as quote:
        result = await quote.daily_price(
            MarketCode(market), shortcode, PeriodCode(period), adjust_price
        )
    return result.model_dump(mode="json")


@mcp.tool()
async def periodic_price(
    shortcode: str,
    start_day: str,
    end_day: str,
    period: str = "D",
    market: str = "J",
    adjust_price: bool = True,
) -> dict:
    """Get up to 100 candles for a stock between two days.

    Args:
        shortcode: 6-digit KRX code (e.g. 005930)
        start_day: First day, YYYYMMDD
        end_day: Last day, YYYYMMDD
        period: "D", "W", "M" or "Y"
        market: "J" stock/ETF/ETN or "W" ELW
        adjust_price: Use split-adjusted prices
    """
    async with _open_quote() as quote:
        result = await quote.periodic_price(
            MarketCode(market), shortcode, PeriodCode(period), start_day, end_day, adjust_price
        )
    return result.model_dump(mode="json")


@mcp.tool()
async def volume_rank(
    sort: str = "0",
    share_class: str = "0",
    min_volume: int | None = None,
    market: str = "J",
) -> dict:
    """Get today's top 30 stocks by trading volume. Always queries the real market.

    Args:
        sort: "0" avg volume, "1" volume increase rate, "2" avg volume turnover,
            "3" trading value, "4" avg value turnover
        share_class: "0" all, "1" common, "2" preferred
        min_volume: Exclude stocks below this volume
        market: "J" stock/ETF/ETN or "W" ELW
    """
    params = VolumeRankParameter(
        market_code=MarketCode(market),
        sort=VolumeRankSort(sort),
        share_class=ShareClass(share_class),
        min_volume=min_volume,
    )
    async with _open_quote() as quote:
        result = await quote.volume_rank(params)
    return result.model_dump(mode="json")
