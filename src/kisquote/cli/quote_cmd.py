"""kis quote: one-shot quotation requests printed as JSON."""

import asyncio
import json
from collections.abc import Awaitable, Callable

import click
import httpx
from pydantic import BaseModel, ValidationError

from kisquote.cli.main import cli
from kisquote.config import build_account, build_auth, load_config
from kisquote.errors import KisError
from kisquote.log import configure_logging
from kisquote.params import VolumeRankParameter
from kisquote.quote import Quote
from kisquote.types import MarketCode, PeriodCode, ShareClass, VolumeRankSort

MARKETS = click.Choice([m.value for m in MarketCode])
SORTS = click.Choice([s.value for s in VolumeRankSort])
SHARE_CLASSES = click.Choice([s.value for s in ShareClass])


def _make_client(timeout: float) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)


def _run(call: Callable[[Quote], Awaitable[BaseModel]]) -> None:
    """Run ``call`` against a Quote built from config and echo the result."""
    try:
        config = load_config()
    except KisError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e
    configure_logging(config.log_level, config.log_json)

    async def go() -> BaseModel:
        async with _make_client(config.timeout_seconds) as client:
            quote = Quote(client, config.environment, build_auth(config), build_account(config))
            return await call(quote)

    try:
        result = asyncio.run(go())
    except KisError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e

    click.echo(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))


@cli.group()
def quote() -> None:
    """Domestic stock quotation commands."""


@quote.command()
@click.argument("shortcode")
@click.option("--market", default=MarketCode.STOCK.value, type=MARKETS, help="Market division")
@click.option(
    "--period",
    default=PeriodCode.DAY.value,
    type=click.Choice(["D", "W", "M"]),
    help="Day, week or month",
)
@click.option("--adjust/--no-adjust", default=True, help="Use split-adjusted prices")
def daily(shortcode: str, market: str, period: str, adjust: bool) -> None:
    """Last 30 days/weeks/months of prices for SHORTCODE."""
    _run(lambda q: q.daily_price(MarketCode(market), shortcode, PeriodCode(period), adjust))


@quote.command()
@click.argument("shortcode")
@click.argument("start")
@click.argument("end")
@click.option("--market", default=MarketCode.STOCK.value, type=MARKETS, help="Market division")
@click.option(
    "--period",
    default=PeriodCode.DAY.value,
    type=click.Choice([p.value for p in PeriodCode]),
    help="Candle period",
)
@click.option("--adjust/--no-adjust", default=True, help="Use split-adjusted prices")
def periodic(shortcode: str, start: str, end: str, market: str, period: str, adjust: bool) -> None:
    """Candles for SHORTCODE between START and END (YYYYMMDD)."""
    _run(
        lambda q: q.periodic_price(
            MarketCode(market), shortcode, PeriodCode(period), start, end, adjust
        )
    )


@quote.command("volume-rank")
@click.option("--market", default=MarketCode.STOCK.value, type=MARKETS, help="Market division")
@click.option("--sort", default=VolumeRankSort.AVERAGE_VOLUME.value, type=SORTS, help="Rank basis")
@click.option("--share-class", default=ShareClass.ALL.value, type=SHARE_CLASSES)
@click.option("--min-volume", default=None, type=int, help="Minimum traded volume")
@click.option("--date", "input_date", default=None, help="Day to rank (YYYYMMDD)")
def volume_rank(
    market: str, sort: str, share_class: str, min_volume: int | None, input_date: str | None
) -> None:
    """Top stocks by volume (always queries the real market)."""
    try:
        params = VolumeRankParameter(
            market_code=MarketCode(market),
            sort=VolumeRankSort(sort),
            share_class=ShareClass(share_class),
            min_volume=min_volume,
            input_date=input_date,
        )
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e

    _run(lambda q: q.volume_rank(params))
