"""Domestic stock quotation API (국내주식시세).

https://apiportal.koreainvestment.com/apiservice/apiservice-domestic-stock-quotations
"""

from datetime import date
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from kisquote.auth import AuthProvider
from kisquote.errors import (
    ApiError,
    AuthUnavailableError,
    DecodeError,
    HttpStatusError,
    TransportError,
    UrlBuildError,
)
from kisquote.log import get_logger
from kisquote.params import DailyPriceParameter, PeriodicPriceParameter, VolumeRankParameter
from kisquote.responses import DailyPriceResponse, PeriodicPriceResponse, VolumeRankResponse
from kisquote.types import Account, Environment, MarketCode, PeriodCode, TrId

DAILY_PRICE_PATH = "/uapi/domestic-stock/v1/quotations/inquire-daily-price"
PERIODIC_PRICE_PATH = "/uapi/domestic-stock/v1/quotations/inquire-daily-itemchartprice"
VOLUME_RANK_PATH = "/uapi/domestic-stock/v1/quotations/volume-rank"

CUSTOMER_TYPE = "P"  # personal customer

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = get_logger(__name__)


class Quote:
    """Typed quotation requests against one KIS environment.

    The httpx client is borrowed, never closed here, and can be shared by
    several Quote instances. Nothing on the instance changes after
    construction, so one Quote may serve concurrent tasks.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        environment: Environment,
        auth: AuthProvider,
        account: Account,
    ) -> None:
        self._client = client
        self._environment = Environment(environment)
        self._endpoint_url = self._environment.endpoint_url
        self._auth = auth
        self._account = account

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    @property
    def account(self) -> Account:
        return self._account

    async def daily_price(
        self,
        market_code: MarketCode,
        shortcode: str,
        period_code: PeriodCode,
        is_adjust_price: bool,
    ) -> DailyPriceResponse:
        """주식현재가 일자별 [v1_국내주식-010]: the last 30 days, weeks or months."""
        params = _build_params(
            DailyPriceParameter,
            market_code=market_code,
            shortcode=shortcode,
            period_code=period_code,
            is_adjust_price=is_adjust_price,
        )
        url = build_url(self._endpoint_url, DAILY_PRICE_PATH, params.into_pairs())
        response = await self.send_request(url, TrId.DAILY_PRICE)
        return decode_response(response, DailyPriceResponse)

    async def periodic_price(
        self,
        market_code: MarketCode,
        shortcode: str,
        period_code: PeriodCode,
        start_day: str | date,
        end_day: str | date,
        is_adjust_price: bool,
    ) -> PeriodicPriceResponse:
        """국내주식기간별시세 [v1_국내주식-016]. Days are YYYYMMDD."""
        params = _build_params(
            PeriodicPriceParameter,
            market_code=market_code,
            shortcode=shortcode,
            start_day=start_day,
            end_day=end_day,
            period_code=period_code,
            is_adjust_price=is_adjust_price,
        )
        url = build_url(self._endpoint_url, PERIODIC_PRICE_PATH, params.into_pairs())
        response = await self.send_request(url, TrId.PERIODIC_PRICE)
        return decode_response(response, PeriodicPriceResponse)

    async def volume_rank(self, params: VolumeRankParameter) -> VolumeRankResponse:
        """거래량순위 [v1_국내주식-047].

        KIS has no simulation-host variant of this endpoint, so it always goes
        to the real host whatever the configured environment.
        """
        url = build_url(Environment.REAL.endpoint_url, VOLUME_RANK_PATH, params.into_pairs())
        response = await self.send_request(url, TrId.VOLUME_RANK)
        return decode_response(response, VolumeRankResponse)

    async def send_request(self, url: httpx.URL, tr_id: TrId) -> httpx.Response:
        """GET ``url`` with the KIS auth headers. Raises on non-2xx status."""
        token = self._auth.get_token()
        if not token:
            logger.warning("No access token, request not sent", tr_id=tr_id.value, path=url.path)
            raise AuthUnavailableError("token")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "appkey": self._auth.get_appkey(),
            "appsecret": self._auth.get_appsecret(),
            "tr_id": tr_id.value,
            "custtype": CUSTOMER_TYPE,
        }

        try:
            response = await self._client.get(url, headers=headers)
        except httpx.DecodingError as e:
            logger.warning("Undecodable response body", tr_id=tr_id.value, error=str(e))
            raise DecodeError(f"Cannot decode response body from {url.host}: {e}") from e
        except httpx.RequestError as e:
            logger.warning(
                "Transport failure", tr_id=tr_id.value, host=url.host, error=str(e)
            )
            raise TransportError(f"{type(e).__name__} reaching {url.host}: {e}") from e

        logger.debug(
            "Dispatched request",
            tr_id=tr_id.value,
            path=url.path,
            status=response.status_code,
        )

        if not response.is_success:
            logger.warning(
                "Request rejected",
                tr_id=tr_id.value,
                path=url.path,
                status=response.status_code,
            )
            raise HttpStatusError(response.status_code, response.text, str(url))
        return response


def build_url(endpoint_url: str, path: str, pairs: list[tuple[str, str]]) -> httpx.URL:
    """Join ``endpoint_url`` and ``path`` and append ``pairs`` in order."""
    for key, value in pairs:
        if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
            raise UrlBuildError(f"Control character in value for {key}: {value!r}")
    try:
        return httpx.URL(f"{endpoint_url}{path}", params=pairs)
    except (httpx.InvalidURL, TypeError) as e:
        raise UrlBuildError(str(e)) from e


def decode_response(response: httpx.Response, model: type[ModelT]) -> ModelT:
    try:
        data = response.json()
    except ValueError as e:
        logger.warning("Response is not JSON", status=response.status_code, error=str(e))
        raise DecodeError(f"Response body is not valid JSON: {e}") from e

    if isinstance(data, dict) and "rt_cd" in data and data["rt_cd"] != "0":
        raise ApiError(
            str(data["rt_cd"]), str(data.get("msg_cd", "")), str(data.get("msg1", "")).strip()
        )

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "Response does not match schema", model=model.__name__, errors=e.error_count()
        )
        raise DecodeError(f"Unexpected {model.__name__} payload: {e}") from e


def _build_params(model: type[ModelT], **values: object) -> ModelT:
    try:
        return model(**values)
    except ValidationError as e:
        raise UrlBuildError(f"Invalid {model.__name__}: {e}") from e
